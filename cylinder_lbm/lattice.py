"""
D2Q9 Lattice Constants and Utilities

Defines the D2Q9 lattice model for 2D fluid simulations.
"""
import numpy as np

# D2Q9 lattice velocities
#     6   2   5
#       \ | /
#     3 - 0 - 1
#       / | \
#     7   4   8

# Lattice velocity components
EX = np.array([0, 1, 0, -1, 0, 1, -1, -1, 1], dtype=np.int32)
EY = np.array([0, 0, 1, 0, -1, 1, 1, -1, -1], dtype=np.int32)

# Lattice weights
W = np.array([4/9, 1/9, 1/9, 1/9, 1/9, 1/36, 1/36, 1/36, 1/36], dtype=np.float64)

# Opposite direction indices (for bounce-back)
OPPOSITE = np.array([0, 3, 4, 1, 2, 7, 8, 5, 6], dtype=np.int32)

# Lattice sound speed squared
CS2 = 1.0 / 3.0
CS4 = CS2 * CS2

# Number of lattice velocities
Q = 9


def _readonly(array):
    array = np.ascontiguousarray(array)
    array.setflags(write=False)
    return array


class Lattice:
    """
    Immutable lattice descriptor.

    Bundles the discrete velocity set, its weights and the opposite-direction
    map so that every stage of a run reads the same constants.

    Parameters
    ----------
    directions : array_like
        Integer velocity vectors, shape (q, 2). Row 0 must be the rest vector.
    weights : array_like
        Positive weights, shape (q,), summing to 1.
    opposite : array_like
        Index of the reversed velocity for each direction, shape (q,).

    Raises
    ------
    ValueError
        If the descriptor is inconsistent.
    """

    def __init__(self, directions, weights, opposite):
        directions = np.asarray(directions, dtype=np.int32)
        weights = np.asarray(weights, dtype=np.float64)
        opposite = np.asarray(opposite, dtype=np.int32)

        if directions.ndim != 2 or directions.shape[1] != 2:
            raise ValueError(f"directions must have shape (q, 2), got {directions.shape}")
        q = directions.shape[0]
        if weights.shape != (q,) or opposite.shape != (q,):
            raise ValueError("weights and opposite must have one entry per direction")
        if np.any(directions[0] != 0):
            raise ValueError(f"direction 0 must be the rest vector, got {directions[0]}")
        if np.any(weights <= 0.0):
            raise ValueError("lattice weights must be positive")
        if not np.isclose(weights.sum(), 1.0, rtol=0.0, atol=1e-14):
            raise ValueError(f"lattice weights must sum to 1, got {weights.sum()}")
        if np.any(opposite < 0) or np.any(opposite >= q):
            raise ValueError("opposite indices out of range")
        if np.any(opposite[opposite] != np.arange(q)):
            raise ValueError("opposite map must be an involution")
        if np.any(directions[opposite] != -directions):
            raise ValueError("opposite map must reverse every direction")

        self._directions = _readonly(directions)
        self._weights = _readonly(weights)
        self._opposite = _readonly(opposite)
        self._ex = _readonly(directions[:, 0])
        self._ey = _readonly(directions[:, 1])

    @property
    def q(self):
        """Number of discrete velocities."""
        return self._directions.shape[0]

    @property
    def directions(self):
        return self._directions

    @property
    def weights(self):
        return self._weights

    @property
    def opposite(self):
        return self._opposite

    @property
    def ex(self):
        return self._ex

    @property
    def ey(self):
        return self._ey

    @property
    def right(self):
        """Directions with a positive x-component (moving toward the outlet)."""
        return np.flatnonzero(self._ex > 0)

    @property
    def left(self):
        """Directions with a negative x-component (moving toward the inlet)."""
        return np.flatnonzero(self._ex < 0)

    def __repr__(self):
        return f"Lattice(q={self.q})"


# Process-wide default descriptor
D2Q9 = Lattice(np.stack([EX, EY], axis=1), W, OPPOSITE)
