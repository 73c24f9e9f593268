"""
Population Field

The central mutable state of a run: one population per discrete direction at
every cell, stored as a single C-contiguous float64 block with shape
(Q, ny, nx). Each direction is a contiguous (ny, nx) plane, so the block can
be handed to Numba kernels or split across threads by rows without copying.

Density and velocity are never stored; they are recomputed from the
populations whenever they are needed.
"""

import numpy as np

from .errors import InvalidParameter
from .geometry import create_domain
from .lattice import D2Q9
from .observables import compute_velocity


class PopulationField:
    """
    Per-cell, per-direction populations.

    Parameters
    ----------
    f : ndarray
        Populations, shape (Q, ny, nx). Copied into a C-contiguous float64
        buffer when necessary.
    obstacle_mask : ndarray, optional
        Boolean mask, shape (ny, nx). Obstacle cells are expected to hold
        zero populations.

    Attributes
    ----------
    f : ndarray
        Population buffer, shape (Q, ny, nx)
    obstacle_mask : ndarray
        Boolean mask, shape (ny, nx)
    """

    def __init__(self, f, obstacle_mask=None):
        f = np.ascontiguousarray(f, dtype=np.float64)
        if f.ndim != 3:
            raise InvalidParameter(f"populations must have shape (Q, ny, nx), got {f.shape}")

        q, ny, nx = f.shape
        if obstacle_mask is None:
            obstacle_mask = np.zeros((ny, nx), dtype=bool)
        obstacle_mask = np.asarray(obstacle_mask, dtype=bool)
        if obstacle_mask.shape != (ny, nx):
            raise InvalidParameter(
                f"obstacle mask shape {obstacle_mask.shape} does not match grid {(ny, nx)}"
            )

        self.f = f
        self.obstacle_mask = obstacle_mask

    @property
    def q(self):
        return self.f.shape[0]

    @property
    def ny(self):
        return self.f.shape[1]

    @property
    def nx(self):
        return self.f.shape[2]

    @property
    def shape(self):
        return self.f.shape

    @property
    def flat(self):
        """Flat view of the buffer, length Q * ny * nx."""
        return self.f.reshape(-1)

    def offset(self, x, y, i):
        """Index of population ``i`` at cell ``(x, y)`` in ``flat``."""
        return (i * self.ny + y) * self.nx + x

    def density(self):
        return np.sum(self.f, axis=0)

    def velocity(self, lattice=D2Q9):
        return compute_velocity(self.f, lattice=lattice)

    def copy(self):
        return PopulationField(self.f.copy(), self.obstacle_mask.copy())

    @classmethod
    def from_flat(cls, data, nx, ny, obstacle_mask=None, q=D2Q9.q):
        """
        Rebuild a field from a flat buffer of ``q * ny * nx`` values.

        Raises
        ------
        InvalidParameter
            If the buffer length does not match the dimensions.
        """
        data = np.asarray(data, dtype=np.float64)
        if data.size != q * ny * nx:
            raise InvalidParameter(
                f"expected {q * ny * nx} populations for a {nx}x{ny} grid, got {data.size}"
            )
        return cls(data.reshape(q, ny, nx).copy(), obstacle_mask)

    def __repr__(self):
        return f"PopulationField(nx={self.nx}, ny={self.ny}, q={self.q})"


def initialize_populations(domain, reference_density=1.0, seed=None,
                           noise=0.01, bias=0.3, bias_direction=1,
                           lattice=D2Q9):
    """
    Create the initial population field for a domain.

    Every population starts at 1 plus uniform noise in [0, noise). ``bias`` is
    added on ``bias_direction`` to seed a net flow, then every cell is
    rescaled so that its populations sum to ``reference_density``. Obstacle
    cells are zeroed last.

    Parameters
    ----------
    domain : Domain
        Grid dimensions and obstacle mask
    reference_density : float
        Target density rho_0 at every fluid cell
    seed : int or numpy.random.Generator, optional
        Seed for the noise; a fixed seed makes the run reproducible
    noise : float
        Width of the uniform noise
    bias : float
        Amount added to ``bias_direction`` before rescaling
    bias_direction : int
        Direction index that receives the bias (1 = +x)
    lattice : Lattice
        Velocity set descriptor

    Returns
    -------
    field : PopulationField
    """
    if not reference_density > 0.0:
        raise InvalidParameter(f"reference density must be positive, got {reference_density}")
    if not 0 <= bias_direction < lattice.q:
        raise InvalidParameter(f"bias direction must be in [0, {lattice.q}), got {bias_direction}")
    if noise < 0.0 or bias < 0.0:
        raise InvalidParameter("noise and bias must be non-negative")

    rng = np.random.default_rng(seed)
    f = 1.0 + noise * rng.random((lattice.q, domain.ny, domain.nx))
    f[bias_direction] += bias

    f *= reference_density / np.sum(f, axis=0)
    f[:, domain.obstacle_mask] = 0.0

    return PopulationField(f, domain.obstacle_mask)


def initialize(width, height, obstacle_predicate=None, reference_density=1.0,
               seed=None, **kwargs):
    """
    Build a domain and its initial population field in one call.

    Extra keyword arguments are passed to ``initialize_populations``.
    """
    domain = create_domain(width, height, obstacle_predicate)
    return initialize_populations(domain, reference_density, seed, **kwargs)


def uniform_field(nx, ny, density=1.0, obstacle_mask=None, lattice=D2Q9):
    """Field at rest equilibrium: population w_i * density everywhere."""
    f = np.empty((lattice.q, ny, nx), dtype=np.float64)
    f[:] = (lattice.weights * density)[:, None, None]
    if obstacle_mask is not None:
        f[:, np.asarray(obstacle_mask, dtype=bool)] = 0.0
    return PopulationField(f, obstacle_mask)
