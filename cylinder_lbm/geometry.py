"""
Domain Geometry

Builds the static obstacle mask for a simulation domain.

Masks use the same (ny, nx) layout as the macroscopic fields: ``mask[y, x]``
is True where the no-slip condition applies. Cell centres sit on integer
coordinates.
"""

import numpy as np

from .errors import InvalidDomain


def create_cylinder_mask(nx, ny, cx, cy, radius):
    """
    Create a solid mask for a circular cylinder.

    Parameters
    ----------
    nx, ny : int
        Grid dimensions
    cx, cy : float
        Cylinder center coordinates
    radius : float
        Cylinder radius

    Returns
    -------
    mask : ndarray
        Boolean mask (True for solid), shape (ny, nx)
    """
    return disk(cx, cy, radius)(*np.meshgrid(np.arange(nx), np.arange(ny)))


def disk(cx, cy, radius):
    """
    Obstacle predicate for a disk.

    Returns a function of the coordinate grids ``(X, Y)`` that is True for
    every cell centre within ``radius`` of ``(cx, cy)``.
    """
    if radius <= 0:
        raise InvalidDomain(f"disk radius must be positive, got {radius}")

    def inside(X, Y):
        return (X - cx) ** 2 + (Y - cy) ** 2 <= radius ** 2

    return inside


class Domain:
    """
    Immutable simulation domain.

    Parameters
    ----------
    nx, ny : int
        Number of lattice cells in x and y
    obstacle_mask : ndarray
        Boolean mask, shape (ny, nx). Stored as a read-only copy.
    """

    def __init__(self, nx, ny, obstacle_mask):
        _check_dimensions(nx, ny)
        mask = np.array(obstacle_mask, dtype=bool)
        if mask.shape != (ny, nx):
            raise InvalidDomain(
                f"obstacle mask must have shape {(ny, nx)}, got {mask.shape}"
            )
        if mask.all():
            raise InvalidDomain("obstacle covers the entire domain")
        mask.setflags(write=False)

        self.nx = int(nx)
        self.ny = int(ny)
        self.obstacle_mask = mask

    @property
    def shape(self):
        return (self.ny, self.nx)

    @property
    def n_solid(self):
        return int(self.obstacle_mask.sum())

    @property
    def n_fluid(self):
        return self.nx * self.ny - self.n_solid

    def __repr__(self):
        return f"Domain(nx={self.nx}, ny={self.ny}, solid={self.n_solid})"


def create_domain(width, height, obstacle=None):
    """
    Build a domain from its dimensions and an obstacle description.

    Parameters
    ----------
    width, height : int
        Number of lattice cells in x and y
    obstacle : callable, ndarray or None
        Predicate ``f(X, Y) -> bool array`` evaluated on the cell-centre grid,
        a precomputed boolean mask of shape (height, width), or None for an
        obstacle-free domain.

    Returns
    -------
    domain : Domain

    Raises
    ------
    InvalidDomain
        Non-positive dimensions, an obstacle that covers the whole domain,
        or a predicate that selects no cell at all.
    """
    _check_dimensions(width, height)

    if obstacle is None:
        mask = np.zeros((height, width), dtype=bool)
    elif callable(obstacle):
        X, Y = np.meshgrid(np.arange(width), np.arange(height))
        mask = np.broadcast_to(np.asarray(obstacle(X, Y), dtype=bool), (height, width))
        if not mask.any():
            raise InvalidDomain("obstacle lies entirely outside the domain")
    else:
        mask = obstacle

    return Domain(width, height, mask)


def _check_dimensions(nx, ny):
    for name, value in (("width", nx), ("height", ny)):
        if isinstance(value, bool) or int(value) != value or value <= 0:
            raise InvalidDomain(f"{name} must be a positive integer, got {value}")
