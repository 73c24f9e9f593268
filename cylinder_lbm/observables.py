"""
Macroscopic Observable Extraction

Compute density, velocity, and derived quantities from distributions.

In LBM, macroscopic quantities are moments of the distribution function:
    - Density (0th moment): rho = sum_i(f_i)
    - Momentum (1st moment): rho*u = sum_i(f_i * e_i)

Obstacle cells hold no mass; their velocity is reported as zero.
"""

import numpy as np
from numba import njit, prange

from .lattice import D2Q9

# Densities at or below this are treated as empty cells
RHO_EPSILON = 1e-10


def compute_density(f):
    """
    Compute density field from distribution functions.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)

    Returns
    -------
    rho : ndarray
        Density field, shape (ny, nx)
    """
    return np.sum(f, axis=0)


def compute_velocity(f, rho=None, lattice=D2Q9):
    """
    Compute velocity field from distribution functions.

    rho * u = sum_i(f_i * e_i)

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    rho : ndarray, optional
        Density field, shape (ny, nx). If None, computed from f.
    lattice : Lattice
        Velocity set descriptor

    Returns
    -------
    ux, uy : ndarray
        Velocity components, shape (ny, nx)
    """
    if rho is None:
        rho = compute_density(f)

    rho_ux = np.tensordot(lattice.ex.astype(np.float64), f, axes=1)
    rho_uy = np.tensordot(lattice.ey.astype(np.float64), f, axes=1)

    # Avoid division by zero at empty (obstacle) cells
    occupied = rho > RHO_EPSILON
    rho_safe = np.where(occupied, rho, 1.0)

    ux = np.where(occupied, rho_ux / rho_safe, 0.0)
    uy = np.where(occupied, rho_uy / rho_safe, 0.0)

    return ux, uy


def compute_macroscopic(f, lattice=D2Q9):
    """
    Compute density and velocity from distribution functions.

    Returns
    -------
    rho, ux, uy : ndarray
        Fields of shape (ny, nx)
    """
    rho = compute_density(f)
    ux, uy = compute_velocity(f, rho, lattice)
    return rho, ux, uy


@njit(parallel=True, cache=True)
def compute_macroscopic_numba(f, rho, ux, uy, ex, ey, eps):
    """
    Numba-accelerated macroscopic quantity computation.

    Writes into the preallocated rho, ux, uy arrays.
    """
    q, ny, nx = f.shape

    for j in prange(ny):
        for i in range(nx):
            rho_local = 0.0
            rho_ux = 0.0
            rho_uy = 0.0

            for k in range(q):
                f_k = f[k, j, i]
                rho_local += f_k
                rho_ux += f_k * ex[k]
                rho_uy += f_k * ey[k]

            rho[j, i] = rho_local

            if rho_local > eps:
                ux[j, i] = rho_ux / rho_local
                uy[j, i] = rho_uy / rho_local
            else:
                ux[j, i] = 0.0
                uy[j, i] = 0.0


def compute_macroscopic_fast(f, lattice=D2Q9):
    """Fast macroscopic quantity computation using Numba."""
    q, ny, nx = f.shape
    rho = np.empty((ny, nx), dtype=np.float64)
    ux = np.empty((ny, nx), dtype=np.float64)
    uy = np.empty((ny, nx), dtype=np.float64)

    compute_macroscopic_numba(
        f, rho, ux, uy,
        lattice.ex.astype(np.float64), lattice.ey.astype(np.float64),
        RHO_EPSILON,
    )

    return rho, ux, uy


def macroscopic(field, lattice=D2Q9):
    """
    Macroscopic fields of a population field.

    Parameters
    ----------
    field : PopulationField or ndarray
        Populations, shape (Q, ny, nx)

    Returns
    -------
    density, velocity_x, velocity_y : ndarray
        Fields of shape (ny, nx)
    """
    f = getattr(field, "f", field)
    return compute_macroscopic(f, lattice)


def compute_vorticity(ux, uy, dx=1.0):
    """
    Compute vorticity field using central differences.

    omega = du_y/dx - du_x/dy

    Parameters
    ----------
    ux, uy : ndarray
        Velocity fields, shape (ny, nx)
    dx : float
        Grid spacing (default 1.0 in lattice units)

    Returns
    -------
    vorticity : ndarray
        Vorticity field, shape (ny, nx)
    """
    # Central differences with periodic wrap
    duy_dx = (np.roll(uy, -1, axis=1) - np.roll(uy, 1, axis=1)) / (2.0 * dx)
    dux_dy = (np.roll(ux, -1, axis=0) - np.roll(ux, 1, axis=0)) / (2.0 * dx)

    return duy_dx - dux_dy


def compute_velocity_magnitude(ux, uy):
    """|u| = sqrt(ux^2 + uy^2)"""
    return np.sqrt(ux * ux + uy * uy)


def total_mass(f):
    """Sum of all populations."""
    return float(np.sum(f))


def total_momentum(f, lattice=D2Q9):
    """Total momentum (sum_i f_i e_i over the whole grid)."""
    mom_x = float(np.sum(f * lattice.ex[:, None, None]))
    mom_y = float(np.sum(f * lattice.ey[:, None, None]))
    return mom_x, mom_y
