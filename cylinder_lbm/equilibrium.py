"""
Equilibrium Distribution Functions

Maxwell-Boltzmann equilibrium for D2Q9 lattice.

The equilibrium distribution is the Maxwell-Boltzmann distribution truncated
to second order in velocity:

    f_i^eq = w_i * rho * [1 + (e_i . u)/c_s^2 + (e_i . u)^2/(2*c_s^4) - u^2/(2*c_s^2)]

With c_s^2 = 1/3 this is the familiar

    f_i^eq = w_i * rho * (1 + 3 (e_i . u) + 4.5 (e_i . u)^2 - 1.5 u^2)

At rest (u = 0) the equilibrium reduces to w_i * rho.
"""

import numpy as np
from numba import njit, prange

from .lattice import CS2, CS4, D2Q9


def compute_equilibrium(rho, ux, uy, lattice=D2Q9):
    """
    Compute equilibrium distribution for all lattice sites.

    Parameters
    ----------
    rho : ndarray
        Density field, shape (ny, nx)
    ux : ndarray
        X-velocity field, shape (ny, nx)
    uy : ndarray
        Y-velocity field, shape (ny, nx)
    lattice : Lattice
        Velocity set descriptor

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution, shape (Q, ny, nx)
    """
    ny, nx = rho.shape
    f_eq = np.empty((lattice.q, ny, nx), dtype=np.float64)

    u_sq = ux * ux + uy * uy

    for i in range(lattice.q):
        eu = lattice.ex[i] * ux + lattice.ey[i] * uy
        f_eq[i] = lattice.weights[i] * rho * (
            1.0
            + eu / CS2
            + (eu * eu) / (2.0 * CS4)
            - u_sq / (2.0 * CS2)
        )

    return f_eq


@njit(parallel=True, cache=True)
def compute_equilibrium_numba(rho, ux, uy, f_eq, ex, ey, w, cs2, cs4):
    """
    Numba-accelerated equilibrium computation.

    Rows of the grid are distributed across threads.
    """
    q, ny, nx = f_eq.shape

    for j in prange(ny):
        for i in range(nx):
            rho_ij = rho[j, i]
            ux_ij = ux[j, i]
            uy_ij = uy[j, i]
            u_sq = ux_ij * ux_ij + uy_ij * uy_ij

            for k in range(q):
                eu = ex[k] * ux_ij + ey[k] * uy_ij
                f_eq[k, j, i] = w[k] * rho_ij * (
                    1.0
                    + eu / cs2
                    + (eu * eu) / (2.0 * cs4)
                    - u_sq / (2.0 * cs2)
                )


def compute_equilibrium_fast(rho, ux, uy, lattice=D2Q9):
    """
    Fast equilibrium computation using Numba.

    Same contract as ``compute_equilibrium``.
    """
    ny, nx = rho.shape
    f_eq = np.empty((lattice.q, ny, nx), dtype=np.float64)

    compute_equilibrium_numba(
        np.ascontiguousarray(rho, dtype=np.float64),
        np.ascontiguousarray(ux, dtype=np.float64),
        np.ascontiguousarray(uy, dtype=np.float64),
        f_eq,
        lattice.ex.astype(np.float64),
        lattice.ey.astype(np.float64),
        np.array(lattice.weights),
        CS2,
        CS4,
    )

    return f_eq


def equilibrium_single_site(rho, ux, uy, lattice=D2Q9):
    """
    Compute equilibrium distribution for a single lattice site.

    Parameters
    ----------
    rho : float
        Density at the site
    ux, uy : float
        Velocity at the site

    Returns
    -------
    f_eq : ndarray
        Equilibrium distribution, shape (Q,)
    """
    u_sq = ux * ux + uy * uy
    eu = lattice.ex * ux + lattice.ey * uy
    return lattice.weights * rho * (
        1.0 + eu / CS2 + (eu * eu) / (2.0 * CS4) - u_sq / (2.0 * CS2)
    )
