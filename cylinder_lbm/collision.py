"""
Collision Operators

BGK collision model for LBM.

The collision step models molecular interactions and drives the distribution
toward equilibrium. The relaxation time tau controls the viscosity:

    nu = c_s^2 * (tau - 0.5) * dt

where c_s^2 = 1/3 for D2Q9 and dt = 1 in lattice units.

Stability requires tau > 0.5 (nu > 0). This is a documented precondition:
``validate_tau`` only rejects tau <= 0 and warns otherwise.

Collision is local to each cell, so the Numba kernels split the grid by rows.
"""

import warnings

import numpy as np
from numba import njit, prange

from .errors import InvalidParameter
from .equilibrium import compute_equilibrium, compute_equilibrium_fast
from .lattice import CS2, D2Q9
from .observables import compute_macroscopic, compute_macroscopic_fast


def tau_from_viscosity(nu, dt=1.0, cs2=CS2):
    """
    Compute relaxation time from kinematic viscosity.

    tau = nu / (c_s^2 * dt) + 0.5
    """
    return nu / (cs2 * dt) + 0.5


def viscosity_from_tau(tau, dt=1.0, cs2=CS2):
    """
    Compute kinematic viscosity from relaxation time.

    nu = c_s^2 * (tau - 0.5) * dt

    Raises
    ------
    ValueError
        If tau <= 0.5 (no positive viscosity exists)
    """
    if tau <= 0.5:
        raise ValueError(f"tau must be > 0.5 for a positive viscosity, got {tau}")
    return cs2 * (tau - 0.5) * dt


def validate_tau(tau, name="tau"):
    """
    Validate a relaxation time before a run starts.

    Parameters
    ----------
    tau : float
        Relaxation time to validate
    name : str
        Name for error messages

    Raises
    ------
    InvalidParameter
        If tau <= 0 or is not finite

    Returns
    -------
    tau : float
        Validated tau value
    """
    tau = float(tau)
    if not np.isfinite(tau) or tau <= 0.0:
        raise InvalidParameter(f"{name} must be a positive finite number, got {tau}")
    if tau <= 0.5:
        warnings.warn(
            f"{name} = {tau} is at or below the stability limit 0.5; "
            f"the run is expected to diverge."
        )
    elif tau > 2.0:
        warnings.warn(
            f"{name} = {tau} is large, which may cause slow convergence. "
            f"Consider tau in range (0.5, 2.0) for efficiency."
        )
    return tau


def bgk_collision(f, f_eq, tau):
    """
    BGK (Bhatnagar-Gross-Krook) collision operator.

    f_out = f + (f_eq - f) / tau

    Parameters
    ----------
    f : ndarray
        Distribution functions (Q, ny, nx)
    f_eq : ndarray
        Equilibrium distribution (Q, ny, nx)
    tau : float
        Relaxation time

    Returns
    -------
    f_out : ndarray
        Post-collision distribution
    """
    omega = 1.0 / tau  # Relaxation frequency
    return f + omega * (f_eq - f)


@njit(parallel=True, cache=True)
def bgk_collision_numba(f, f_eq, omega, f_out):
    """Numba-accelerated BGK collision; ``f_out`` may be ``f`` itself."""
    q, ny, nx = f.shape

    for j in prange(ny):
        for i in range(nx):
            for k in range(q):
                f_out[k, j, i] = f[k, j, i] + omega * (f_eq[k, j, i] - f[k, j, i])


def bgk_collision_fast(f, f_eq, tau):
    """Numba-accelerated BGK collision returning a new array."""
    f_out = np.empty_like(f)
    bgk_collision_numba(f, f_eq, 1.0 / tau, f_out)
    return f_out


def collide(f, tau, lattice=D2Q9, use_fast=False):
    """
    Full collision step, in place.

    Recomputes density and velocity from ``f``, builds the equilibrium and
    relaxes every population toward it.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx). Modified in place.
    tau : float
        Relaxation time
    lattice : Lattice
        Velocity set descriptor
    use_fast : bool
        Use the Numba kernels

    Returns
    -------
    rho, ux, uy : ndarray
        Macroscopic fields the equilibrium was built from
    """
    if use_fast:
        rho, ux, uy = compute_macroscopic_fast(f, lattice)
        f_eq = compute_equilibrium_fast(rho, ux, uy, lattice)
        bgk_collision_numba(f, f_eq, 1.0 / tau, f)
    else:
        rho, ux, uy = compute_macroscopic(f, lattice)
        f_eq = compute_equilibrium(rho, ux, uy, lattice)
        f += (f_eq - f) / tau

    return rho, ux, uy
