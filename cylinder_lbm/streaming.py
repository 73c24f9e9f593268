"""
Streaming Step Implementations

Propagation of distribution functions along lattice velocities.

The streaming step moves each distribution f_i from site x to site x + e_i:
    f_i(x + e_i, t + dt) = f_i^out(x, t)

Two schemes are used:
- Push: Write f_i from x to x + e_i (scatter)
- Pull: Read f_i at x from x - e_i (gather)

Both wrap periodically in x and y. The result is always written to a
separate buffer so that every read sees the pre-step state; open edges are
emulated by patching the edge columns before streaming (see boundary.py).
"""

import numpy as np
from numba import njit, prange

from .errors import InvalidParameter
from .lattice import D2Q9


def _output_buffer(f, out):
    if out is None:
        return np.empty_like(f)
    if out.shape != f.shape:
        raise InvalidParameter(f"scratch buffer shape {out.shape} does not match {f.shape}")
    if np.may_share_memory(out, f):
        raise InvalidParameter("streaming cannot write into its own input")
    return out


def stream_periodic(f, out=None, lattice=D2Q9):
    """
    Streaming step with periodic boundary conditions.

    Uses push scheme: f_i(x + e_i) = f_i(x), implemented with np.roll.

    Parameters
    ----------
    f : ndarray
        Distribution functions, shape (Q, ny, nx)
    out : ndarray, optional
        Scratch buffer receiving the result. Must not alias ``f``.
    lattice : Lattice
        Velocity set descriptor

    Returns
    -------
    f_streamed : ndarray
        Post-streaming distribution
    """
    f_out = _output_buffer(f, out)

    for i in range(lattice.q):
        f_out[i] = np.roll(f[i], (lattice.ey[i], lattice.ex[i]), axis=(0, 1))

    return f_out


@njit(parallel=True, cache=True)
def stream_periodic_numba(f, f_out, ex, ey):
    """
    Numba-accelerated streaming with periodic boundaries.

    Uses pull scheme: every destination is written by exactly one thread,
    so rows can be processed concurrently.
    """
    q, ny, nx = f.shape

    for j in prange(ny):
        for i in range(nx):
            for k in range(q):
                # Source coordinates with periodic wrapping
                i_src = (i - ex[k] + nx) % nx
                j_src = (j - ey[k] + ny) % ny

                f_out[k, j, i] = f[k, j_src, i_src]


def stream_periodic_fast(f, out=None, lattice=D2Q9):
    """
    Fast streaming using Numba.

    Same contract as ``stream_periodic``.
    """
    f_out = _output_buffer(f, out)
    stream_periodic_numba(
        f, f_out,
        lattice.ex.astype(np.int64), lattice.ey.astype(np.int64),
    )
    return f_out
