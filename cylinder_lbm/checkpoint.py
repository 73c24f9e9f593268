"""
Checkpointing

A checkpoint is the flat population buffer (Q * ny * nx float64 values) plus
the scalars needed to rebuild the run: grid dimensions, tau, the reference
density and the obstacle mask. Stored with ``numpy.savez_compressed``.
"""

import numpy as np

from .errors import InvalidParameter
from .field import PopulationField

CHECKPOINT_VERSION = 1


def save_checkpoint(path, field, tau, reference_density):
    """
    Write a population field and its run parameters to ``path``.

    Parameters
    ----------
    path : str or os.PathLike
        Target file; numpy appends ``.npz`` when missing
    field : PopulationField
        State to save
    tau : float
        Relaxation time of the run
    reference_density : float
        Reference density rho_0 of the run
    """
    np.savez_compressed(
        path,
        version=CHECKPOINT_VERSION,
        populations=field.flat,
        nx=field.nx,
        ny=field.ny,
        q=field.q,
        tau=float(tau),
        reference_density=float(reference_density),
        obstacle_mask=field.obstacle_mask,
    )


def load_checkpoint(path):
    """
    Read a checkpoint written by ``save_checkpoint``.

    Returns
    -------
    field : PopulationField
    metadata : dict
        ``tau``, ``reference_density``, ``nx``, ``ny``

    Raises
    ------
    InvalidParameter
        If the file is missing entries or its sizes disagree
    """
    with np.load(path) as data:
        missing = {"populations", "nx", "ny", "q", "tau", "reference_density",
                   "obstacle_mask"} - set(data.files)
        if missing:
            raise InvalidParameter(f"checkpoint is missing {sorted(missing)}")

        version = int(data["version"]) if "version" in data.files else CHECKPOINT_VERSION
        if version != CHECKPOINT_VERSION:
            raise InvalidParameter(f"unsupported checkpoint version {version}")

        nx, ny, q = int(data["nx"]), int(data["ny"]), int(data["q"])
        field = PopulationField.from_flat(
            data["populations"], nx, ny, data["obstacle_mask"], q=q
        )
        metadata = {
            "tau": float(data["tau"]),
            "reference_density": float(data["reference_density"]),
            "nx": nx,
            "ny": ny,
        }

    return field, metadata
