"""
Simulation Driver

Sequences one LBM timestep as

    open-edge patch -> stream -> bounce-back reflect -> collide -> restore

and repeats it a fixed number of times. The order is load-bearing: collision
reads density and velocity from the fully streamed field.

Two entry points:
- ``step``: a pure function of its inputs, returning a new field
- ``LBMSolver``: owns the population and scratch buffers for a configured
  run, reports progress and hands consistent snapshots to a callback
"""

import time
from enum import Enum

import numpy as np

from .boundary import EdgeCondition, ObstacleBounceBack, apply_open_boundaries
from .collision import collide, validate_tau
from .errors import InstabilityDetected, InvalidParameter
from .field import PopulationField, initialize_populations
from .lattice import D2Q9
from .observables import (
    compute_macroscopic, compute_macroscopic_fast,
    compute_velocity_magnitude, compute_vorticity,
    total_mass, total_momentum,
)
from .streaming import stream_periodic, stream_periodic_fast


def _advance(f, scratch, tau, bounce_back, inlet, outlet, lattice, use_fast):
    """One timestep. Returns the buffer holding the new state and the spare."""
    apply_open_boundaries(f, inlet, outlet, lattice, bounce_back.mask)

    if use_fast:
        stream_periodic_fast(f, out=scratch, lattice=lattice)
        bounce_back.reflect_fast(scratch)
    else:
        stream_periodic(f, out=scratch, lattice=lattice)
        bounce_back.reflect(scratch)

    collide(scratch, tau, lattice, use_fast)
    bounce_back.restore(scratch)

    return scratch, f


def step(field, lattice=D2Q9, obstacle_mask=None, tau=0.6, n_iterations=1,
         inlet=EdgeCondition.ZERO_GRADIENT, outlet=EdgeCondition.ZERO_GRADIENT,
         use_fast=False):
    """
    Advance a population field by ``n_iterations`` timesteps.

    The input field is not modified.

    Parameters
    ----------
    field : PopulationField
        Current state
    lattice : Lattice
        Velocity set descriptor
    obstacle_mask : ndarray, optional
        Boolean mask, shape (ny, nx). Defaults to the field's own mask.
    tau : float
        Relaxation time (tau > 0.5 for a stable run)
    n_iterations : int
        Number of timesteps; 0 returns a copy
    inlet, outlet : EdgeCondition
        Treatment of the left and right edge. Use PERIODIC for both to get a
        fully periodic domain.
    use_fast : bool
        Use the Numba kernels

    Returns
    -------
    field : PopulationField
        Field after the last timestep
    """
    tau = validate_tau(tau)
    if int(n_iterations) != n_iterations or n_iterations < 0:
        raise InvalidParameter(f"n_iterations must be a non-negative integer, got {n_iterations}")
    if obstacle_mask is None:
        obstacle_mask = field.obstacle_mask

    result = PopulationField(field.f.copy(), obstacle_mask)
    bounce_back = ObstacleBounceBack(result.obstacle_mask, lattice)
    # Obstacle cells start empty; populations streamed out of them must be zero
    bounce_back.restore(result.f)

    f = result.f
    scratch = np.empty_like(f)
    for _ in range(int(n_iterations)):
        f, scratch = _advance(f, scratch, tau, bounce_back, inlet, outlet, lattice, use_fast)

    result.f = f
    return result


def check_stability(field):
    """
    Raise if the field left the stable regime.

    Parameters
    ----------
    field : PopulationField

    Raises
    ------
    InstabilityDetected
        If any fluid cell has non-positive or non-finite density
    """
    rho = field.density()
    fluid = ~field.obstacle_mask
    bad = fluid & ~(np.isfinite(rho) & (rho > 0.0))
    if bad.any():
        cells = np.argwhere(bad)
        y, x = cells[0]
        raise InstabilityDetected(
            f"density invalid at {len(cells)} fluid cell(s), first at (x={x}, y={y}): "
            f"rho={rho[y, x]}",
            cells=cells,
        )


class SolverState(Enum):
    INITIALIZED = "initialized"
    STEPPING = "stepping"
    COMPLETED = "completed"


class LBMSolver:
    """
    Stateful driver for flow past an obstacle.

    Parameters
    ----------
    config : SimulationConfig
        Run parameters
    lattice : Lattice
        Velocity set descriptor

    Attributes
    ----------
    field : PopulationField
        Current populations
    state : SolverState
        INITIALIZED until the first step, STEPPING while ``run`` executes,
        COMPLETED once it returns. ``run`` may be called again to continue.
    step_count : int
        Timesteps performed so far
    """

    def __init__(self, config, lattice=D2Q9):
        self.config = config
        self.lattice = lattice
        self.tau = config.tau
        self.use_fast = config.use_fast

        self.domain = config.build_domain()
        self.field = initialize_populations(
            self.domain,
            reference_density=config.reference_density,
            seed=config.seed,
            noise=config.noise,
            bias=config.bias,
            bias_direction=config.bias_direction,
            lattice=lattice,
        )
        self.bounce_back = ObstacleBounceBack(self.domain.obstacle_mask, lattice)

        # Scratch buffer, swapped with the population buffer every step
        self._scratch = np.empty_like(self.field.f)

        self.state = SolverState.INITIALIZED
        self.step_count = 0
        self.total_time = 0.0

    @property
    def nx(self):
        return self.domain.nx

    @property
    def ny(self):
        return self.domain.ny

    @property
    def obstacle_mask(self):
        return self.domain.obstacle_mask

    def step(self):
        """
        Perform one LBM timestep.

        Returns
        -------
        dt : float
            Time taken for this step (seconds)
        """
        start = time.perf_counter()

        self.state = SolverState.STEPPING

        self.field.f, self._scratch = _advance(
            self.field.f, self._scratch, self.tau, self.bounce_back,
            self.config.inlet, self.config.outlet, self.lattice, self.use_fast,
        )

        dt = time.perf_counter() - start
        self.step_count += 1
        self.total_time += dt
        return dt

    def run(self, num_steps, callback=None, callback_interval=100,
            check_interval=None, verbose=False, report_interval=1000):
        """
        Run the simulation for a fixed number of steps.

        Parameters
        ----------
        num_steps : int
            Number of timesteps to run
        callback : callable, optional
            Called as ``callback(step_count, fields)`` every
            ``callback_interval`` steps with the dict from ``get_fields``
        callback_interval : int
            Steps between callback invocations
        check_interval : int, optional
            Steps between ``check_stability`` calls; None disables the check
        verbose : bool
            Print progress information
        report_interval : int
            Steps between progress reports

        Returns
        -------
        mlups : float
            Performance in Million Lattice Updates Per Second
        """
        if int(num_steps) != num_steps or num_steps < 0:
            raise InvalidParameter(f"num_steps must be a non-negative integer, got {num_steps}")
        if callback is not None and callback_interval <= 0:
            raise InvalidParameter(f"callback_interval must be positive, got {callback_interval}")
        if check_interval is not None and check_interval <= 0:
            raise InvalidParameter(f"check_interval must be positive, got {check_interval}")

        self.state = SolverState.STEPPING
        start = time.perf_counter()

        for step_index in range(int(num_steps)):
            self.step()

            if check_interval and (step_index + 1) % check_interval == 0:
                check_stability(self.field)

            if callback is not None and (step_index + 1) % callback_interval == 0:
                callback(self.step_count, self.get_fields())

            if verbose and (step_index + 1) % report_interval == 0:
                elapsed = time.perf_counter() - start
                mlups = (step_index + 1) * self.nx * self.ny / elapsed / 1e6
                print(f"Step {step_index + 1}/{num_steps}, MLUPS: {mlups:.2f}")

        total = time.perf_counter() - start
        mlups = num_steps * self.nx * self.ny / total / 1e6 if total > 0 else 0.0

        if verbose:
            print(f"Completed {num_steps} steps in {total:.2f}s")
            print(f"Performance: {mlups:.2f} MLUPS")

        self.state = SolverState.COMPLETED
        return mlups

    def macroscopic(self):
        """Density and velocity of the current field."""
        if self.use_fast:
            return compute_macroscopic_fast(self.field.f, self.lattice)
        return compute_macroscopic(self.field.f, self.lattice)

    def get_fields(self):
        """Snapshot of the macroscopic fields (fresh arrays)."""
        rho, ux, uy = self.macroscopic()
        return {
            'rho': rho,
            'ux': ux,
            'uy': uy,
            'velocity_mag': compute_velocity_magnitude(ux, uy),
            'vorticity': compute_vorticity(ux, uy),
        }

    def get_total_mass(self):
        """Return total mass."""
        return total_mass(self.field.f)

    def get_total_momentum(self):
        """Return total momentum (Fx, Fy)."""
        return total_momentum(self.field.f, self.lattice)

    def get_obstacle_force(self):
        """Momentum-exchange force on the obstacle from the last step."""
        return self.bounce_back.last_force

    def check_stability(self):
        check_stability(self.field)
