"""
Flow Around Cylinder Simulation

Runs the open-channel cylinder case and renders snapshots of the velocity
magnitude and vorticity. The solver itself does no I/O; this script is the
consumer that polls the macroscopic fields every N steps.

Physical setup:
- Cylinder at one quarter of the channel length, centred vertically
- Zero-gradient inlet and outlet, periodic top/bottom
- Flow seeded by a +x bias on the initial populations
"""

import os
import sys

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cylinder_lbm.checkpoint import save_checkpoint
from cylinder_lbm.config import SimulationConfig
from cylinder_lbm.solver import LBMSolver


class FrameRecorder:
    """Collects velocity-magnitude and vorticity frames from solver callbacks."""

    def __init__(self, obstacle_mask):
        self.obstacle_mask = obstacle_mask
        self.steps = []
        self.frames = []

    def __call__(self, step_count, fields):
        vorticity = fields['vorticity'].copy()
        speed = fields['velocity_mag'].copy()
        vorticity[self.obstacle_mask] = np.nan
        speed[self.obstacle_mask] = np.nan
        self.steps.append(step_count)
        self.frames.append((speed, vorticity))


def plot_frame(recorder, config, index=-1, save_path=None):
    """Plot velocity magnitude and vorticity for one recorded frame."""
    speed, vorticity = recorder.frames[index]
    cx, cy, radius = config.cylinder

    fig, axes = plt.subplots(2, 1, figsize=(12, 6))

    ax = axes[0]
    im = ax.imshow(speed, origin='lower', cmap='viridis', aspect='equal')
    ax.set_title(f'Velocity Magnitude (step {recorder.steps[index]})')
    plt.colorbar(im, ax=ax, label='|u|')

    ax = axes[1]
    vmax = np.nanpercentile(np.abs(vorticity), 95)
    im = ax.imshow(vorticity, origin='lower', cmap='bwr', vmin=-vmax, vmax=vmax, aspect='equal')
    ax.set_title('Vorticity')
    plt.colorbar(im, ax=ax, label='omega')

    for ax in axes:
        ax.add_patch(plt.Circle((cx, cy), radius, color='gray', fill=True))

    plt.tight_layout()

    if save_path:
        os.makedirs(os.path.dirname(save_path) or '.', exist_ok=True)
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved: {save_path}")

    return fig


def run_cylinder_flow(nx=400, ny=100, tau=0.6, num_steps=4000, plot_every=100,
                      seed=42, use_fast=True, verbose=True):
    """Run the cylinder case and return the solver and recorded frames."""
    config = SimulationConfig(
        nx=nx, ny=ny, tau=tau,
        cylinder=(nx / 4.0, ny / 2.0, ny / 4.0),
        seed=seed, use_fast=use_fast,
    )

    if verbose:
        print("Cylinder Flow Simulation")
        print("=" * 50)
        print(f"Domain: {nx} x {ny}")
        print(f"Cylinder: center=({config.cylinder[0]}, {config.cylinder[1]}), r={config.cylinder[2]}")
        print(f"Tau: {config.tau:.4f}, Nu: {config.viscosity:.6f}")

    solver = LBMSolver(config)
    recorder = FrameRecorder(solver.obstacle_mask)

    solver.run(num_steps, callback=recorder, callback_interval=plot_every,
               check_interval=plot_every, verbose=verbose,
               report_interval=max(num_steps // 10, 1))

    if verbose:
        fx, fy = solver.get_obstacle_force()
        print(f"Obstacle force: Fx = {fx:.5f}, Fy = {fy:.5f}")

    return solver, recorder


def main(output_dir="results/cylinder"):
    """Run the default case and save the last frame and final state."""
    solver, recorder = run_cylinder_flow(nx=400, ny=100, tau=0.6, num_steps=4000)
    os.makedirs(output_dir, exist_ok=True)

    if recorder.frames:
        plot_frame(recorder, solver.config,
                   save_path=os.path.join(output_dir, "cylinder_flow.png"))
    save_checkpoint(os.path.join(output_dir, "final_state.npz"), solver.field,
                    solver.tau, solver.config.reference_density)


if __name__ == "__main__":
    main()
