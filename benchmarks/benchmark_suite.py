"""
Benchmark Suite

Performance of the NumPy and Numba timesteps of the cylinder solver,
in Million Lattice Updates Per Second (MLUPS).
"""

import time
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from cylinder_lbm.config import SimulationConfig
from cylinder_lbm.solver import LBMSolver


def benchmark_solver(nx, ny, tau, num_steps, use_fast, warmup_steps=20):
    """
    Benchmark one solver configuration.

    Returns
    -------
    mlups : float
        Million Lattice Updates Per Second
    """
    config = SimulationConfig(
        nx=nx, ny=ny, tau=tau,
        cylinder=(nx / 4.0, ny / 2.0, ny / 8.0),
        seed=0, use_fast=use_fast,
    )
    solver = LBMSolver(config)

    # Warmup (JIT compilation)
    for _ in range(warmup_steps):
        solver.step()

    start = time.perf_counter()
    for _ in range(num_steps):
        solver.step()
    elapsed = time.perf_counter() - start

    return num_steps * nx * ny / elapsed / 1e6


def run_full_benchmark(grid_sizes=None, tau=0.6, num_steps=200):
    """Compare NumPy and Numba kernels across grid sizes."""
    if grid_sizes is None:
        grid_sizes = [
            (128, 32),
            (256, 64),
            (400, 100),
            (800, 200),
        ]

    print("=" * 60)
    print("LBM Performance Benchmark")
    print("=" * 60)
    print(f"Tau: {tau}, Steps: {num_steps}")
    print()

    results = {}
    for label, use_fast in (("numpy", False), ("numba", True)):
        print(f"Benchmarking {label}...")
        print("-" * 40)
        results[label] = {}
        for nx, ny in grid_sizes:
            mlups = benchmark_solver(nx, ny, tau, num_steps, use_fast)
            results[label][(nx, ny)] = mlups
            print(f"  {nx:4d} x {ny:4d}: {mlups:8.2f} MLUPS")
        print()

    print(f"{'Grid':>12} {'NumPy':>10} {'Numba':>10} {'Speedup':>10}")
    print("-" * 60)
    for nx, ny in grid_sizes:
        slow = results['numpy'][(nx, ny)]
        fast = results['numba'][(nx, ny)]
        print(f"{nx:5d} x {ny:4d} {slow:10.2f} {fast:10.2f} {fast / slow:9.1f}x")

    return results


if __name__ == "__main__":
    run_full_benchmark()
