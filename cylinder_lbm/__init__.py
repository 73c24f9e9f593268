"""
D2Q9 Lattice Boltzmann solver for 2D flow past an obstacle.

Core interface:
    initialize(width, height, obstacle_predicate, reference_density, seed)
    step(field, lattice, obstacle_mask, tau, n_iterations)
    macroscopic(field, lattice)
"""

from .boundary import EdgeCondition, ObstacleBounceBack
from .checkpoint import load_checkpoint, save_checkpoint
from .config import SimulationConfig
from .errors import InstabilityDetected, InvalidDomain, InvalidParameter, LBMError
from .field import PopulationField, initialize, initialize_populations, uniform_field
from .geometry import Domain, create_cylinder_mask, create_domain, disk
from .lattice import D2Q9, Lattice
from .observables import macroscopic
from .solver import LBMSolver, SolverState, check_stability, step

__version__ = "0.1.0"
