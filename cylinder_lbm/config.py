"""Simulation config shared by the driver and the example scripts."""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .boundary import EdgeCondition
from .collision import validate_tau, viscosity_from_tau
from .errors import InvalidDomain, InvalidParameter
from .geometry import create_domain, disk
from .lattice import CS2, Q


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable parameters of one LBM run.

    ``cylinder`` is ``(cx, cy, radius)`` in lattice units, or None for an
    obstacle-free domain. Validation runs on construction, so a config that
    exists can always be simulated.
    """
    nx: int = 400
    ny: int = 100
    tau: float = 0.6
    reference_density: float = 1.0
    cylinder: Optional[Tuple[float, float, float]] = (80.0, 50.0, 10.0)
    inlet: EdgeCondition = EdgeCondition.ZERO_GRADIENT
    outlet: EdgeCondition = EdgeCondition.ZERO_GRADIENT
    seed: Optional[int] = None
    noise: float = 0.01
    bias: float = 0.3
    bias_direction: int = 1
    use_fast: bool = False

    def __post_init__(self):
        # Accept plain strings for the edge conditions
        object.__setattr__(self, "inlet", EdgeCondition(self.inlet))
        object.__setattr__(self, "outlet", EdgeCondition(self.outlet))
        if self.cylinder is not None:
            object.__setattr__(self, "cylinder", tuple(float(v) for v in self.cylinder))
        self.validate()

    def validate(self):
        """
        Raises
        ------
        InvalidDomain
            Bad dimensions or obstacle
        InvalidParameter
            Bad scalar parameter
        """
        for name in ("nx", "ny"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)) or value <= 0:
                raise InvalidDomain(f"{name} must be a positive integer, got {value!r}")
        open_edges = EdgeCondition.ZERO_GRADIENT in (self.inlet, self.outlet)
        if open_edges and self.nx < 3:
            raise InvalidDomain(f"open edges need at least 3 columns, got nx={self.nx}")
        if self.cylinder is not None and len(self.cylinder) != 3:
            raise InvalidDomain(f"cylinder must be (cx, cy, radius), got {self.cylinder}")

        validate_tau(self.tau)
        if not self.reference_density > 0.0:
            raise InvalidParameter(
                f"reference_density must be positive, got {self.reference_density}"
            )
        if not 0 <= self.bias_direction < Q:
            raise InvalidParameter(f"bias_direction must be in [0, {Q}), got {self.bias_direction}")
        if self.noise < 0.0 or self.bias < 0.0:
            raise InvalidParameter("noise and bias must be non-negative")

    @property
    def omega(self):
        """Relaxation frequency 1/tau."""
        return 1.0 / self.tau

    @property
    def viscosity(self):
        """Kinematic viscosity; raises ValueError when tau <= 0.5."""
        return viscosity_from_tau(self.tau)

    @property
    def sound_speed(self):
        return float(np.sqrt(CS2))

    def reynolds_number(self, velocity):
        """Re = U * D / nu based on the cylinder diameter."""
        if self.cylinder is None:
            raise InvalidDomain("Reynolds number needs a cylinder diameter")
        return velocity * 2.0 * self.cylinder[2] / self.viscosity

    def obstacle_predicate(self):
        if self.cylinder is None:
            return None
        return disk(*self.cylinder)

    def build_domain(self):
        return create_domain(self.nx, self.ny, self.obstacle_predicate())
