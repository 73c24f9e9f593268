"""
Exception Hierarchy

Errors raised by the LBM core. Setup errors fail fast before any timestep
runs; numerical instability is reported on request through
``check_stability``.
"""


class LBMError(Exception):
    """Base class for all solver errors."""


class InvalidDomain(LBMError, ValueError):
    """Domain dimensions or obstacle geometry cannot be simulated."""


class InvalidParameter(LBMError, ValueError):
    """A scalar parameter or population array is malformed."""


class InstabilityDetected(LBMError, ArithmeticError):
    """
    Density became non-positive or non-finite at a fluid cell.

    Indicates tau, the reference density or the initial conditions lie
    outside the stable regime. The solver does not try to recover.
    """

    def __init__(self, message, cells=None):
        super().__init__(message)
        self.cells = cells
