"""Exception taxonomy for the heat-balance solver.

``InvalidInputError`` is raised before any iteration starts.
``ConvergenceError`` means the iteration itself failed, and no part of
the working state may be used as a result.
"""

from __future__ import annotations


class HeatBalanceError(Exception):
    """Base class for all heat-balance failures."""


class InvalidInputError(HeatBalanceError, ValueError):
    """Inputs violate a precondition of the heat-balance method."""


class ConvergenceError(HeatBalanceError, RuntimeError):
    """The fixed-point iteration did not reach a valid solution.

    Parameters
    ----------
    message : str
        Human-readable description.
    iterations : int
        Number of completed passes when the failure was detected.
    residual : float
        Last convergence metric Σ|ΔT| [°F] (may be NaN).
    """

    def __init__(self, message: str, iterations: int = 0, residual: float = float("nan")) -> None:
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual


class SolveTimeoutError(ConvergenceError):
    """The configured wall-clock limit was exceeded before convergence."""
