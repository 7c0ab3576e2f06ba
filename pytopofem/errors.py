"""pytopofem.errors
Exception types raised across the package.  Nothing here is retried
internally; every error propagates to the direct caller.
"""


class ConfigurationError(ValueError):
    """Unknown criterion, missing parameter block, mismatched BC arrays, ..."""


class GeometryError(RuntimeError):
    """Degenerate or inverted cell (non-positive volume)."""

    def __init__(self, message, cells=None):
        super().__init__(message)
        self.cells = cells


class LinearSolverError(RuntimeError):
    """The linear solver failed to produce a finite solution."""


class NewtonConvergenceError(RuntimeError):
    """Raised by a strict Newton solve that reached its iteration limit."""


class PreconditionError(RuntimeError):
    """Empty solution database, missing criterion handle, ..."""
