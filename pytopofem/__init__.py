"""pytopofem – finite-element state solves and adjoint sensitivities for
topology optimization."""
import logging

from .errors import (
    ConfigurationError, GeometryError, LinearSolverError,
    NewtonConvergenceError, PreconditionError,
)
from .config import load_parameters
from .core import Mesh, SpatialModel, get_element
from .problem import EllipticProblem, Solutions

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "EllipticProblem", "Solutions", "Mesh", "SpatialModel", "get_element",
    "load_parameters", "ConfigurationError", "GeometryError",
    "LinearSolverError", "NewtonConvergenceError", "PreconditionError",
]
