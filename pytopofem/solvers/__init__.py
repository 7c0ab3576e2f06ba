from .linear_solver import LinearSolver, LinearSolverParameters, LinearSystemType
from .nonlinear_solver import NewtonParameters, NewtonResult, NewtonRaphsonSolver

__all__ = [
    "LinearSolver", "LinearSolverParameters", "LinearSystemType",
    "NewtonParameters", "NewtonResult", "NewtonRaphsonSolver",
]
