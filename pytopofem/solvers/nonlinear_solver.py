r"""
nonlinear_solver.py  –  Newton–Raphson driver for elliptic residuals
===================================================================
Repeats *assemble → constrain → solve → update* until the residual or the
increment drops below tolerance or the iteration limit is reached::

    for k in range(max_iterations):
        R = F(u)                       # residual incl. constraint violation
        |R| < residual_tol  → converged
        J = dF/du ; constrain(J, -R, scale = 1 if k == 0 else 0)
        J du = -R ; u += du
        |du| < increment_tol → converged

Constraints are imposed on the first increment only; later increments
keep the constrained dofs fixed.  A single-iteration solve is one linear
solve and always counts as converged.  Running out of iterations is a
warning unless ``strict`` is set.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List

import numpy as np

from pytopofem.config import sublist
from pytopofem.errors import ConfigurationError, NewtonConvergenceError
from pytopofem.solvers.linear_solver import LinearSolver

logger = logging.getLogger(__name__)

__all__ = ["NewtonParameters", "NewtonResult", "NewtonRaphsonSolver"]


# ----------------------------------------------------------------------------
#  Parameter dataclasses
# ----------------------------------------------------------------------------

@dataclass
class NewtonParameters:
    """Settings that govern a *single* Newton solve."""

    max_iterations: int = 1             # 1 → linear problem, one solve
    residual_tol: float = 1e-10         # ‖R‖₂ convergence threshold
    increment_tol: float = 1e-12        # ‖Δu‖₂ convergence threshold
    strict: bool = False                # raise instead of warn when not converged

    @classmethod
    def from_params(cls, params: Dict) -> "NewtonParameters":
        block = sublist(params, "Newton Iteration")
        out = cls(
            max_iterations=int(block.get("Maximum Iterations", cls.max_iterations)),
            residual_tol=float(block.get("Residual Tolerance", cls.residual_tol)),
            increment_tol=float(block.get("Increment Tolerance", cls.increment_tol)),
            strict=bool(block.get("Strict", cls.strict)),
        )
        if out.max_iterations < 1:
            raise ConfigurationError("Newton Iteration: 'Maximum Iterations' must be at least 1.")
        return out


@dataclass
class NewtonResult:
    iterations: int = 0
    converged: bool = False
    residual_norms: List[float] = field(default_factory=list)
    increment_norms: List[float] = field(default_factory=list)


# ----------------------------------------------------------------------------
#  Solver
# ----------------------------------------------------------------------------

class NewtonRaphsonSolver:
    """
    Parameters
    ----------
    vector_function
        Object with ``value(u, z, n)`` and ``gradient_u(u, z, n)``.
    linear_solver
        :class:`LinearSolver` used for every increment.
    constraints
        ``constraints(matrix, rhs, scale) -> matrix`` imposing the essential
        boundary conditions; ``constrained()`` returning ``(dofs, values)``
        is read for the residual norm.
    """

    def __init__(self, vector_function, linear_solver: LinearSolver,
                 params: NewtonParameters = NewtonParameters(), *,
                 constraints: Callable = None, constrained: Callable = None):
        self.vector_function = vector_function
        self.linear_solver = linear_solver
        self.np = params
        self.constraints = constraints
        self.constrained = constrained

    def _residual_norm(self, residual: np.ndarray, state: np.ndarray) -> float:
        r = residual.copy()
        if self.constrained is not None:
            dofs, values = self.constrained()
            r[dofs] = values - state[dofs]
        return float(np.linalg.norm(r))

    def solve(self, state: np.ndarray, control: np.ndarray, node_state=None) -> NewtonResult:
        """Drive ``F(state, control) = 0``; *state* is updated in place."""
        vf = self.vector_function
        result = NewtonResult()
        nonlinear = self.np.max_iterations > 1

        for it in range(self.np.max_iterations):
            residual = vf.value(state, control, node_state)
            if nonlinear:
                norm_r = self._residual_norm(residual, state)
                result.residual_norms.append(norm_r)
                logger.info("Newton %d: |R| = %.3e", it + 1, norm_r)
                if norm_r < self.np.residual_tol:
                    result.converged = True
                    break

            jacobian = vf.gradient_u(state, control, node_state)
            rhs = -residual
            if self.constraints is not None:
                jacobian = self.constraints(jacobian, rhs, 1.0 if it == 0 else 0.0)

            increment = np.zeros_like(state)
            self.linear_solver.solve(jacobian, increment, rhs)
            state += increment
            result.iterations = it + 1

            norm_du = float(np.linalg.norm(increment))
            result.increment_norms.append(norm_du)
            if nonlinear:
                logger.info("Newton %d: |du| = %.3e", it + 1, norm_du)
                if norm_du < self.np.increment_tol:
                    result.converged = True
                    break
        else:
            if not nonlinear:
                result.converged = True

        if not result.converged:
            msg = (f"Newton iteration did not converge in {self.np.max_iterations} iterations "
                   f"(|R| = {result.residual_norms[-1]:.3e}, |du| = {result.increment_norms[-1]:.3e})")
            if self.np.strict:
                raise NewtonConvergenceError(msg)
            logger.warning(msg)
        return result
