r"""
problem.py  –  Elliptic problem: state solve, criteria and adjoint gradients
===========================================================================
The outer layer an optimizer talks to::

    problem = EllipticProblem(mesh, params)
    solution = problem.solution(control)
    f  = problem.criterion_value(control, "Compliance")
    dz = problem.criterion_gradient(control, "Compliance")
    dx = problem.criterion_gradient_x(control, "Compliance")

Gradients of non-linear criteria use one adjoint solve with the transposed
state Jacobian,

    (dR/du)^T lambda = -df/du,     df/dz = (dR/dz)^T lambda + df/dz|_u

with homogeneous constraints on the adjoint.  For a problem declared
``"Self-Adjoint"`` the adjoint is ``-u`` and no solve is performed.  The
last adjoint is cached and reused while the criterion, state, control,
coordinates and constraints stay the same, so a control gradient followed by a
configuration gradient costs a single solve.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

import numpy as np

from pytopofem.assembly.vector_function import VectorFunction
from pytopofem.bcs.essential import EssentialBCs, apply_block_constraints, apply_constraints
from pytopofem.config import AssemblyParameters
from pytopofem.core.mesh import Mesh, SpatialModel
from pytopofem.criteria.factory import create_criteria
from pytopofem.errors import ConfigurationError, PreconditionError
from pytopofem.physics.factory import create_residual
from pytopofem.solvers.linear_solver import LinearSolver, LinearSolverParameters
from pytopofem.solvers.nonlinear_solver import NewtonParameters, NewtonRaphsonSolver, NewtonResult

logger = logging.getLogger(__name__)

__all__ = ["Solutions", "EllipticProblem"]


class Solutions:
    """Named field histories, one row per solution cycle."""

    def __init__(self, physics: str = "", dof_names=()):
        self.physics = physics
        self.dof_names = tuple(dof_names)
        self._fields: Dict[str, np.ndarray] = {}

    def set(self, name: str, data) -> None:
        self._fields[name] = np.atleast_2d(np.array(data, dtype=float))

    def get(self, name: str, step: Optional[int] = None) -> np.ndarray:
        if name not in self._fields:
            raise KeyError(f"solution field '{name}' is not defined")
        data = self._fields[name]
        return data if step is None else data[step]

    def has(self, name: str) -> bool:
        return name in self._fields

    @property
    def names(self):
        return list(self._fields)

    def num_steps(self, name: str = "State") -> int:
        return len(self._fields[name]) if name in self._fields else 0

    def empty(self) -> bool:
        return not self._fields

    def __repr__(self):
        shapes = {k: v.shape for k, v in self._fields.items()}
        return f"Solutions(physics={self.physics!r}, fields={shapes})"


class EllipticProblem:
    def __init__(self, mesh: Mesh, params: Dict):
        self.params = params
        pde = params.get("PDE Constraint", "Elliptic")
        if pde != "Elliptic":
            raise ConfigurationError(f"PDE Constraint '{pde}' is not supported; expected 'Elliptic'.")

        self.mesh = mesh
        self.spatial_model = SpatialModel(mesh, params)
        self.physics = params.get("Physics")
        self.element, residual = create_residual(self.spatial_model, params)

        self.assembly = AssemblyParameters.from_params(params)
        self.lp = LinearSolverParameters.from_params(params)
        self.pde = VectorFunction(self.spatial_model, residual, assembly=self.assembly,
                                  matrix_format=self.lp.matrix_format)
        self.dof_map = self.pde.dof_map
        self.linear_solver = LinearSolver(self.lp, residual.system_type)
        self.newton = NewtonParameters.from_params(params)
        self.is_self_adjoint = bool(params.get("Self-Adjoint", False))

        self.criteria = {}
        self.linear_criteria = {}
        for name, crit in create_criteria(self.spatial_model, self.dof_map, params, self.assembly).items():
            (self.linear_criteria if crit.is_linear else self.criteria)[name] = crit

        self.states = np.zeros((1, self.num_dofs))
        self.node_state = (np.zeros(self.dof_map.size("node_state"))
                           if self.element.n_node_state_per_node else None)
        self.newton_result: Optional[NewtonResult] = None
        self._solved = False
        self._adjoint_cache = None

        self.bc_dofs = np.empty(0, dtype=np.int64)
        self.bc_values = np.empty(0)
        self.read_essential_boundary_conditions(params)

        logger.info("elliptic problem: %s on %r, %d dofs, %d criteria", self.physics, mesh,
                    self.num_dofs, len(self.criteria) + len(self.linear_criteria))

    # ------------------------------------------------------------------
    #  Sizes
    # ------------------------------------------------------------------
    @property
    def num_nodes(self) -> int:
        return self.mesh.n_nodes

    @property
    def num_cells(self) -> int:
        return self.mesh.n_cells

    @property
    def num_dofs_per_node(self) -> int:
        return self.element.n_dofs_per_node

    @property
    def num_controls_per_node(self) -> int:
        return self.element.n_controls_per_node

    @property
    def num_dofs(self) -> int:
        return self.dof_map.size("state")

    @property
    def num_controls(self) -> int:
        return self.dof_map.size("control")

    @property
    def num_config(self) -> int:
        return self.dof_map.size("config")

    # ------------------------------------------------------------------
    #  Essential boundary conditions
    # ------------------------------------------------------------------
    def read_essential_boundary_conditions(self, params: Dict) -> None:
        if "Essential Boundary Conditions" not in params:
            raise ConfigurationError(
                "ESSENTIAL BOUNDARY CONDITIONS SUBLIST IS NOT DEFINED IN THE INPUT FILE."
            )
        bcs = EssentialBCs(params["Essential Boundary Conditions"], self.dof_map)
        self.set_essential_boundary_conditions(*bcs.get())

    def set_essential_boundary_conditions(self, dofs, values) -> None:
        dofs = np.asarray(dofs, dtype=np.int64)
        values = np.asarray(values, dtype=float)
        if dofs.shape != values.shape:
            raise ConfigurationError(
                "DIMENSION MISMATCH: THE NUMBER OF ELEMENTS IN INPUT DOFS AND VALUES ARRAY DO NOT MATCH. "
                f"DOFS SIZE = {dofs.size} AND VALUES SIZE = {values.size}"
            )
        if dofs.size and (dofs.min() < 0 or dofs.max() >= self.num_dofs):
            raise ConfigurationError("essential boundary condition dof out of range")
        self.bc_dofs = dofs
        self.bc_values = values
        self._adjoint_cache = None

    def constrained(self):
        return self.bc_dofs, self.bc_values

    def apply_state_constraints(self, matrix, rhs, scale: float = 1.0):
        if self.lp.matrix_format == "bsr":
            return apply_block_constraints(matrix, rhs, self.bc_dofs, self.bc_values, scale)
        return apply_constraints(matrix, rhs, self.bc_dofs, self.bc_values, scale)

    def apply_adjoint_constraints(self, matrix, rhs):
        zeros = np.zeros_like(self.bc_values)
        if self.lp.matrix_format == "bsr":
            return apply_block_constraints(matrix, rhs, self.bc_dofs, zeros)
        return apply_constraints(matrix, rhs, self.bc_dofs, zeros)

    # ------------------------------------------------------------------
    #  State
    # ------------------------------------------------------------------
    def set_node_state(self, values) -> None:
        if self.node_state is None:
            raise ConfigurationError(f"'{self.physics}' physics has no node state.")
        values = np.asarray(values, dtype=float)
        if values.shape != self.node_state.shape:
            raise ValueError(f"node state has shape {values.shape}, expected {self.node_state.shape}")
        self.node_state = values.copy()
        self._adjoint_cache = None

    def _check_control(self, control) -> np.ndarray:
        control = np.asarray(control, dtype=float)
        if control.shape != (self.num_controls,):
            raise ValueError(f"control has shape {control.shape}, expected ({self.num_controls},)")
        return control

    def solution(self, control) -> Solutions:
        control = self._check_control(control)
        state = self.states[0]
        state[:] = 0.0

        solver = NewtonRaphsonSolver(self.pde, self.linear_solver, self.newton,
                                     constraints=self.apply_state_constraints,
                                     constrained=self.constrained)
        self.newton_result = solver.solve(state, control, self.node_state)
        self._solved = True
        self._adjoint_cache = None
        logger.info("solution: %d Newton iteration(s), converged=%s",
                    self.newton_result.iterations, self.newton_result.converged)
        return self.get_solution()

    def get_solution(self) -> Solutions:
        out = Solutions(self.physics, self.pde.dof_names)
        if not self._solved:
            return out
        out.set("State", self.states)
        if self.node_state is not None:
            out.set("Node State", self.node_state)
        return out

    # ------------------------------------------------------------------
    #  Criteria
    # ------------------------------------------------------------------
    def criterion_is_linear(self, name: str) -> bool:
        return name in self.linear_criteria

    def _criterion(self, name: str):
        if name in self.criteria:
            return self.criteria[name]
        if name in self.linear_criteria:
            return self.linear_criteria[name]
        raise ConfigurationError(f"CRITERION WITH NAME '{name}' IS NOT DEFINED IN THE CRITERION MAP.")

    def _resolve(self, solution: Optional[Solutions], criterion=None) -> Solutions:
        solution = self.get_solution() if solution is None else solution
        if solution.empty():
            if criterion is not None and criterion.is_linear:
                return self._state_free_solution()
            raise PreconditionError("SOLUTION DATABASE IS EMPTY")
        return solution

    def _state_free_solution(self) -> Solutions:
        """Zero-state database for criteria that do not depend on the state."""
        out = Solutions(self.physics, self.pde.dof_names)
        out.set("State", np.zeros((1, self.num_dofs)))
        if self.node_state is not None:
            out.set("Node State", self.node_state)
        return out

    def criterion_value(self, control, name: str, solution: Optional[Solutions] = None) -> float:
        criterion = self._criterion(name)
        control = self._check_control(control)
        return criterion.value(self._resolve(solution, criterion), control)

    def criterion_gradient(self, control, name: str, solution: Optional[Solutions] = None) -> np.ndarray:
        """Total derivative of criterion *name* with respect to the control."""
        return self.gradient_of(control, self._criterion(name), solution, "control")

    def criterion_gradient_x(self, control, name: str, solution: Optional[Solutions] = None) -> np.ndarray:
        """Total derivative of criterion *name* with respect to the node coordinates."""
        return self.gradient_of(control, self._criterion(name), solution, "config")

    @staticmethod
    def _check_partial(criterion, what: str, partial, size: int) -> np.ndarray:
        partial = np.asarray(partial, dtype=float)
        if partial.shape != (size,):
            raise ValueError(
                f"criterion '{getattr(criterion, 'name', criterion)}': {what} has shape "
                f"{partial.shape}, expected ({size},)"
            )
        return partial

    def gradient_of(self, control, criterion, solution: Optional[Solutions], wrt: str) -> np.ndarray:
        if criterion is None:
            raise PreconditionError("REQUESTED CRITERION NOT DEFINED BY USER.")
        solution = self._resolve(solution, criterion)
        control = self._check_control(control)

        if wrt == "control":
            partial, size = criterion.gradient_z, self.num_controls
        else:
            partial, size = criterion.gradient_x, self.num_config
        dfdv = self._check_partial(criterion, f"d/d{wrt}", partial(solution, control), size)
        if criterion.is_linear:
            return dfdv

        adjoint = self.adjoint(control, solution, criterion)
        state = solution.get("State", 0)
        node_state = self._node_state_of(solution)
        if wrt == "control":
            dRdv = self.pde.gradient_z(state, control, node_state)
        else:
            dRdv = self.pde.gradient_x(state, control, node_state)
        return dRdv @ adjoint + dfdv

    @staticmethod
    def _node_state_of(solution: Solutions):
        return solution.get("Node State", 0) if solution.has("Node State") else None

    def _cached_adjoint(self, criterion, state, control, node_state):
        cache = self._adjoint_cache
        if cache is None or cache[0] is not criterion:
            return None
        _, c_state, c_control, c_coords, c_node_state, adjoint = cache
        if (np.array_equal(c_state, state) and np.array_equal(c_control, control)
                and np.array_equal(c_coords, self.mesh.coordinates)
                and (c_node_state is None) == (node_state is None)
                and (node_state is None or np.array_equal(c_node_state, node_state))):
            return adjoint
        return None

    def adjoint(self, control, solution: Solutions, criterion) -> np.ndarray:
        """Adjoint vector of *criterion* at the state stored in *solution*."""
        state = solution.get("State", 0)
        if self.is_self_adjoint:
            return -state

        node_state = self._node_state_of(solution)
        adjoint = self._cached_adjoint(criterion, state, control, node_state)
        if adjoint is not None:
            logger.debug("adjoint of '%s' reused", criterion.name)
            return adjoint

        dfdu = self._check_partial(criterion, "d/du", criterion.gradient_u(solution, control, 0),
                                   self.num_dofs)
        rhs = -dfdu
        jacobian_T = self.pde.gradient_u_T(state, control, node_state)
        jacobian_T = self.apply_adjoint_constraints(jacobian_T, rhs)

        adjoint = np.zeros(self.num_dofs)
        self.linear_solver.solve(jacobian_T, adjoint, rhs, is_adjoint=True)
        self._adjoint_cache = (criterion, state.copy(), control.copy(), self.mesh.coordinates.copy(),
                               None if node_state is None else node_state.copy(), adjoint)
        return adjoint
