# pytopofem.criteria.base
"""
Scalar criteria assembled with the same workset dispatch as residuals.

A criterion kernel writes one scalar per cell into ``workset.result``;
under a Jacobian evaluation kind the partials of that scalar with respect
to the cell's local state, control or configuration entries come along and
are summed into a global gradient vector.
"""
from __future__ import annotations

import abc
from typing import Dict, Optional

import numpy as np

from pytopofem import ad
from pytopofem.assembly.scatter import reduce_vector
from pytopofem.assembly.workset import build_workset, map_worksets
from pytopofem.config import AssemblyParameters
from pytopofem.core.dofmap import DofMap
from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.fem.evaluation import EvaluationKind, evaluation_types
from pytopofem.physics.penalty import MSIMP, penalty_from_params

__all__ = ["AbstractScalarKernel", "PhysicsScalarFunction", "criterion_penalty"]


def criterion_penalty(params: Dict, criterion: Dict, *, exponent: float = 3.0,
                      minimum: float = 0.0) -> MSIMP:
    """Penalty of a criterion block, falling back to the problem's own."""
    source = criterion if "Penalty Function" in criterion else params
    return penalty_from_params(source, exponent=exponent, minimum=minimum)


class AbstractScalarKernel(abc.ABC):
    """Per-cell scalar integrand, written once for every evaluation kind."""

    linear = False

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict,
                 criterion: Dict, physics: str):
        self.element = element
        self.spatial_model = spatial_model
        self.physics = physics

    @abc.abstractmethod
    def evaluate(self, workset) -> None:
        ...

    def build(self, function: "PhysicsScalarFunction"):
        """Criterion handed to the problem; the assembled integral itself by default."""
        return function


class PhysicsScalarFunction:
    """Value and gradients of one kernel-based criterion."""

    def __init__(self, name: str, spatial_model: SpatialModel, dof_map: DofMap,
                 kernel: AbstractScalarKernel, *,
                 assembly: AssemblyParameters = AssemblyParameters(),
                 linear: Optional[bool] = None):
        self.name = name
        self.spatial_model = spatial_model
        self.dof_map = dof_map
        self.kernel = kernel
        self.assembly = assembly
        self.is_linear = kernel.linear if linear is None else bool(linear)

    def __repr__(self):
        return f"<PhysicsScalarFunction '{self.name}' kernel={type(self.kernel).__name__}>"

    # ------------------------------------------------------------------
    def _fields(self, solution, step: int):
        state = solution.get("State", step)
        node_state = solution.get("Node State", 0) if solution.has("Node State") else None
        return state, node_state

    def _evaluate(self, kind: EvaluationKind, state, control, node_state):
        for category, vec in (("state", state), ("control", control)):
            if np.ndim(vec) != 1 or len(vec) != self.dof_map.size(category):
                raise ValueError(
                    f"criterion '{self.name}': {category} vector has shape {np.shape(vec)}, "
                    f"expected ({self.dof_map.size(category)},)"
                )
        types = evaluation_types(self.kernel.element, kind)

        def run(job):
            domain, cells = job
            ws = build_workset(self.dof_map, types, cells, state=state, control=control,
                               node_state=node_state, result_shape=(len(cells),), domain=domain)
            self.kernel.evaluate(ws)
            return ws.cells, ws.result

        jobs = [(d, cells) for d in self.spatial_model.domains
                for cells in d.worksets(self.assembly.workset_size)]
        return map_worksets(run, jobs, self.assembly.threads, label=f"criterion '{self.name}' {kind.value}")

    def _gradient(self, kind, category, solution, control, step):
        state, node_state = self._fields(solution, step)
        out = np.zeros(self.dof_map.size(category))
        for cells, result in self._evaluate(kind, state, control, node_state):
            reduce_vector(out, self.dof_map.ordinals(category, cells), result.partials)
        return out

    # ------------------------------------------------------------------
    def value(self, solution, control, step: int = 0) -> float:
        state, node_state = self._fields(solution, step)
        total = 0.0
        for _, result in self._evaluate(EvaluationKind.VALUE, state, control, node_state):
            total += float(np.sum(ad.value_of(result)))
        return total

    def gradient_u(self, solution, control, step: int = 0) -> np.ndarray:
        """Partial with respect to the state of cycle *step*."""
        return self._gradient(EvaluationKind.JACOBIAN_STATE, "state", solution, control, step)

    def gradient_z(self, solution, control, step: int = 0) -> np.ndarray:
        return self._gradient(EvaluationKind.JACOBIAN_CONTROL, "control", solution, control, step)

    def gradient_x(self, solution, control, step: int = 0) -> np.ndarray:
        return self._gradient(EvaluationKind.JACOBIAN_CONFIG, "config", solution, control, step)
