# pytopofem.physics.residual
"""
Common scaffolding for cell-local residual kernels.

A residual is composed from a :class:`~pytopofem.core.element.PhysicsElement`
(plain element constants), one material per spatial domain, a density
penalty and the external loads.  It implements exactly two entry points:

``evaluate(workset)``
    interior contribution of the cells in the workset, body loads included;
``evaluate_boundary(spatial_model, workset)``
    natural boundary terms of the side sets touching the workset cells.

Both write into ``workset.result``; the assembler decides what to do with it.
"""
from __future__ import annotations

import abc
import logging
from typing import Dict, Tuple

from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.physics.loads import BodyLoads, NaturalBCs
from pytopofem.physics.penalty import penalty_from_params
from pytopofem.solvers.linear_solver import LinearSystemType

logger = logging.getLogger(__name__)

__all__ = ["AbstractResidual"]


class AbstractResidual(abc.ABC):
    dof_names: Tuple[str, ...] = ()

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict):
        self.element = element
        self.spatial_model = spatial_model
        self.penalty = penalty_from_params(params)
        self.body_loads = BodyLoads(params, element.n_dofs_per_node)
        self.natural_bcs = NaturalBCs(params, element.n_dofs_per_node)

    @property
    def system_type(self) -> LinearSystemType:
        return LinearSystemType.SYMMETRIC_POSITIVE_DEFINITE

    @property
    def is_linear(self) -> bool:
        return True

    def boundary_cells(self):
        return self.natural_bcs.boundary_cells(self.spatial_model.mesh)

    @abc.abstractmethod
    def evaluate(self, workset) -> None:
        ...

    def evaluate_boundary(self, spatial_model: SpatialModel, workset) -> None:
        # residual = internal - external
        self.natural_bcs.apply(self.element, spatial_model.mesh, workset, scale=-1.0)

    def _apply_body_loads(self, workset) -> None:
        self.body_loads.apply(self.element, workset, scale=-1.0)

    def __repr__(self):
        return f"<{type(self).__name__} {self.element.element.name} dofs={self.dof_names}>"
