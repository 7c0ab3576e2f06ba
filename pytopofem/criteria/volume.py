# pytopofem.criteria.volume
"""Penalized material volume and squared-state integrals."""
from __future__ import annotations

from typing import Dict

from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.criteria.base import AbstractScalarKernel, criterion_penalty
from pytopofem.errors import ConfigurationError
from pytopofem.physics.operators import compute_gradient_matrix, interpolate

__all__ = ["Volume", "StateSquared"]


class Volume(AbstractScalarKernel):
    """``sum_qp w(rho) |J| w_qp``; linear in the state (independent of it)."""

    linear = True

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict,
                 criterion: Dict, physics: str):
        super().__init__(element, spatial_model, params, criterion, physics)
        # plain material volume unless the criterion asks for a penalty
        self.penalty = criterion_penalty({}, criterion, exponent=1.0)

    def evaluate(self, workset) -> None:
        el = self.element.element
        for q in range(el.n_points):
            _, volume = compute_gradient_matrix(el, workset.config, q, workset.cells)
            weight = self.penalty.at_point(el, q, workset.control, self.element.n_controls_per_node)
            workset.result = workset.result + weight * volume


class StateSquared(AbstractScalarKernel):
    """``sum_qp sum_k u_k(x_qp)^2 |J| w_qp`` over all dofs or only ``Index``."""

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict,
                 criterion: Dict, physics: str):
        super().__init__(element, spatial_model, params, criterion, physics)
        ndof = element.n_dofs_per_node
        if "Index" in criterion:
            index = int(criterion["Index"])
            if not 0 <= index < ndof:
                raise ConfigurationError(f"State Squared: 'Index' {index} out of range for {ndof} dofs per node.")
            self.components = (index,)
        else:
            self.components = tuple(range(ndof))

    def evaluate(self, workset) -> None:
        el = self.element.element
        ndof = self.element.n_dofs_per_node
        for q in range(el.n_points):
            _, volume = compute_gradient_matrix(el, workset.config, q, workset.cells)
            for k in self.components:
                u = interpolate(el, q, workset.state, ndof, k)
                workset.result = workset.result + (u * u) * volume
