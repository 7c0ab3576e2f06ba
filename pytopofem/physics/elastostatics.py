# pytopofem.physics.elastostatics
"""Small-strain linear elastostatics with optional thermal pre-strain."""
from __future__ import annotations

from typing import Dict

from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.physics.loads import add_local
from pytopofem.physics.materials import elastic_model
from pytopofem.physics.operators import (
    compute_gradient_matrix, interpolate, small_strain, stress_divergence,
)
from pytopofem.physics.residual import AbstractResidual

__all__ = ["ElastostaticResidual"]


class ElastostaticResidual(AbstractResidual):
    """
    ``R_a = sum_qp w(rho) B_a^T C (eps(u) - eps_T) |J| w_qp - f_a``

    The node state, when present, is a nodal temperature field driving the
    thermal strain ``alpha (T - T_ref)`` on the normal components.
    """

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict):
        super().__init__(element, spatial_model, params)
        dim = element.spatial_dim
        self.dof_names = ("Dispx", "Dispy", "Dispz")[:dim]
        self.materials = {
            d.material: elastic_model(params, d.material, dim) for d in spatial_model.domains
        }

    def evaluate(self, workset) -> None:
        el = self.element.element
        ndof = self.element.n_dofs_per_node
        pairs = self.element.voigt_pairs
        material = self.materials[workset.domain.material]
        thermal = material.expansivity != 0.0 and self.element.n_node_state_per_node > 0

        res = [0.0] * self.element.n_dofs_per_cell
        for q in range(el.n_points):
            grad, volume = compute_gradient_matrix(el, workset.config, q, workset.cells)
            strain = small_strain(grad, workset.state, pairs, ndof)
            temperature = interpolate(el, q, workset.node_state) if thermal else None
            stress = material.stress(strain, temperature)

            weight = self.penalty.at_point(el, q, workset.control, self.element.n_controls_per_node)
            stress = [weight * s for s in stress]

            stress_divergence(res, grad, stress, volume, pairs, ndof)
        add_local(workset.result, res)

        self._apply_body_loads(workset)
