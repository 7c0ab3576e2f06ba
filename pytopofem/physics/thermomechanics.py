# pytopofem.physics.thermomechanics
"""Coupled linear thermoelasticity, displacement then temperature per node."""
from __future__ import annotations

from typing import Dict

from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.physics.loads import add_local
from pytopofem.physics.materials import conductivity_model, elastic_model
from pytopofem.physics.operators import (
    compute_gradient_matrix, flux_divergence, interpolate, scalar_gradient,
    small_strain, stress_divergence,
)
from pytopofem.physics.residual import AbstractResidual
from pytopofem.solvers.linear_solver import LinearSystemType

__all__ = ["ThermomechanicalResidual"]


class ThermomechanicalResidual(AbstractResidual):
    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict):
        super().__init__(element, spatial_model, params)
        dim = element.spatial_dim
        if element.n_dofs_per_node != dim + 1:
            raise ValueError("thermomechanics needs spatial_dim + 1 dofs per node")
        self.dof_names = ("Dispx", "Dispy", "Dispz")[:dim] + ("Temperature",)
        self.temperature_index = dim
        self.elastic = {d.material: elastic_model(params, d.material, dim) for d in spatial_model.domains}
        self.thermal = {d.material: conductivity_model(params, d.material) for d in spatial_model.domains}

    @property
    def is_linear(self) -> bool:
        return all(m.is_linear for m in self.thermal.values())

    @property
    def system_type(self) -> LinearSystemType:
        # one-way coupling: temperature drives stress, not the reverse
        return LinearSystemType.NONSYMMETRIC

    def evaluate(self, workset) -> None:
        el = self.element.element
        ndof = self.element.n_dofs_per_node
        tidx = self.temperature_index
        pairs = self.element.voigt_pairs
        elastic = self.elastic[workset.domain.material]
        thermal = self.thermal[workset.domain.material]

        res = [0.0] * self.element.n_dofs_per_cell
        for q in range(el.n_points):
            grad, volume = compute_gradient_matrix(el, workset.config, q, workset.cells)
            strain = small_strain(grad, workset.state, pairs, ndof)
            temperature = interpolate(el, q, workset.state, ndof, tidx)
            tgrad = scalar_gradient(grad, workset.state, ndof, tidx)

            stress = elastic.stress(strain, temperature)
            flux = thermal.flux(tgrad, None if thermal.is_linear else temperature)

            weight = self.penalty.at_point(el, q, workset.control, self.element.n_controls_per_node)
            stress = [weight * s for s in stress]
            flux = [weight * f for f in flux]

            stress_divergence(res, grad, stress, volume, pairs, ndof)
            flux_divergence(res, grad, flux, volume, ndof, tidx)
        add_local(workset.result, res)

        self._apply_body_loads(workset)
