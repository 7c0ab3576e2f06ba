# pytopofem.criteria.energy
"""Internal energy criteria (compliance-type objectives)."""
from __future__ import annotations

from typing import Dict

from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.criteria.base import AbstractScalarKernel, criterion_penalty
from pytopofem.errors import ConfigurationError
from pytopofem.physics.materials import conductivity_model, elastic_model
from pytopofem.physics.operators import (
    compute_gradient_matrix, interpolate, scalar_gradient, small_strain, sum_terms,
)

__all__ = ["ElasticScalarKernel", "InternalElasticEnergy", "InternalThermalEnergy"]


class ElasticScalarKernel(AbstractScalarKernel):
    """Shared set-up of criteria evaluated from the elastic stress."""

    label = "Elastic criterion"

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict,
                 criterion: Dict, physics: str):
        super().__init__(element, spatial_model, params, criterion, physics)
        if physics not in ("Mechanical", "Thermomechanical"):
            raise ConfigurationError(f"{self.label} is not defined for '{physics}' physics.")
        dim = element.spatial_dim
        self.penalty = criterion_penalty(params, criterion)
        self.materials = {d.material: elastic_model(params, d.material, dim) for d in spatial_model.domains}
        self.coupled = physics == "Thermomechanical"

    def stress_at(self, workset, q: int):
        """``(volume, strain, stress)`` at quadrature point *q*, stress unpenalized."""
        el = self.element.element
        ndof = self.element.n_dofs_per_node
        material = self.materials[workset.domain.material]

        grad, volume = compute_gradient_matrix(el, workset.config, q, workset.cells)
        strain = small_strain(grad, workset.state, self.element.voigt_pairs, ndof)
        if self.coupled:
            temperature = interpolate(el, q, workset.state, ndof, self.element.spatial_dim)
        elif material.expansivity != 0.0 and self.element.n_node_state_per_node:
            temperature = interpolate(el, q, workset.node_state)
        else:
            temperature = None
        return volume, strain, material.stress(strain, temperature)

    def weight_at(self, workset, q: int):
        return self.penalty.at_point(self.element.element, q, workset.control,
                                     self.element.n_controls_per_node)


class InternalElasticEnergy(ElasticScalarKernel):
    """``sum_qp 0.5 * w(rho) sigma : eps * |J| w_qp``"""

    label = "Internal Elastic Energy"

    def evaluate(self, workset) -> None:
        for q in range(self.element.element.n_points):
            volume, strain, stress = self.stress_at(workset, q)
            energy = sum_terms(s * e for s, e in zip(stress, strain))
            workset.result = workset.result + (0.5 * self.weight_at(workset, q) * energy) * volume


class InternalThermalEnergy(AbstractScalarKernel):
    """``sum_qp 0.5 * w(rho) q . grad(T) * |J| w_qp`` for any flux physics."""

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict,
                 criterion: Dict, physics: str):
        super().__init__(element, spatial_model, params, criterion, physics)
        if physics == "Mechanical":
            raise ConfigurationError("Internal Thermal Energy is not defined for 'Mechanical' physics.")
        kind = "electrical" if physics == "Electrical" else "thermal"
        self.penalty = criterion_penalty(params, criterion)
        self.materials = {d.material: conductivity_model(params, d.material, kind)
                          for d in spatial_model.domains}
        self.component = element.spatial_dim if physics == "Thermomechanical" else 0

    def evaluate(self, workset) -> None:
        el = self.element.element
        ndof = self.element.n_dofs_per_node
        comp = self.component
        material = self.materials[workset.domain.material]

        for q in range(el.n_points):
            grad, volume = compute_gradient_matrix(el, workset.config, q, workset.cells)
            tgrad = scalar_gradient(grad, workset.state, ndof, comp)
            value = None if material.is_linear else interpolate(el, q, workset.state, ndof, comp)
            flux = material.flux(tgrad, value)

            weight = self.penalty.at_point(el, q, workset.control, self.element.n_controls_per_node)
            energy = sum_terms(f * g for f, g in zip(flux, tgrad))
            workset.result = workset.result + (0.5 * weight * energy) * volume
