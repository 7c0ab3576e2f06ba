# pytopofem.physics.diffusion
"""Steady scalar diffusion: heat conduction and electrical current."""
from __future__ import annotations

from typing import Dict

from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.physics.loads import add_local
from pytopofem.physics.materials import conductivity_model
from pytopofem.physics.operators import (
    compute_gradient_matrix, flux_divergence, interpolate, scalar_gradient,
)
from pytopofem.physics.residual import AbstractResidual
from pytopofem.solvers.linear_solver import LinearSystemType

__all__ = ["ThermostaticResidual", "ElectrostaticResidual"]


class _FluxResidual(AbstractResidual):
    material_kind = "thermal"

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict):
        super().__init__(element, spatial_model, params)
        self.materials = {
            d.material: conductivity_model(params, d.material, self.material_kind)
            for d in spatial_model.domains
        }

    @property
    def is_linear(self) -> bool:
        return all(m.is_linear for m in self.materials.values())

    @property
    def system_type(self) -> LinearSystemType:
        if self.is_linear:
            return LinearSystemType.SYMMETRIC_POSITIVE_DEFINITE
        return LinearSystemType.NONSYMMETRIC

    def evaluate(self, workset) -> None:
        el = self.element.element
        material = self.materials[workset.domain.material]

        res = [0.0] * self.element.n_dofs_per_cell
        for q in range(el.n_points):
            grad, volume = compute_gradient_matrix(el, workset.config, q, workset.cells)
            gradient = scalar_gradient(grad, workset.state)
            value = None if material.is_linear else interpolate(el, q, workset.state)
            flux = material.flux(gradient, value)

            weight = self.penalty.at_point(el, q, workset.control, self.element.n_controls_per_node)
            flux = [weight * f for f in flux]

            flux_divergence(res, grad, flux, volume)
        add_local(workset.result, res)

        self._apply_body_loads(workset)


class ThermostaticResidual(_FluxResidual):
    """Steady heat conduction, ``k(T) = k0 (1 + beta T)``."""

    dof_names = ("Temperature",)
    material_kind = "thermal"


class ElectrostaticResidual(_FluxResidual):
    """Steady-state current conduction in a conductor."""

    dof_names = ("Potential",)
    material_kind = "electrical"
