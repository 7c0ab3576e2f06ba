# pytopofem.physics.factory
"""Residual construction keyed on the "Physics" parameter."""
from __future__ import annotations

from typing import Dict, Tuple

from pytopofem.config import require
from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.errors import ConfigurationError
from pytopofem.physics.diffusion import ElectrostaticResidual, ThermostaticResidual
from pytopofem.physics.elastostatics import ElastostaticResidual
from pytopofem.physics.residual import AbstractResidual
from pytopofem.physics.thermomechanics import ThermomechanicalResidual

__all__ = ["PHYSICS", "physics_element", "create_residual"]

# name -> (residual class, dofs per node as a function of dim, node state per node)
PHYSICS = {
    "Mechanical": (ElastostaticResidual, lambda dim: dim, 1),
    "Thermal": (ThermostaticResidual, lambda dim: 1, 0),
    "Electrical": (ElectrostaticResidual, lambda dim: 1, 0),
    "Thermomechanical": (ThermomechanicalResidual, lambda dim: dim + 1, 0),
}


def _lookup(name: str):
    if name not in PHYSICS:
        raise ConfigurationError(
            f"PHYSICS '{name}' IS NOT SUPPORTED. OPTIONS ARE: {', '.join(PHYSICS)}."
        )
    return PHYSICS[name]


def physics_element(name: str, spatial_model: SpatialModel) -> PhysicsElement:
    _, dofs, node_state = _lookup(name)
    element = spatial_model.mesh.element
    return PhysicsElement(element, dofs(element.spatial_dim), 1, node_state)


def create_residual(spatial_model: SpatialModel, params: Dict) -> Tuple[PhysicsElement, AbstractResidual]:
    name = require(params, "Physics")
    cls, _, _ = _lookup(name)
    element = physics_element(name, spatial_model)
    return element, cls(element, spatial_model, params)
