# pytopofem.physics.materials
"""
Linear material models read from the "Material Models" parameter block::

    "Material Models": {
        "steel": {
            "Isotropic Linear Elastic": {"Youngs Modulus": 1e9, "Poissons Ratio": 0.3,
                                         "Thermal Expansivity": 1e-5,
                                         "Reference Temperature": 0.0},
            "Isotropic Linear Thermal": {"Thermal Conductivity": 10.0,
                                         "Temperature Coefficient": 0.0},
            "Isotropic Linear Electrical": {"Electrical Conductivity": 1.0}
        }
    }

Each model maps kinematics (strain, gradient) to kinetics (stress, flux)
with plain arithmetic, so it accepts ndarrays and dual numbers alike.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np

from pytopofem.config import require, sublist
from pytopofem.errors import ConfigurationError

__all__ = [
    "LinearElasticMaterial",
    "ConductivityMaterial",
    "material_block",
    "elastic_model",
    "conductivity_model",
]


def elastic_stiffness(dim: int, E: float, nu: float) -> np.ndarray:
    """Voigt stiffness for engineering shear strains (plane strain in 2-D)."""
    if dim == 1:
        return np.array([[E]])
    lam = E * nu / ((1.0 + nu) * (1.0 - 2.0 * nu))
    mu = E / (2.0 * (1.0 + nu))
    n_normal = dim
    n_voigt = 3 if dim == 2 else 6
    C = np.zeros((n_voigt, n_voigt))
    C[:n_normal, :n_normal] = lam
    C[np.arange(n_normal), np.arange(n_normal)] = lam + 2.0 * mu
    C[np.arange(n_normal, n_voigt), np.arange(n_normal, n_voigt)] = mu
    return C


@dataclass(frozen=True, eq=False)
class LinearElasticMaterial:
    stiffness: np.ndarray
    expansivity: float = 0.0
    reference_temperature: float = 0.0

    @property
    def n_voigt(self) -> int:
        return len(self.stiffness)

    def stress(self, strain, temperature=None):
        """``C (strain - alpha (T - T_ref) I)`` in Voigt form."""
        mech = list(strain)
        if temperature is not None and self.expansivity != 0.0:
            dim = {1: 1, 3: 2, 6: 3}[self.n_voigt]
            thermal = self.expansivity * (temperature - self.reference_temperature)
            for i in range(dim):
                mech[i] = mech[i] - thermal
        C = self.stiffness
        stress = []
        for i in range(self.n_voigt):
            s = 0.0
            for j in range(self.n_voigt):
                if C[i, j] != 0.0:
                    s = s + C[i, j] * mech[j]
            stress.append(s)
        return stress


@dataclass(frozen=True)
class ConductivityMaterial:
    """Isotropic flux law ``k0 (1 + beta * u) grad(u)``."""

    conductivity: float
    coefficient: float = 0.0

    @property
    def is_linear(self) -> bool:
        return self.coefficient == 0.0

    def flux(self, gradient, value=None):
        k = self.conductivity
        if value is not None and self.coefficient != 0.0:
            k = self.conductivity * (1.0 + self.coefficient * value)
        return [k * g for g in gradient]


def material_block(params: Dict, name: str) -> Dict:
    models = sublist(params, "Material Models", required=True)
    if name not in models:
        raise ConfigurationError(f"MATERIAL MODEL '{name}' IS NOT DEFINED IN 'Material Models'.")
    return models[name]


def elastic_model(params: Dict, name: str, dim: int) -> LinearElasticMaterial:
    block = material_block(params, name)
    iso = sublist(block, "Isotropic Linear Elastic")
    if not iso:
        raise ConfigurationError(f"Material '{name}': 'Isotropic Linear Elastic' block is required.")
    E = float(require(iso, "Youngs Modulus", "Isotropic Linear Elastic"))
    nu = float(require(iso, "Poissons Ratio", "Isotropic Linear Elastic"))
    if E <= 0.0 or not -1.0 < nu < 0.5:
        raise ConfigurationError(f"Material '{name}': inadmissible elastic constants E={E}, nu={nu}.")
    return LinearElasticMaterial(
        stiffness=elastic_stiffness(dim, E, nu),
        expansivity=float(iso.get("Thermal Expansivity", 0.0)),
        reference_temperature=float(iso.get("Reference Temperature", 0.0)),
    )


def conductivity_model(params: Dict, name: str, kind: str = "thermal") -> ConductivityMaterial:
    block = material_block(params, name)
    if kind == "thermal":
        iso = sublist(block, "Isotropic Linear Thermal")
        if not iso:
            raise ConfigurationError(f"Material '{name}': 'Isotropic Linear Thermal' block is required.")
        return ConductivityMaterial(
            conductivity=float(require(iso, "Thermal Conductivity", "Isotropic Linear Thermal")),
            coefficient=float(iso.get("Temperature Coefficient", 0.0)),
        )
    if kind == "electrical":
        iso = sublist(block, "Isotropic Linear Electrical")
        if not iso:
            raise ConfigurationError(f"Material '{name}': 'Isotropic Linear Electrical' block is required.")
        return ConductivityMaterial(
            conductivity=float(require(iso, "Electrical Conductivity", "Isotropic Linear Electrical")),
        )
    raise ValueError(kind)
