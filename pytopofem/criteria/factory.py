# pytopofem.criteria.factory
"""
Criteria construction from the "Criteria" parameter block::

    "Criteria": {
        "Compliance": {"Type": "Scalar Function",
                       "Scalar Function Type": "Internal Elastic Energy"},
        "Volume":     {"Type": "Scalar Function",
                       "Scalar Function Type": "Volume", "Linear": true},
        "Objective":  {"Type": "Weighted Sum",
                       "Functions": ["Compliance", "Volume"], "Weights": [1.0, 0.1]},
        "Ratio":      {"Type": "Division",
                       "Numerator": "Compliance", "Denominator": "Volume"},
        "Stress":     {"Type": "Scalar Function",
                       "Scalar Function Type": "Stress P-Norm", "Exponent": 8.0}
    }
"""
from __future__ import annotations

import logging
from typing import Dict

from pytopofem.config import AssemblyParameters, require, sublist
from pytopofem.core.dofmap import DofMap
from pytopofem.core.mesh import SpatialModel
from pytopofem.criteria.base import PhysicsScalarFunction
from pytopofem.criteria.composite import Division, WeightedSum
from pytopofem.criteria.energy import InternalElasticEnergy, InternalThermalEnergy
from pytopofem.criteria.stress import StressPNorm, VolumeAverage
from pytopofem.criteria.volume import StateSquared, Volume
from pytopofem.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["SCALAR_FUNCTIONS", "create_criteria"]

SCALAR_FUNCTIONS = {
    "Internal Elastic Energy": InternalElasticEnergy,
    "Internal Thermal Energy": InternalThermalEnergy,
    "Internal Electrical Energy": InternalThermalEnergy,
    "Volume": Volume,
    "State Squared": StateSquared,
    "Stress P-Norm": StressPNorm,
    "Volume Average": VolumeAverage,
}


class _Builder:
    def __init__(self, spatial_model, dof_map, params, assembly):
        self.spatial_model = spatial_model
        self.dof_map = dof_map
        self.params = params
        self.physics = require(params, "Physics")
        self.assembly = assembly
        self.block = sublist(params, "Criteria")
        self.built = {}
        self._pending = set()

    def get(self, name: str):
        if name in self.built:
            return self.built[name]
        if name not in self.block:
            raise ConfigurationError(
                f"CRITERION WITH NAME '{name}' IS NOT DEFINED IN THE CRITERION MAP."
            )
        if name in self._pending:
            raise ConfigurationError(f"Criterion '{name}' refers to itself.")
        self._pending.add(name)
        self.built[name] = self._create(name, self.block[name])
        self._pending.discard(name)
        return self.built[name]

    def _create(self, name: str, entry: Dict):
        ctype = require(entry, "Type", name)
        if ctype == "Scalar Function":
            ftype = require(entry, "Scalar Function Type", name)
            if ftype not in SCALAR_FUNCTIONS:
                raise ConfigurationError(
                    f"Scalar function type '{ftype}' is not supported. "
                    f"Options are: {', '.join(SCALAR_FUNCTIONS)}."
                )
            kernel = SCALAR_FUNCTIONS[ftype](self.dof_map.element, self.spatial_model, self.params,
                                             entry, self.physics)
            function = PhysicsScalarFunction(name, self.spatial_model, self.dof_map, kernel,
                                             assembly=self.assembly, linear=entry.get("Linear"))
            return kernel.build(function)
        if ctype == "Weighted Sum":
            names = list(require(entry, "Functions", name))
            weights = list(require(entry, "Weights", name))
            return WeightedSum(name, [self.get(n) for n in names], weights)
        if ctype == "Division":
            return Division(name, self.get(require(entry, "Numerator", name)),
                            self.get(require(entry, "Denominator", name)))
        raise ConfigurationError(f"Criterion '{name}': unknown type '{ctype}'.")


def create_criteria(spatial_model: SpatialModel, dof_map: DofMap, params: Dict,
                    assembly: AssemblyParameters = AssemblyParameters()) -> Dict:
    builder = _Builder(spatial_model, dof_map, params, assembly)
    for name in builder.block:
        builder.get(name)
    logger.debug("criteria: %s", ", ".join(builder.built))
    return builder.built
