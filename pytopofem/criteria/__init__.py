from .base import AbstractScalarKernel, PhysicsScalarFunction
from .energy import ElasticScalarKernel, InternalElasticEnergy, InternalThermalEnergy
from .volume import Volume, StateSquared
from .composite import WeightedSum, Division, PNorm
from .stress import StressPNorm, VolumeAverage, von_mises_squared
from .factory import create_criteria, SCALAR_FUNCTIONS

__all__ = [
    "AbstractScalarKernel", "PhysicsScalarFunction", "ElasticScalarKernel", "InternalElasticEnergy",
    "InternalThermalEnergy", "Volume", "StateSquared", "WeightedSum", "Division", "PNorm",
    "StressPNorm", "VolumeAverage", "von_mises_squared", "create_criteria", "SCALAR_FUNCTIONS",
]
