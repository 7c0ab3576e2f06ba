from .residual import AbstractResidual
from .elastostatics import ElastostaticResidual
from .diffusion import ThermostaticResidual, ElectrostaticResidual
from .thermomechanics import ThermomechanicalResidual
from .loads import BodyLoads, NaturalBCs
from .penalty import MSIMP
from .factory import create_residual, physics_element

__all__ = [
    "AbstractResidual", "ElastostaticResidual", "ThermostaticResidual",
    "ElectrostaticResidual", "ThermomechanicalResidual", "BodyLoads",
    "NaturalBCs", "MSIMP", "create_residual", "physics_element",
]
