from .element import ElementType, PhysicsElement, get_element
from .mesh import Mesh, SpatialDomain, SpatialModel
from .dofmap import DofMap, SparsityPattern

__all__ = [
    "ElementType", "PhysicsElement", "get_element",
    "Mesh", "SpatialDomain", "SpatialModel",
    "DofMap", "SparsityPattern",
]
