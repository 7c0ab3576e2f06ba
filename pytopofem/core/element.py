"""pytopofem.core.element
Element constants: topology, cubature and tabulated basis data.

An :class:`ElementType` is plain data injected into residuals and criteria;
a :class:`PhysicsElement` adds the number of degrees of freedom carried per
node for one physics.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Tuple

import numpy as np

from pytopofem.fem.reference import get_reference
from pytopofem.integration import volume

__all__ = ["ElementType", "PhysicsElement", "get_element"]

_FACES = {
    "bar2": ("point", ((0,), (1,))),
    "tri3": ("bar2", ((0, 1), (1, 2), (2, 0))),
    "quad4": ("bar2", ((0, 1), (1, 2), (2, 3), (3, 0))),
    "tet4": ("tri3", ((0, 2, 1), (0, 1, 3), (1, 2, 3), (0, 3, 2))),
    "hex8": ("quad4", ((0, 3, 2, 1), (4, 5, 6, 7), (0, 1, 5, 4),
                       (1, 2, 6, 5), (2, 3, 7, 6), (3, 0, 4, 7))),
    "point": (None, ()),
}


@dataclass(frozen=True, eq=False)
class ElementType:
    name: str
    spatial_dim: int
    n_nodes_per_cell: int
    face_type: str | None
    face_nodes: Tuple[Tuple[int, ...], ...]
    cub_points: np.ndarray = field(repr=False)
    cub_weights: np.ndarray = field(repr=False)
    basis_values: np.ndarray = field(repr=False)      # (n_qp, n_nodes)
    basis_grads: np.ndarray = field(repr=False)       # (n_qp, n_nodes, dim)

    @property
    def n_points(self) -> int:
        return len(self.cub_weights)

    @property
    def n_faces(self) -> int:
        return len(self.face_nodes)

    @property
    def face(self) -> "ElementType":
        if self.face_type is None:
            raise ValueError(f"{self.name} has no faces")
        return get_element(self.face_type)


@lru_cache(maxsize=None)
def get_element(name: str, quad_order: int = 2) -> ElementType:
    if name not in _FACES:
        raise KeyError(f"Unknown element type '{name}'")
    ref = get_reference(name)
    pts, wts = volume(name, quad_order)
    N, dN = ref.tabulate(pts)
    face_type, faces = _FACES[name]
    return ElementType(
        name=name,
        spatial_dim=ref.dim,
        n_nodes_per_cell=ref.n_nodes,
        face_type=face_type,
        face_nodes=faces,
        cub_points=np.asarray(pts, dtype=float),
        cub_weights=np.asarray(wts, dtype=float),
        basis_values=N,
        basis_grads=dN,
    )


_VOIGT_PAIRS = {
    1: ((0, 0),),
    2: ((0, 0), (1, 1), (0, 1)),
    3: ((0, 0), (1, 1), (2, 2), (1, 2), (0, 2), (0, 1)),
}


@dataclass(frozen=True, eq=False)
class PhysicsElement:
    """Element constants for one physics/element combination."""

    element: ElementType
    n_dofs_per_node: int
    n_controls_per_node: int = 1
    n_node_state_per_node: int = 0

    @property
    def spatial_dim(self) -> int:
        return self.element.spatial_dim

    @property
    def n_nodes_per_cell(self) -> int:
        return self.element.n_nodes_per_cell

    @property
    def n_dofs_per_cell(self) -> int:
        return self.n_nodes_per_cell * self.n_dofs_per_node

    @property
    def n_controls_per_cell(self) -> int:
        return self.n_nodes_per_cell * self.n_controls_per_node

    @property
    def n_config_per_cell(self) -> int:
        return self.n_nodes_per_cell * self.spatial_dim

    @property
    def n_node_state_per_cell(self) -> int:
        return self.n_nodes_per_cell * self.n_node_state_per_node

    @property
    def voigt_pairs(self):
        return _VOIGT_PAIRS[self.spatial_dim]

    @property
    def n_voigt(self) -> int:
        return len(self.voigt_pairs)
