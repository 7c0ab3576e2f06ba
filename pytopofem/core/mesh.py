import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from pytopofem.core.element import ElementType, get_element
from pytopofem.config import sublist
from pytopofem.errors import ConfigurationError


class Mesh:
    """
    Nodal coordinates, cell connectivity and named entity sets.

    Node sets name groups of nodes (used for essential boundary conditions),
    side sets name (cell, local face) pairs (used for boundary loads), and
    cell sets name element blocks (used to build spatial domains).
    Coordinates are read every time a workset is gathered, so they may be
    moved in place between evaluations.
    """

    def __init__(self,
                 coordinates: np.ndarray,
                 connectivity: np.ndarray,
                 *,
                 element_type: str,
                 node_sets: Optional[Dict[str, np.ndarray]] = None,
                 side_sets: Optional[Dict[str, Tuple[np.ndarray, np.ndarray]]] = None,
                 cell_sets: Optional[Dict[str, np.ndarray]] = None):
        self.element: ElementType = get_element(element_type)
        self.coordinates = np.array(coordinates, dtype=float)
        if self.coordinates.ndim == 1:
            self.coordinates = self.coordinates[:, None]
        self.connectivity = np.asarray(connectivity, dtype=np.int64)

        if self.coordinates.shape[1] != self.element.spatial_dim:
            raise ValueError(
                f"{element_type} needs {self.element.spatial_dim}-D coordinates, "
                f"got {self.coordinates.shape[1]}-D"
            )
        if self.connectivity.ndim != 2 or self.connectivity.shape[1] != self.element.n_nodes_per_cell:
            raise ValueError(
                f"{element_type} connectivity must be (n_cells, {self.element.n_nodes_per_cell}), "
                f"got {self.connectivity.shape}"
            )
        if self.connectivity.size and (self.connectivity.min() < 0
                                       or self.connectivity.max() >= len(self.coordinates)):
            raise ValueError("connectivity references nodes outside the coordinate array")

        self.node_sets: Dict[str, np.ndarray] = {}
        self.side_sets: Dict[str, Tuple[np.ndarray, np.ndarray]] = {}
        self.cell_sets: Dict[str, np.ndarray] = {}
        for name, nodes in (node_sets or {}).items():
            self.add_node_set(name, nodes)
        for name, (cells, faces) in (side_sets or {}).items():
            self.add_side_set(name, cells, faces)
        for name, cells in (cell_sets or {}).items():
            self.add_cell_set(name, cells)

    # ------------------------------------------------------------------
    @property
    def element_type(self) -> str:
        return self.element.name

    @property
    def spatial_dim(self) -> int:
        return self.element.spatial_dim

    @property
    def n_nodes(self) -> int:
        return len(self.coordinates)

    @property
    def n_cells(self) -> int:
        return len(self.connectivity)

    @property
    def n_nodes_per_cell(self) -> int:
        return self.element.n_nodes_per_cell

    def cell_coordinates(self, cells=None) -> np.ndarray:
        """(C, n_nodes_per_cell, dim) nodal coordinates of *cells*."""
        conn = self.connectivity if cells is None else self.connectivity[cells]
        return self.coordinates[conn]

    # ------------------------------------------------------------------
    #  Entity sets
    # ------------------------------------------------------------------
    def add_node_set(self, name: str, nodes) -> None:
        self.node_sets[name] = np.unique(np.asarray(nodes, dtype=np.int64))

    def add_side_set(self, name: str, cells, faces) -> None:
        cells = np.asarray(cells, dtype=np.int64)
        faces = np.asarray(faces, dtype=np.int64)
        if cells.shape != faces.shape:
            raise ValueError(f"side set '{name}': cells and faces differ in length")
        if faces.size and (faces.min() < 0 or faces.max() >= self.element.n_faces):
            raise ValueError(f"side set '{name}': local face index out of range")
        pairs = np.unique(np.column_stack([cells, faces]), axis=0) if cells.size else np.empty((0, 2), np.int64)
        self.side_sets[name] = (pairs[:, 0].copy(), pairs[:, 1].copy())

    def add_cell_set(self, name: str, cells) -> None:
        self.cell_sets[name] = np.unique(np.asarray(cells, dtype=np.int64))

    def node_set(self, name: str) -> np.ndarray:
        if name not in self.node_sets:
            raise ConfigurationError(f"Node set '{name}' is not defined on the mesh.")
        return self.node_sets[name]

    def side_set(self, name: str) -> Tuple[np.ndarray, np.ndarray]:
        if name not in self.side_sets:
            raise ConfigurationError(f"Side set '{name}' is not defined on the mesh.")
        return self.side_sets[name]

    def cell_set(self, name: str) -> np.ndarray:
        if name not in self.cell_sets:
            raise ConfigurationError(f"Element block '{name}' is not defined on the mesh.")
        return self.cell_sets[name]

    def tag_boundary_sets(self, tol: float = 1e-12) -> None:
        """Create ``x-``, ``x+``, ``y-`` … node and side sets on the bounding box."""
        axes = "xyz"[: self.spatial_dim]
        lo = self.coordinates.min(axis=0)
        hi = self.coordinates.max(axis=0)
        for d, ax in enumerate(axes):
            for tag, bound in (("-", lo[d]), ("+", hi[d])):
                on = np.abs(self.coordinates[:, d] - bound) <= tol * max(1.0, abs(hi[d] - lo[d]))
                name = f"{ax}{tag}"
                self.add_node_set(name, np.flatnonzero(on))
                cells, faces = [], []
                for f, local in enumerate(self.element.face_nodes):
                    hit = np.all(on[self.connectivity[:, list(local)]], axis=1)
                    cells.append(np.flatnonzero(hit))
                    faces.append(np.full(hit.sum(), f))
                self.add_side_set(name, np.concatenate(cells), np.concatenate(faces))

    def __repr__(self):
        return (f"<Mesh {self.element_type}: {self.n_nodes} nodes, {self.n_cells} cells, "
                f"{len(self.node_sets)} node sets, {len(self.side_sets)} side sets>")


@dataclass
class SpatialDomain:
    """A named subset of cells sharing one material."""

    name: str
    cells: np.ndarray
    material: str

    @property
    def n_cells(self) -> int:
        return len(self.cells)

    def worksets(self, size: int):
        for start in range(0, len(self.cells), size):
            yield self.cells[start:start + size]


class SpatialModel:
    """Mesh plus the domains read from the "Spatial Model" parameter block."""

    def __init__(self, mesh: Mesh, params: dict):
        self.mesh = mesh
        self.domains: List[SpatialDomain] = []

        block = sublist(params, "Spatial Model")
        domains = sublist(block, "Domains")
        if domains:
            for name, entry in domains.items():
                if "Material Model" not in entry:
                    raise ConfigurationError(f"Domain '{name}': 'Material Model' is required.")
                cells = (mesh.cell_set(entry["Element Block"])
                         if "Element Block" in entry else np.arange(mesh.n_cells))
                self.domains.append(SpatialDomain(name, cells, entry["Material Model"]))
        else:
            materials = list(sublist(params, "Material Models"))
            if len(materials) != 1:
                raise ConfigurationError(
                    "SPATIAL MODEL SUBLIST IS REQUIRED WHEN MORE OR LESS THAN ONE MATERIAL MODEL IS DEFINED."
                )
            self.domains.append(SpatialDomain("Body", np.arange(mesh.n_cells), materials[0]))

    @property
    def n_cells(self) -> int:
        return sum(d.n_cells for d in self.domains)
