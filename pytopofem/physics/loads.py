# pytopofem.physics.loads
"""
External loads added into a residual workset.

``Body Loads`` are uniform volumetric sources per dof component,
``Natural Boundary Conditions`` are uniform tractions or fluxes on named
side sets.  Both are integrated with the configuration of the workset, so
they carry configuration partials when that is the differentiated input.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from pytopofem.config import require, sublist
from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import Mesh
from pytopofem.errors import ConfigurationError
from pytopofem.physics.operators import compute_gradient_matrix, face_measure

logger = logging.getLogger(__name__)

__all__ = ["BodyLoads", "NaturalBCs", "add_local"]


def add_local(result, res, rows=None) -> None:
    """Add the per-dof list *res* into the columns of *result*."""
    for k, r in enumerate(res):
        if isinstance(r, float) and r == 0.0:
            continue
        if rows is None:
            result[:, k] = result[:, k] + r
        else:
            result[rows, k] = result[rows, k] + r


def _components(name: str, entry: Dict, n_dofs_per_node: int) -> List[Tuple[int, float]]:
    if "Vector" in entry:
        vec = [float(v) for v in entry["Vector"]]
        if len(vec) != n_dofs_per_node:
            raise ConfigurationError(
                f"'{name}': 'Vector' has {len(vec)} entries, physics has {n_dofs_per_node} dofs per node."
            )
        return [(k, v) for k, v in enumerate(vec) if v != 0.0]
    value = float(require(entry, "Value", name))
    index = int(entry.get("Index", 0))
    if not 0 <= index < n_dofs_per_node:
        raise ConfigurationError(f"'{name}': 'Index' {index} out of range.")
    return [(index, value)]


@dataclass
class _UniformLoad:
    name: str
    components: List[Tuple[int, float]]
    sides: str = ""


class BodyLoads:
    def __init__(self, params: Dict, n_dofs_per_node: int):
        self.loads: List[_UniformLoad] = []
        for name, entry in sublist(params, "Body Loads").items():
            ltype = entry.get("Type", "Uniform")
            if ltype != "Uniform":
                raise ConfigurationError(f"Body load '{name}': unknown type '{ltype}'.")
            self.loads.append(_UniformLoad(name, _components(name, entry, n_dofs_per_node)))

    def __bool__(self):
        return bool(self.loads)

    def apply(self, element: PhysicsElement, workset, scale: float = 1.0) -> None:
        if not self.loads:
            return
        el = element.element
        ndof = element.n_dofs_per_node
        res = [0.0] * element.n_dofs_per_cell
        for q in range(el.n_points):
            _, volume = compute_gradient_matrix(el, workset.config, q, workset.cells)
            N = el.basis_values[q]
            for load in self.loads:
                for k, value in load.components:
                    for a in range(el.n_nodes_per_cell):
                        res[a * ndof + k] = res[a * ndof + k] + (scale * value * N[a]) * volume
        add_local(workset.result, res)


class NaturalBCs:
    def __init__(self, params: Dict, n_dofs_per_node: int):
        self.loads: List[_UniformLoad] = []
        for name, entry in sublist(params, "Natural Boundary Conditions").items():
            ltype = entry.get("Type", "Uniform")
            if ltype != "Uniform":
                raise ConfigurationError(f"Natural boundary condition '{name}': unknown type '{ltype}'.")
            sides = require(entry, "Sides", name)
            self.loads.append(_UniformLoad(name, _components(name, entry, n_dofs_per_node), sides))

    def __bool__(self):
        return bool(self.loads)

    @property
    def sides(self) -> List[str]:
        return sorted({load.sides for load in self.loads})

    def boundary_cells(self, mesh: Mesh) -> np.ndarray:
        cells = [mesh.side_set(s)[0] for s in self.sides]
        if not cells:
            return np.empty(0, dtype=np.int64)
        return np.unique(np.concatenate(cells))

    def apply(self, element: PhysicsElement, mesh: Mesh, workset, scale: float = 1.0) -> None:
        el = element.element
        face = el.face
        ndof = element.n_dofs_per_node
        ws_cells = workset.cells
        for load in self.loads:
            cells, faces = mesh.side_set(load.sides)
            pos = np.searchsorted(ws_cells, cells)
            inside = pos < len(ws_cells)
            inside[inside] = ws_cells[pos[inside]] == cells[inside]
            for f in np.unique(faces[inside]):
                rows = pos[inside & (faces == f)]
                local = el.face_nodes[f]
                fconf = [[workset.config[rows, a, i] for i in range(el.spatial_dim)] for a in local]
                res = [0.0] * element.n_dofs_per_cell
                for q in range(face.n_points):
                    measure = face_measure(face, fconf, q) * face.cub_weights[q]
                    Nf = face.basis_values[q]
                    for b, a in enumerate(local):
                        for k, value in load.components:
                            res[a * ndof + k] = res[a * ndof + k] + (scale * value * Nf[b]) * measure
                add_local(workset.result, res, rows)
            logger.debug("natural BC '%s': %d sides in workset", load.name, int(inside.sum()))
