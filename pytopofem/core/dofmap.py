# dofmap.py
"""
Cell-local to global index maps and the sparsity patterns they imply.

Global numbering is node-major for every variable category::

    state      : node * n_dofs_per_node + component
    control    : node * n_controls_per_node + component
    config     : node * spatial_dim + direction
    node state : node * n_node_state_per_node + component

For a pair of categories the pattern is a canonical CSR structure (sorted,
duplicate free) plus an ``entries`` array of shape
``(n_cells, n_rows_local, n_cols_local)`` giving, for every local block
entry, its position in the CSR ``data`` array.  Scattering a dense local
block is then a plain indexed add with no searching.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np
import scipy.sparse as sp

from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import Mesh

logger = logging.getLogger(__name__)

__all__ = ["DofMap", "SparsityPattern", "CATEGORIES"]

CATEGORIES = ("state", "control", "config", "node_state")


@dataclass
class SparsityPattern:
    indptr: np.ndarray
    indices: np.ndarray
    shape: Tuple[int, int]
    entries: np.ndarray = field(repr=False)     # (n_cells, n_rows_local, n_cols_local)

    @property
    def nnz(self) -> int:
        return len(self.indices)

    def empty_matrix(self) -> sp.csr_matrix:
        data = np.zeros(self.nnz)
        return sp.csr_matrix((data, self.indices.copy(), self.indptr.copy()), shape=self.shape)


class DofMap:
    def __init__(self, mesh: Mesh, element: PhysicsElement):
        if mesh.element_type != element.element.name:
            raise ValueError(
                f"mesh element '{mesh.element_type}' does not match physics element "
                f"'{element.element.name}'"
            )
        self.mesh = mesh
        self.element = element
        conn = mesh.connectivity
        per_node = {
            "state": element.n_dofs_per_node,
            "control": element.n_controls_per_node,
            "config": element.spatial_dim,
            "node_state": element.n_node_state_per_node,
        }
        self._per_node = per_node
        self._ordinals: Dict[str, np.ndarray] = {
            name: (conn[:, :, None] * k + np.arange(k)).reshape(len(conn), conn.shape[1] * k)
            for name, k in per_node.items()
        }
        self._patterns: Dict[Tuple[str, str], SparsityPattern] = {}

    # ------------------------------------------------------------------
    def size(self, category: str) -> int:
        return self.mesh.n_nodes * self._per_node[category]

    def per_node(self, category: str) -> int:
        return self._per_node[category]

    def ordinals(self, category: str, cells=None) -> np.ndarray:
        """Global indices of the local entries, shape (C, n_local)."""
        ords = self._ordinals[category]
        return ords if cells is None else ords[cells]

    def gather(self, category: str, vector: np.ndarray, cells) -> np.ndarray:
        """Local copies of *vector* per cell, shape (C, n_nodes_per_cell, per_node)."""
        k = self._per_node[category]
        local = np.asarray(vector, dtype=float)[self._ordinals[category][cells]]
        return local.reshape(len(cells), self.mesh.n_nodes_per_cell, k)

    def node_dofs(self, nodes, component: int, category: str = "state") -> np.ndarray:
        k = self._per_node[category]
        if not 0 <= component < k:
            raise ValueError(f"component {component} out of range for {k} {category} entries per node")
        return np.asarray(nodes, dtype=np.int64) * k + component

    # ------------------------------------------------------------------
    #  Sparsity
    # ------------------------------------------------------------------
    def pattern(self, rows: str, cols: str) -> SparsityPattern:
        key = (rows, cols)
        if key not in self._patterns:
            self._patterns[key] = self._build_pattern(rows, cols)
        return self._patterns[key]

    def _build_pattern(self, rows: str, cols: str) -> SparsityPattern:
        n_rows, n_cols = self.size(rows), self.size(cols)
        r = self._ordinals[rows]
        c = self._ordinals[cols]
        n_cells, n_rl, n_cl = len(r), r.shape[1], c.shape[1]

        keys = (r[:, :, None].astype(np.int64) * n_cols + c[:, None, :]).ravel()
        if rows == cols:
            # diagonal always present so constraints can set it
            diag = np.arange(n_rows, dtype=np.int64)
            keys = np.concatenate([keys, diag * n_cols + diag])

        uniq, inverse = np.unique(keys, return_inverse=True)
        row_of = uniq // n_cols
        indptr = np.zeros(n_rows + 1, dtype=np.int64)
        indptr[1:] = np.cumsum(np.bincount(row_of, minlength=n_rows))
        indices = (uniq % n_cols).astype(np.int64)
        entries = inverse[: n_cells * n_rl * n_cl].reshape(n_cells, n_rl, n_cl).astype(np.int64)

        logger.debug("pattern (%s, %s): %d x %d, nnz=%d", rows, cols, n_rows, n_cols, len(indices))
        return SparsityPattern(indptr, indices, (n_rows, n_cols), entries)
