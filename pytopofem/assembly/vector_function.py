r"""
vector_function.py  –  Workset assembly of residuals and their Jacobians
======================================================================
One residual kernel, five global products::

    value        R(u, z, x)                  n_state
    gradient_u   dR/du                       n_state  x n_state
    gradient_u_T (dR/du)^T                   n_state  x n_state
    gradient_z   (dR/dz)^T                   n_control x n_state
    gradient_x   (dR/dx)^T                   n_config  x n_state
    gradient_n   (dR/dn)^T                   n_node_state x n_state

The products differ only in the evaluation kind handed to the workset
builder.  Every workset is evaluated into private storage first (on a
thread pool when ``threads > 1``); the reduction into the global vector or
CSR data array then runs on one thread in workset order.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np
import scipy.sparse as sp

from pytopofem import ad
from pytopofem.assembly.scatter import reduce_blocks, reduce_transposed_blocks, reduce_vector
from pytopofem.assembly.workset import Workset, build_workset, map_worksets
from pytopofem.config import AssemblyParameters
from pytopofem.core.dofmap import DofMap
from pytopofem.core.mesh import SpatialModel
from pytopofem.fem.evaluation import EvaluationKind, evaluation_types

__all__ = ["VectorFunction"]


class VectorFunction:
    def __init__(self, spatial_model: SpatialModel, residual, *,
                 dof_map: Optional[DofMap] = None,
                 assembly: AssemblyParameters = AssemblyParameters(),
                 matrix_format: str = "csr"):
        self.spatial_model = spatial_model
        self.residual = residual
        self.element = residual.element
        self.dof_map = dof_map or DofMap(spatial_model.mesh, self.element)
        self.assembly = assembly
        if matrix_format not in ("csr", "bsr"):
            raise ValueError(f"unknown matrix format '{matrix_format}'")
        self.matrix_format = matrix_format

    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        return self.dof_map.size("state")

    @property
    def num_cells(self) -> int:
        return self.spatial_model.mesh.n_cells

    @property
    def dof_names(self):
        return self.residual.dof_names

    @property
    def n_dofs_per_node(self) -> int:
        return self.element.n_dofs_per_node

    # ------------------------------------------------------------------
    #  Map phase
    # ------------------------------------------------------------------
    def _check(self, state, control, node_state) -> None:
        checks = [("state", state), ("control", control)]
        if node_state is not None:
            checks.append(("node_state", node_state))
        for category, vec in checks:
            expected = self.dof_map.size(category)
            if vec is None or np.ndim(vec) != 1 or len(vec) != expected:
                got = None if vec is None else np.shape(vec)
                raise ValueError(f"{category} vector has shape {got}, expected ({expected},)")

    def _jobs(self):
        size = self.assembly.workset_size
        jobs = []
        for domain in self.spatial_model.domains:
            for cells in domain.worksets(size):
                jobs.append((domain, cells, False))
        boundary = self.residual.boundary_cells()
        for start in range(0, len(boundary), size):
            jobs.append((None, boundary[start:start + size], True))
        return jobs

    def _evaluate(self, kind: EvaluationKind, state, control, node_state) -> List[Tuple[np.ndarray, object]]:
        self._check(state, control, node_state)
        types = evaluation_types(self.element, kind)

        def run(job):
            domain, cells, on_boundary = job
            ws: Workset = build_workset(self.dof_map, types, cells, state=state, control=control,
                                        node_state=node_state, domain=domain)
            if on_boundary:
                self.residual.evaluate_boundary(self.spatial_model, ws)
            else:
                self.residual.evaluate(ws)
            return ws.cells, ws.result

        return map_worksets(run, self._jobs(), self.assembly.threads, label=kind.value)

    # ------------------------------------------------------------------
    #  Reduce phase
    # ------------------------------------------------------------------
    def value(self, state, control, node_state=None) -> np.ndarray:
        out = np.zeros(self.size)
        for cells, result in self._evaluate(EvaluationKind.VALUE, state, control, node_state):
            reduce_vector(out, self.dof_map.ordinals("state", cells), ad.value_of(result))
        return out

    def _matrix(self, kind, rows, state, control, node_state, *, transpose: bool):
        pattern = self.dof_map.pattern(rows, "state")
        data = np.zeros(pattern.nnz)
        reduce = reduce_transposed_blocks if transpose else reduce_blocks
        for cells, result in self._evaluate(kind, state, control, node_state):
            reduce(data, pattern.entries[cells], result.partials)
        return sp.csr_matrix((data, pattern.indices.copy(), pattern.indptr.copy()), shape=pattern.shape)

    def _format(self, matrix):
        if self.matrix_format == "bsr":
            k = self.n_dofs_per_node
            return matrix.tobsr(blocksize=(k, k))
        return matrix

    def gradient_u(self, state, control, node_state=None):
        """``dR/du``; row = residual dof, column = state dof."""
        return self._format(self._matrix(EvaluationKind.JACOBIAN_STATE, "state", state, control,
                                         node_state, transpose=False))

    def gradient_u_T(self, state, control, node_state=None):
        """``(dR/du)^T`` assembled directly from transposed local blocks."""
        return self._format(self._matrix(EvaluationKind.JACOBIAN_STATE, "state", state, control,
                                         node_state, transpose=True))

    def gradient_z(self, state, control, node_state=None) -> sp.csr_matrix:
        """``(dR/dz)^T``, shape (n_control, n_state)."""
        return self._matrix(EvaluationKind.JACOBIAN_CONTROL, "control", state, control,
                            node_state, transpose=True)

    def gradient_x(self, state, control, node_state=None) -> sp.csr_matrix:
        """``(dR/dx)^T``, shape (n_config, n_state)."""
        return self._matrix(EvaluationKind.JACOBIAN_CONFIG, "config", state, control,
                            node_state, transpose=True)

    def gradient_n(self, state, control, node_state=None) -> sp.csr_matrix:
        """``(dR/dn)^T``, shape (n_node_state, n_state)."""
        return self._matrix(EvaluationKind.JACOBIAN_NODE_STATE, "node_state", state, control,
                            node_state, transpose=True)
