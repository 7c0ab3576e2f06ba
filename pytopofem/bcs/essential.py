# pytopofem.bcs.essential
"""
Essential (Dirichlet) boundary conditions.

Parameter block::

    "Essential Boundary Conditions": {
        "Fixed X": {"Type": "Zero Value",  "Index": 0, "Sides": "x-"},
        "Pull":    {"Type": "Fixed Value", "Index": 0, "Sides": "x+", "Value": 0.1}
    }

Constraints are imposed by symmetric elimination: the constrained rows and
columns are zeroed, the diagonal is set to one, the column contributions of
the prescribed values are moved to the right-hand side and the constrained
right-hand-side entries become ``scale * value``.
"""
from __future__ import annotations

import logging
from typing import Dict, Tuple

import numpy as np
import scipy.sparse as sp

from pytopofem.config import require
from pytopofem.core.dofmap import DofMap
from pytopofem.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = ["EssentialBCs", "apply_constraints", "apply_block_constraints"]


class EssentialBCs:
    def __init__(self, params: Dict, dof_map: DofMap):
        self.entries = []
        dofs, values = [], []
        mesh = dof_map.mesh
        for name, entry in params.items():
            btype = require(entry, "Type", name)
            index = int(require(entry, "Index", name))
            nodes = mesh.node_set(require(entry, "Sides", name))
            if btype == "Zero Value":
                value = 0.0
            elif btype == "Fixed Value":
                value = float(require(entry, "Value", name))
            else:
                raise ConfigurationError(
                    f"Essential boundary condition '{name}': unknown type '{btype}'."
                )
            try:
                d = dof_map.node_dofs(nodes, index)
            except ValueError as exc:
                raise ConfigurationError(f"Essential boundary condition '{name}': {exc}") from exc
            self.entries.append((name, btype, index, value))
            dofs.append(d)
            values.append(np.full(len(d), value))

        if dofs:
            all_dofs = np.concatenate(dofs)
            all_values = np.concatenate(values)
        else:
            all_dofs = np.empty(0, dtype=np.int64)
            all_values = np.empty(0)
        # the first definition of a dof wins
        self.dofs, first = np.unique(all_dofs, return_index=True)
        self.values = all_values[first]
        logger.debug("essential BCs: %d entries, %d constrained dofs", len(self.entries), len(self.dofs))

    def get(self) -> Tuple[np.ndarray, np.ndarray]:
        return self.dofs.copy(), self.values.copy()


def _check(n: int, rhs, dofs, values):
    dofs = np.asarray(dofs, dtype=np.int64)
    values = np.asarray(values, dtype=float)
    if dofs.shape != values.shape:
        raise ConfigurationError(
            f"DIMENSION MISMATCH: {len(dofs)} CONSTRAINED DOFS BUT {len(values)} VALUES."
        )
    if len(rhs) != n:
        raise ValueError(f"right-hand side has length {len(rhs)}, system has {n} rows")
    if dofs.size and (dofs.min() < 0 or dofs.max() >= n):
        raise ValueError("constrained dof index out of range")
    return dofs, values


def apply_constraints(matrix: sp.csr_matrix, rhs: np.ndarray, dofs, values, scale: float = 1.0):
    """Impose ``x[dofs] = scale * values`` on ``matrix @ x = rhs`` in place.

    Returns the matrix (a new object only when a constrained diagonal entry
    was missing from the sparsity pattern).
    """
    n = matrix.shape[0]
    dofs, values = _check(n, rhs, dofs, values)
    if dofs.size == 0:
        return matrix

    constrained = np.zeros(n, dtype=bool)
    constrained[dofs] = True
    fixed = np.zeros(n)
    fixed[dofs] = scale * values

    rhs -= matrix @ fixed

    rows = np.repeat(np.arange(n), np.diff(matrix.indptr))
    cols = matrix.indices
    matrix.data[constrained[rows] | constrained[cols]] = 0.0

    on_diag = (rows == cols) & constrained[rows]
    matrix.data[on_diag] = 1.0
    if np.count_nonzero(on_diag) < len(dofs):
        lil = matrix.tolil()
        lil[dofs, dofs] = 1.0
        matrix = lil.tocsr()

    rhs[dofs] = scale * values
    return matrix


def apply_block_constraints(matrix: sp.bsr_matrix, rhs: np.ndarray, dofs, values, scale: float = 1.0):
    """Block-storage counterpart of :func:`apply_constraints`."""
    n = matrix.shape[0]
    dofs, values = _check(n, rhs, dofs, values)
    if dofs.size == 0:
        return matrix

    br, bc = matrix.blocksize
    constrained = np.zeros(n, dtype=bool)
    constrained[dofs] = True
    fixed = np.zeros(n)
    fixed[dofs] = scale * values

    rhs -= matrix @ fixed

    n_block_rows = n // br
    block_rows = np.repeat(np.arange(n_block_rows), np.diff(matrix.indptr))
    rows = block_rows[:, None, None] * br + np.arange(br)[None, :, None]
    cols = matrix.indices[:, None, None] * bc + np.arange(bc)[None, None, :]
    rows, cols = np.broadcast_arrays(rows, cols)

    matrix.data[constrained[rows] | constrained[cols]] = 0.0
    on_diag = (rows == cols) & constrained[rows]
    matrix.data[on_diag] = 1.0
    if np.count_nonzero(on_diag) < len(dofs):
        csr = matrix.tocsr()
        csr = apply_constraints(csr, np.zeros(n), dofs, np.zeros(len(dofs)), 0.0)
        matrix = csr.tobsr(blocksize=(br, bc))

    rhs[dofs] = scale * values
    return matrix
