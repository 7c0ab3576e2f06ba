# pytopofem.assembly.workset
"""Gathered per-cell view of the global fields for one batch of cells."""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

import numpy as np

from pytopofem.core.dofmap import DofMap
from pytopofem.core.mesh import SpatialDomain
from pytopofem.fem.evaluation import EvaluationTypes

logger = logging.getLogger(__name__)

__all__ = ["Workset", "build_workset", "map_worksets"]


@dataclass
class Workset:
    """
    Local arrays of one contiguous cell batch.

    ``config`` is ``(C, n_nodes, dim)``; ``state``, ``control`` and
    ``node_state`` are ``(C, n_nodes * per_node)``; ``result`` is
    ``(C, n_dofs_per_cell)`` for residuals and ``(C,)`` for scalar
    criteria.  Entries are ndarrays or dual numbers as dictated by
    ``types``.  A workset lives for one assembly call only.
    """

    cells: np.ndarray
    types: EvaluationTypes
    config: Any
    state: Any
    control: Any
    node_state: Any
    result: Any
    domain: Optional[SpatialDomain] = None
    time_step: float = 0.0

    @property
    def n_cells(self) -> int:
        return len(self.cells)


def _local(dof_map: DofMap, category: str, vector, cells):
    if vector is None:
        width = dof_map.mesh.n_nodes_per_cell * dof_map.per_node(category)
        return np.zeros((len(cells), width))
    local = dof_map.gather(category, vector, cells)
    return local.reshape(len(cells), local.shape[1] * local.shape[2])


def build_workset(dof_map: DofMap, types: EvaluationTypes, cells, *, state, control,
                  node_state=None, result_shape=None, domain=None, time_step=0.0) -> Workset:
    cells = np.asarray(cells, dtype=np.int64)
    n = len(cells)
    mesh = dof_map.mesh
    if result_shape is None:
        result_shape = (n, dof_map.element.n_dofs_per_cell)
    return Workset(
        cells=cells,
        types=types,
        config=types.config.gather(mesh.cell_coordinates(cells), local_axes=2),
        state=types.state.gather(_local(dof_map, "state", state, cells)),
        control=types.control.gather(_local(dof_map, "control", control, cells)),
        node_state=types.node_state.gather(_local(dof_map, "node_state", node_state, cells)),
        result=types.result.zeros(result_shape),
        domain=domain,
        time_step=time_step,
    )


def map_worksets(run: Callable, jobs: Sequence, threads: int = 1, label: str = "worksets") -> List:
    """Evaluate ``run(job)`` for every job and return the results in job order.

    With ``threads > 1`` the jobs are mapped on a thread pool.  Each job
    writes only to its own workset; the caller reduces the results serially.
    """
    t0 = time.perf_counter()
    if threads > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=threads) as pool:
            results = list(pool.map(run, jobs))
    else:
        results = [run(job) for job in jobs]
    logger.debug("%s: %d worksets evaluated in %.3fs", label, len(jobs), time.perf_counter() - t0)
    return results
