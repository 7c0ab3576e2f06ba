# pytopofem.assembly.scatter
"""
Reduction of private per-cell blocks into global storage.

Worksets are evaluated independently (possibly on several threads) into
their own dense blocks; the reduction below is the only place that writes
shared global arrays and it runs on a single thread, so accumulation is
race free.
"""
import numba
import numpy as np

__all__ = ["reduce_blocks", "reduce_vector", "reduce_transposed_blocks"]


@numba.njit(cache=True)
def _reduce_blocks(data, entries, blocks):
    n_cells, n_rows, n_cols = entries.shape
    for c in range(n_cells):
        for i in range(n_rows):
            for j in range(n_cols):
                data[entries[c, i, j]] += blocks[c, i, j]


@numba.njit(cache=True)
def _reduce_transposed(data, entries, blocks):
    # entries[c, j, i] addresses (row_j, col_i); blocks[c, i, j] holds d r_i / d v_j
    n_cells, n_rows, n_cols = entries.shape
    for c in range(n_cells):
        for j in range(n_rows):
            for i in range(n_cols):
                data[entries[c, j, i]] += blocks[c, i, j]


def reduce_blocks(data: np.ndarray, entries: np.ndarray, blocks: np.ndarray) -> None:
    """``data[entries[c,i,j]] += blocks[c,i,j]``."""
    if entries.shape != blocks.shape:
        raise ValueError(f"block shape {blocks.shape} does not match pattern {entries.shape}")
    _reduce_blocks(data, np.ascontiguousarray(entries), np.ascontiguousarray(blocks, dtype=np.float64))


def reduce_transposed_blocks(data: np.ndarray, entries: np.ndarray, blocks: np.ndarray) -> None:
    """``data[entries[c,j,i]] += blocks[c,i,j]``."""
    if entries.shape != blocks.shape[:1] + blocks.shape[:0:-1]:
        raise ValueError(f"block shape {blocks.shape} does not transpose onto pattern {entries.shape}")
    _reduce_transposed(data, np.ascontiguousarray(entries), np.ascontiguousarray(blocks, dtype=np.float64))


def reduce_vector(vector: np.ndarray, ordinals: np.ndarray, local: np.ndarray) -> None:
    np.add.at(vector, ordinals, local)
