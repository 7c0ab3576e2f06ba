"""pytopofem.utils.meshgen
Structured mesh generators for tests and small examples.

Every generator returns a :class:`~pytopofem.core.mesh.Mesh` tagged with
node and side sets on the bounding box (``x-``, ``x+``, ``y-`` …).
"""
import numpy as np
import numba
from typing import Optional, Tuple

from pytopofem.core.mesh import Mesh

__all__ = [
    "structured_bar", "structured_quad", "structured_tri",
    "structured_hex", "structured_tet",
]


@numba.njit(cache=True)
def _grid_quads(nx, ny):
    cells = np.empty((nx * ny, 4), dtype=np.int64)
    c = 0
    for j in range(ny):
        for i in range(nx):
            n0 = j * (nx + 1) + i
            cells[c, 0] = n0
            cells[c, 1] = n0 + 1
            cells[c, 2] = n0 + nx + 2
            cells[c, 3] = n0 + nx + 1
            c += 1
    return cells


@numba.njit(cache=True)
def _grid_hexes(nx, ny, nz):
    cells = np.empty((nx * ny * nz, 8), dtype=np.int64)
    layer = (nx + 1) * (ny + 1)
    c = 0
    for k in range(nz):
        for j in range(ny):
            for i in range(nx):
                n0 = k * layer + j * (nx + 1) + i
                cells[c, 0] = n0
                cells[c, 1] = n0 + 1
                cells[c, 2] = n0 + nx + 2
                cells[c, 3] = n0 + nx + 1
                for a in range(4):
                    cells[c, 4 + a] = cells[c, a] + layer
                c += 1
    return cells


def _grid_coords(lengths, counts, offset):
    axes = [np.linspace(0.0, L, n + 1) for L, n in zip(lengths, counts)]
    mesh = np.meshgrid(*axes, indexing="ij")
    # x fastest, matching the connectivity kernels
    coords = np.column_stack([m.transpose().ravel() for m in mesh])
    if offset is not None:
        coords = coords + np.asarray(offset, dtype=float)
    return coords


def _finish(coords, cells, element_type):
    mesh = Mesh(coords, cells, element_type=element_type)
    mesh.tag_boundary_sets()
    return mesh


def structured_bar(length: float, *, nx: int, offset: Optional[float] = None) -> Mesh:
    coords = np.linspace(0.0, length, nx + 1)[:, None]
    if offset is not None:
        coords = coords + offset
    cells = np.column_stack([np.arange(nx), np.arange(1, nx + 1)])
    return _finish(coords, cells, "bar2")


def structured_quad(Lx: float, Ly: float, *, nx: int, ny: int,
                    offset: Optional[Tuple[float, float]] = None) -> Mesh:
    return _finish(_grid_coords((Lx, Ly), (nx, ny), offset), _grid_quads(nx, ny), "quad4")


def structured_tri(Lx: float, Ly: float, *, nx: int, ny: int,
                   offset: Optional[Tuple[float, float]] = None) -> Mesh:
    """Every quad split along its (0, 2) diagonal, counter-clockwise."""
    q = _grid_quads(nx, ny)
    tris = np.empty((2 * len(q), 3), dtype=np.int64)
    tris[0::2] = q[:, [0, 1, 2]]
    tris[1::2] = q[:, [0, 2, 3]]
    return _finish(_grid_coords((Lx, Ly), (nx, ny), offset), tris, "tri3")


def structured_hex(Lx: float, Ly: float, Lz: float, *, nx: int, ny: int, nz: int,
                   offset: Optional[Tuple[float, float, float]] = None) -> Mesh:
    return _finish(_grid_coords((Lx, Ly, Lz), (nx, ny, nz), offset),
                   _grid_hexes(nx, ny, nz), "hex8")


# Kuhn subdivision: six tets sharing the 0-6 diagonal of every hex
_KUHN = np.array([
    [0, 1, 2, 6], [0, 2, 3, 6], [0, 3, 7, 6],
    [0, 7, 4, 6], [0, 4, 5, 6], [0, 5, 1, 6],
])


def structured_tet(Lx: float, Ly: float, Lz: float, *, nx: int, ny: int, nz: int,
                   offset: Optional[Tuple[float, float, float]] = None) -> Mesh:
    coords = _grid_coords((Lx, Ly, Lz), (nx, ny, nz), offset)
    h = _grid_hexes(nx, ny, nz)
    tets = h[:, _KUHN].reshape(-1, 4)

    # orient so that every tet has positive volume
    x = coords[tets]
    vol = np.einsum("ij,ij->i", np.cross(x[:, 1] - x[:, 0], x[:, 2] - x[:, 0]), x[:, 3] - x[:, 0])
    flip = vol < 0.0
    tets[flip] = tets[flip][:, [0, 2, 1, 3]]
    return _finish(coords, tets, "tet4")
