# pytopofem.physics.operators
"""
Per-integration-point building blocks shared by every residual and
criterion kernel.

All operators work on a batch of cells at once.  Nodal inputs are indexed
with plain integer loops over local nodes and components, so every value
may be either an ``ndarray`` of shape ``(C,)`` or a :class:`~pytopofem.ad.Dual`
with the same batch shape; the arithmetic is identical for both.

Local layouts
-------------
* ``config``   : ``(C, n_nodes, dim)``
* ``state``    : ``(C, n_nodes * n_dofs_per_node)`` (node-major)
* ``grad[a][i]``: derivative of basis ``a`` along ``x_i``, shape ``(C,)``
"""
from __future__ import annotations

import numpy as np

from pytopofem import ad
from pytopofem.core.element import ElementType
from pytopofem.errors import GeometryError

__all__ = [
    "compute_gradient_matrix",
    "interpolate",
    "small_strain",
    "scalar_gradient",
    "stress_divergence",
    "flux_divergence",
    "project",
    "face_measure",
    "sum_terms",
]


def sum_terms(terms):
    out = 0.0
    for t in terms:
        out = out + t
    return out


def _determinant(J):
    dim = len(J)
    if dim == 1:
        return J[0][0]
    if dim == 2:
        return J[0][0] * J[1][1] - J[0][1] * J[1][0]
    return (J[0][0] * (J[1][1] * J[2][2] - J[1][2] * J[2][1])
            - J[0][1] * (J[1][0] * J[2][2] - J[1][2] * J[2][0])
            + J[0][2] * (J[1][0] * J[2][1] - J[1][1] * J[2][0]))


def _inverse(J, det):
    """Closed-form inverse, ``inv[j][i] = d xi_j / d x_i``."""
    dim = len(J)
    if dim == 1:
        return [[1.0 / det]]
    if dim == 2:
        return [[J[1][1] / det, -J[0][1] / det],
                [-J[1][0] / det, J[0][0] / det]]
    cof = [[None] * 3 for _ in range(3)]
    for r in range(3):
        for c in range(3):
            r1, r2 = [k for k in range(3) if k != r]
            c1, c2 = [k for k in range(3) if k != c]
            minor = J[r1][c1] * J[r2][c2] - J[r1][c2] * J[r2][c1]
            cof[r][c] = minor if (r + c) % 2 == 0 else -minor
    # inverse = adjugate / det = cof^T / det
    return [[cof[c][r] / det for c in range(3)] for r in range(3)]


def compute_gradient_matrix(element: ElementType, config, qp: int, cells=None):
    """Physical basis gradients and weighted cell volume at cubature point *qp*.

    Returns ``(grad, volume)`` where ``grad[a][i]`` is ``dN_a/dx_i`` and
    ``volume = det(J) * w_qp``.

    Raises
    ------
    GeometryError
        if ``det(J) <= 0`` for any cell of the batch.  *cells* (global ids)
        is only used to name the offending cells in the message.
    """
    dim = element.spatial_dim
    nn = element.n_nodes_per_cell
    dN = element.basis_grads[qp]

    J = [[sum_terms(config[:, a, i] * dN[a, j] for a in range(nn) if dN[a, j] != 0.0)
          for j in range(dim)] for i in range(dim)]
    det = _determinant(J)

    bad = np.flatnonzero(~(ad.value_of(det) > 0.0))
    if bad.size:
        ids = bad if cells is None else np.asarray(cells)[bad]
        raise GeometryError(
            f"non-positive volume in {bad.size} cell(s), first offending cell {int(ids[0])}",
            cells=ids,
        )

    inv = _inverse(J, det)
    grad = [[sum_terms(dN[a, j] * inv[j][i] for j in range(dim)) for i in range(dim)]
            for a in range(nn)]
    return grad, det * element.cub_weights[qp]


def interpolate(element: ElementType, qp: int, nodal, per_node: int = 1, component: int = 0):
    """Basis-weighted value of one nodal component at *qp*."""
    N = element.basis_values[qp]
    return sum_terms(N[a] * nodal[:, a * per_node + component]
                     for a in range(element.n_nodes_per_cell))


def small_strain(grad, state, voigt_pairs, per_node: int, offset: int = 0):
    """Engineering Voigt strain from the displacement slots of *state*."""
    nn = len(grad)
    strain = []
    for i, j in voigt_pairs:
        if i == j:
            strain.append(sum_terms(grad[a][i] * state[:, a * per_node + offset + i] for a in range(nn)))
        else:
            strain.append(sum_terms(grad[a][j] * state[:, a * per_node + offset + i]
                                    + grad[a][i] * state[:, a * per_node + offset + j]
                                    for a in range(nn)))
    return strain


def scalar_gradient(grad, state, per_node: int = 1, component: int = 0):
    nn, dim = len(grad), len(grad[0])
    return [sum_terms(grad[a][i] * state[:, a * per_node + component] for a in range(nn))
            for i in range(dim)]


def stress_divergence(res, grad, stress, volume, voigt_pairs, per_node: int, offset: int = 0):
    """Accumulate ``volume * B^T stress`` into the local result list *res*."""
    for a in range(len(grad)):
        base = a * per_node + offset
        for v, (i, j) in enumerate(voigt_pairs):
            sv = stress[v] * volume
            if i == j:
                res[base + i] = res[base + i] + sv * grad[a][i]
            else:
                res[base + i] = res[base + i] + sv * grad[a][j]
                res[base + j] = res[base + j] + sv * grad[a][i]


def flux_divergence(res, grad, flux, volume, per_node: int = 1, component: int = 0):
    """Accumulate ``volume * grad(N_a) . flux`` into *res*."""
    dim = len(flux)
    for a in range(len(grad)):
        k = a * per_node + component
        res[k] = res[k] + volume * sum_terms(flux[i] * grad[a][i] for i in range(dim))


def project(res, element: ElementType, qp: int, value, per_node: int = 1, component: int = 0):
    """Accumulate ``N_a * value`` into *res* (volumetric sources)."""
    N = element.basis_values[qp]
    for a in range(element.n_nodes_per_cell):
        k = a * per_node + component
        res[k] = res[k] + N[a] * value


def face_measure(face: ElementType, face_config, qp: int):
    """Surface Jacobian of a face at its cubature point *qp*.

    *face_config* is a list over face nodes of lists over directions.
    """
    rdim = face.spatial_dim
    if rdim == 0:
        return 1.0
    dN = face.basis_grads[qp]
    n = len(face_config)
    dim = len(face_config[0])
    T = [[sum_terms(face_config[b][i] * dN[b, r] for b in range(n)) for i in range(dim)]
         for r in range(rdim)]
    if rdim == 1:
        return ad.sqrt(sum_terms(t * t for t in T[0]))
    t0, t1 = T
    nrm = [t0[1] * t1[2] - t0[2] * t1[1],
           t0[2] * t1[0] - t0[0] * t1[2],
           t0[0] * t1[1] - t0[1] * t1[0]]
    return ad.sqrt(sum_terms(c * c for c in nrm))
