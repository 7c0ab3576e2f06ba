"""pytopofem.integration.quadrature
Quadrature provider for points, lines, triangles, quads, tetrahedra and hexes.
"""
# pytopofem.integration.quadrature
import numpy as np
from functools import lru_cache
from numpy.polynomial.legendre import leggauss

__all__ = [
    "gauss_legendre", "point_rule", "line_rule", "quad_rule", "hex_rule",
    "tri_rule", "tet_rule", "volume",
]


# -------------------------------------------------------------------------
# 1‑D Gauss–Legendre
# -------------------------------------------------------------------------
def gauss_legendre(order: int):
    if order < 1:
        raise ValueError(order)
    return leggauss(order)  # (points, weights)

def _gl01(order: int):
    """Gauss–Legendre nodes and weights mapped to [0,1]."""
    xi, w = gauss_legendre(int(order))
    lam = 0.5*(xi + 1.0)
    wl  = 0.5*w
    return lam, wl

# -------------------------------------------------------------------------
# Tensor‑product construction helpers
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def point_rule():
    return np.zeros((1, 0)), np.ones(1)

@lru_cache(maxsize=None)
def line_rule(order: int):
    xi, wi = gauss_legendre(order)
    return xi[:, None], wi

@lru_cache(maxsize=None)
def quad_rule(order: int):
    xi, wi = gauss_legendre(order)
    pts = np.array([[x, y] for y in xi for x in xi])
    wts = np.array([wx * wy for wy in wi for wx in wi])
    return pts, wts

@lru_cache(maxsize=None)
def hex_rule(order: int):
    xi, wi = gauss_legendre(order)
    pts = np.array([[x, y, z] for z in xi for y in xi for x in xi])
    wts = np.array([wx * wy * wz for wz in wi for wy in wi for wx in wi])
    return pts, wts

# -------------------------------------------------------------------------
# Simplex rules on (0,0)-(1,0)-(0,1) and (0,0,0)-(1,0,0)-(0,1,0)-(0,0,1)
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def tri_rule(degree: int):
    """Symmetric rules up to degree 2, collapsed Gauss beyond."""
    if degree <= 1:
        return np.array([[1.0/3.0, 1.0/3.0]]), np.array([0.5])
    if degree == 2:
        a, b = 1.0/6.0, 2.0/3.0
        pts = np.array([[a, a], [b, a], [a, b]])
        return pts, np.full(3, 1.0/6.0)

    order = (degree + 2) // 2
    u, w_u = _gl01(order)
    pts = []
    wts = []
    for i, ui in enumerate(u):
        for j, vj in enumerate(u):
            r = ui
            s = vj * (1.0 - ui)
            weight = w_u[i] * w_u[j] * (1.0 - ui)
            pts.append([r, s])
            wts.append(weight)
    return np.array(pts), np.array(wts)

@lru_cache(maxsize=None)
def tet_rule(degree: int):
    if degree <= 1:
        return np.array([[0.25, 0.25, 0.25]]), np.array([1.0/6.0])
    if degree == 2:
        a, b = 0.5854101966249685, 0.1381966011250105
        pts = np.array([[b, b, b], [a, b, b], [b, a, b], [b, b, a]])
        return pts, np.full(4, 1.0/24.0)

    order = (degree + 3) // 2
    u, w_u = _gl01(order)
    pts = []
    wts = []
    for i, ui in enumerate(u):
        for j, vj in enumerate(u):
            for k, wk in enumerate(u):
                x = ui
                y = (1.0 - ui) * vj
                z = (1.0 - ui) * (1.0 - vj) * wk
                pts.append([x, y, z])
                wts.append(w_u[i] * w_u[j] * w_u[k] * (1.0 - ui)**2 * (1.0 - vj))
    return np.array(pts), np.array(wts)


def volume(element_name: str, order: int = 2):
    """Reference-cell rule exact for polynomials of degree *order*."""
    n_gauss = max(1, (order + 2) // 2)
    if element_name == "point":
        return point_rule()
    if element_name == "bar2":
        return line_rule(n_gauss)
    if element_name == "quad4":
        return quad_rule(n_gauss)
    if element_name == "hex8":
        return hex_rule(n_gauss)
    if element_name == "tri3":
        return tri_rule(order)
    if element_name == "tet4":
        return tet_rule(order)
    raise KeyError(element_name)
