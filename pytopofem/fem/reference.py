# pytopofem.fem.reference
"""
Linear reference elements defined symbolically with SymPy and lambdified
to NumPy once per element type.
"""
from functools import lru_cache

import numpy as np
import sympy as sp

__all__ = ["Ref", "get_reference"]

xi, eta, zeta = sp.symbols("xi eta zeta")


def _bar2():
    N = [(1 - xi) / 2, (1 + xi) / 2]
    return (xi,), N


def _tri3():
    N = [1 - xi - eta, xi, eta]
    return (xi, eta), N


def _quad4():
    # CCW: (-1,-1), (1,-1), (1,1), (-1,1)
    N = [(1 - xi) * (1 - eta) / 4, (1 + xi) * (1 - eta) / 4,
         (1 + xi) * (1 + eta) / 4, (1 - xi) * (1 + eta) / 4]
    return (xi, eta), N


def _tet4():
    N = [1 - xi - eta - zeta, xi, eta, zeta]
    return (xi, eta, zeta), N


def _hex8():
    corners = [(-1, -1, -1), (1, -1, -1), (1, 1, -1), (-1, 1, -1),
               (-1, -1, 1), (1, -1, 1), (1, 1, 1), (-1, 1, 1)]
    N = [(1 + a * xi) * (1 + b * eta) * (1 + c * zeta) / 8 for a, b, c in corners]
    return (xi, eta, zeta), N


_DEFINITIONS = {
    "bar2": _bar2,
    "tri3": _tri3,
    "quad4": _quad4,
    "tet4": _tet4,
    "hex8": _hex8,
}


class Ref:
    """Basis values and reference gradients of one element type."""

    def __init__(self, name, symbols, N_sym):
        self.name = name
        self.dim = len(symbols)
        self.n_nodes = len(N_sym)
        N = sp.Matrix(N_sym)
        dN = N.jacobian(list(symbols))
        self._shape = sp.lambdify(symbols, N, "numpy")
        self._grad = sp.lambdify(symbols, dN, "numpy")

    def shape(self, point):
        """Basis values at one reference point → (n_nodes,)."""
        return np.asarray(self._shape(*point), dtype=float).reshape(self.n_nodes)

    def grad(self, point):
        """Reference gradients at one point → (n_nodes, dim)."""
        return np.asarray(self._grad(*point), dtype=float).reshape(self.n_nodes, self.dim)

    def tabulate(self, points):
        """Values (n_qp, n_nodes) and gradients (n_qp, n_nodes, dim)."""
        points = np.atleast_2d(points)
        N = np.array([self.shape(p) for p in points])
        dN = np.array([self.grad(p) for p in points])
        return N, dN


class _PointRef:
    """0-d element used for the end faces of a bar."""

    name = "point"
    dim = 0
    n_nodes = 1

    def tabulate(self, points):
        n = len(np.atleast_2d(points))
        return np.ones((n, 1)), np.zeros((n, 1, 0))


@lru_cache(maxsize=None)
def get_reference(element_name: str):
    if element_name == "point":
        return _PointRef()
    if element_name not in _DEFINITIONS:
        raise KeyError(element_name)
    symbols, N = _DEFINITIONS[element_name]()
    return Ref(element_name, symbols, N)
