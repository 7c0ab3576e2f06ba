r"""
linear_solver.py  –  Sparse linear solves for forward and adjoint systems
========================================================================
Thin, backend-selectable wrapper around :mod:`scipy.sparse.linalg`.  The
adjoint flag only selects which backend is used; the caller hands in the
already transposed matrix.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from pytopofem.config import sublist
from pytopofem.errors import ConfigurationError, LinearSolverError

logger = logging.getLogger(__name__)

__all__ = ["LinearSystemType", "LinearSolverParameters", "LinearSolver"]

_BACKENDS = ("direct", "cg", "gmres", "bicgstab")


class LinearSystemType(enum.Enum):
    SYMMETRIC_POSITIVE_DEFINITE = "SPD"
    SYMMETRIC_INDEFINITE = "Symmetric"
    NONSYMMETRIC = "Nonsymmetric"


@dataclass
class LinearSolverParameters:
    """Sparse linear solver settings."""

    backend: str = "direct"             # direct | cg | gmres | bicgstab
    adjoint_backend: Optional[str] = None   # defaults to *backend*
    tol: float = 1e-12                  # relative residual for Krylov solves
    maxit: int = 10_000
    matrix_format: str = "csr"          # csr | bsr

    @classmethod
    def from_params(cls, params: Dict) -> "LinearSolverParameters":
        block = sublist(params, "Linear Solver")
        out = cls(
            backend=str(block.get("Solver", cls.backend)).lower(),
            adjoint_backend=(str(block["Adjoint Solver"]).lower() if "Adjoint Solver" in block else None),
            tol=float(block.get("Tolerance", cls.tol)),
            maxit=int(block.get("Iterations", cls.maxit)),
            matrix_format=str(block.get("Matrix Format", cls.matrix_format)).lower(),
        )
        for name in (out.backend, out.adjoint_backend or out.backend):
            if name not in _BACKENDS:
                raise ConfigurationError(
                    f"Linear Solver: unknown solver '{name}'. Options are {', '.join(_BACKENDS)}."
                )
        if out.matrix_format not in ("csr", "bsr"):
            raise ConfigurationError(f"Linear Solver: unknown matrix format '{out.matrix_format}'.")
        return out


def _jacobi(A) -> spla.LinearOperator:
    d = A.diagonal().astype(float)
    d[d == 0.0] = 1.0
    inv = 1.0 / d
    return spla.LinearOperator(A.shape, matvec=lambda v: inv * v, dtype=float)


class LinearSolver:
    def __init__(self, params: LinearSolverParameters = LinearSolverParameters(),
                 system_type: LinearSystemType = LinearSystemType.SYMMETRIC_POSITIVE_DEFINITE):
        self.lp = params
        self.system_type = system_type

    def backend(self, is_adjoint: bool = False) -> str:
        if is_adjoint and self.lp.adjoint_backend:
            return self.lp.adjoint_backend
        return self.lp.backend

    def solve(self, matrix, x: np.ndarray, rhs: np.ndarray, is_adjoint: bool = False) -> np.ndarray:
        """Solve ``matrix @ x = rhs`` and store the result in *x*.

        *x* is also used as the initial guess of the Krylov backends.
        Returns *x*.
        """
        n = matrix.shape[0]
        if matrix.shape[1] != n or len(rhs) != n or len(x) != n:
            raise ValueError(
                f"linear system size mismatch: matrix {matrix.shape}, x {len(x)}, rhs {len(rhs)}"
            )
        name = self.backend(is_adjoint)
        A = sp.csr_matrix(matrix)

        if name == "direct":
            sol = spla.spsolve(A.tocsc(), rhs)
            info = 0
        else:
            if name == "cg" and self.system_type is not LinearSystemType.SYMMETRIC_POSITIVE_DEFINITE:
                raise ConfigurationError(
                    f"Linear Solver: 'cg' requires a symmetric positive definite system, got {self.system_type.value}."
                )
            krylov = {"cg": spla.cg, "gmres": spla.gmres, "bicgstab": spla.bicgstab}[name]
            sol, info = krylov(A, rhs, x0=np.array(x, dtype=float), rtol=self.lp.tol,
                               maxiter=self.lp.maxit, M=_jacobi(A))

        if info != 0 or not np.all(np.isfinite(sol)):
            raise LinearSolverError(
                f"{name} solve failed (info={info}, finite={bool(np.all(np.isfinite(sol)))}) "
                f"on a {n}x{n} {'adjoint' if is_adjoint else 'forward'} system"
            )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%s solve (%s): n=%d, |r|=%.3e", name, "adjoint" if is_adjoint else "forward",
                         n, np.linalg.norm(A @ sol - rhs))
        x[:] = sol
        return x
