import logging

import numpy as np
import pytest
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from pytopofem import EllipticProblem
from pytopofem.errors import ConfigurationError, LinearSolverError, NewtonConvergenceError
from pytopofem.solvers import (
    LinearSolver, LinearSolverParameters, LinearSystemType, NewtonParameters,
)


def _spd(n=8):
    rng = np.random.default_rng(3)
    M = rng.standard_normal((n, n))
    return sp.csr_matrix(M @ M.T + n * np.eye(n)), rng.standard_normal(n)


@pytest.mark.parametrize("backend", ["direct", "cg", "gmres", "bicgstab"])
def test_linear_backends_agree(backend):
    A, b = _spd()
    expected = np.linalg.solve(A.toarray(), b)
    solver = LinearSolver(LinearSolverParameters(backend=backend, tol=1e-12))
    x = np.zeros(len(b))
    out = solver.solve(A, x, b)
    assert out is x
    assert np.allclose(x, expected, rtol=1e-8, atol=1e-10)


def test_adjoint_backend_selection():
    solver = LinearSolver(LinearSolverParameters(backend="direct", adjoint_backend="gmres"))
    assert solver.backend() == "direct"
    assert solver.backend(is_adjoint=True) == "gmres"
    assert LinearSolver().backend(is_adjoint=True) == "direct"


@pytest.mark.filterwarnings("ignore")
def test_singular_matrix_raises():
    A = sp.csr_matrix(np.array([[1.0, 1.0], [1.0, 1.0]]))
    with pytest.raises(LinearSolverError):
        LinearSolver().solve(A, np.zeros(2), np.array([1.0, 0.0]))


def test_cg_rejects_nonsymmetric_system():
    A, b = _spd()
    solver = LinearSolver(LinearSolverParameters(backend="cg"), LinearSystemType.NONSYMMETRIC)
    with pytest.raises(ConfigurationError):
        solver.solve(A, np.zeros(len(b)), b)


def test_size_mismatch_raises():
    A, b = _spd()
    with pytest.raises(ValueError):
        LinearSolver().solve(A, np.zeros(3), b)


def test_solver_parameters_from_block():
    lp = LinearSolverParameters.from_params({"Linear Solver": {
        "Solver": "GMRES", "Adjoint Solver": "bicgstab", "Tolerance": 1e-9, "Iterations": 50,
        "Matrix Format": "BSR",
    }})
    assert (lp.backend, lp.adjoint_backend, lp.tol, lp.maxit, lp.matrix_format) == \
        ("gmres", "bicgstab", 1e-9, 50, "bsr")
    assert LinearSolverParameters.from_params({}).backend == "direct"
    with pytest.raises(ConfigurationError):
        LinearSolverParameters.from_params({"Linear Solver": {"Solver": "amg"}})
    with pytest.raises(ConfigurationError):
        LinearSolverParameters.from_params({"Linear Solver": {"Matrix Format": "coo"}})


def test_newton_parameters_from_block():
    np_ = NewtonParameters.from_params({"Newton Iteration": {"Maximum Iterations": 5, "Strict": True}})
    assert np_.max_iterations == 5 and np_.strict
    assert NewtonParameters.from_params({}).max_iterations == 1
    with pytest.raises(ConfigurationError):
        NewtonParameters.from_params({"Newton Iteration": {"Maximum Iterations": 0}})


def test_linear_solve_matches_direct_elimination(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.full(problem.num_controls, 0.8)
    u = problem.solution(z).get("State", 0)
    assert problem.newton_result.iterations == 1
    assert problem.newton_result.converged

    zero = np.zeros(problem.num_dofs)
    K = problem.pde.gradient_u(zero, z)
    f = -problem.pde.value(zero, z)
    K = problem.apply_state_constraints(K, f)
    expected = spla.spsolve(K.tocsc(), f)
    assert np.allclose(u, expected)


@pytest.mark.parametrize("solver", [{"Solver": "cg"}, {"Solver": "gmres"}, {"Matrix Format": "bsr"}])
def test_solver_settings_give_the_same_state(elastic_params, quad_mesh, solver):
    z = np.full(quad_mesh.n_nodes, 0.7)
    reference = EllipticProblem(quad_mesh, elastic_params).solution(z).get("State", 0)

    elastic_params["Linear Solver"] = dict(solver, Tolerance=1e-12)
    u = EllipticProblem(quad_mesh, elastic_params).solution(z).get("State", 0)
    assert np.allclose(u, reference, rtol=1e-7, atol=1e-10)


def test_nonlinear_newton_converges(nonlinear_thermal_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, nonlinear_thermal_params)
    z = np.ones(problem.num_controls)
    u = problem.solution(z).get("State", 0)

    result = problem.newton_result
    assert result.converged
    assert 2 < result.iterations < 20
    assert result.residual_norms[-1] < 1e-10

    R = problem.pde.value(u, z)
    free = np.setdiff1d(np.arange(problem.num_dofs), problem.bc_dofs)
    assert np.allclose(R[free], 0.0, atol=1e-9)
    # conductivity grows with temperature, so the hot end is cooler than the linear solution (T = x)
    assert 0.0 < u.max() < 2.0


def test_nonlinear_newton_keeps_prescribed_values(nonlinear_thermal_params, quad_mesh):
    nonlinear_thermal_params["Essential Boundary Conditions"] = {
        "Warm": {"Type": "Fixed Value", "Index": 0, "Sides": "x-", "Value": 0.5},
    }
    problem = EllipticProblem(quad_mesh, nonlinear_thermal_params)
    u = problem.solution(np.ones(problem.num_controls)).get("State", 0)
    assert problem.newton_result.converged
    assert np.allclose(u[problem.bc_dofs], 0.5)


def test_newton_not_converged_warns(nonlinear_thermal_params, quad_mesh, caplog):
    nonlinear_thermal_params["Newton Iteration"] = {
        "Maximum Iterations": 2, "Residual Tolerance": 0.0, "Increment Tolerance": 0.0,
    }
    problem = EllipticProblem(quad_mesh, nonlinear_thermal_params)
    with caplog.at_level(logging.WARNING, logger="pytopofem"):
        problem.solution(np.ones(problem.num_controls))
    assert not problem.newton_result.converged
    assert problem.newton_result.iterations == 2
    assert "did not converge" in caplog.text


def test_strict_newton_raises(nonlinear_thermal_params, quad_mesh):
    nonlinear_thermal_params["Newton Iteration"] = {
        "Maximum Iterations": 2, "Residual Tolerance": 0.0, "Increment Tolerance": 0.0,
        "Strict": True,
    }
    problem = EllipticProblem(quad_mesh, nonlinear_thermal_params)
    with pytest.raises(NewtonConvergenceError):
        problem.solution(np.ones(problem.num_controls))
