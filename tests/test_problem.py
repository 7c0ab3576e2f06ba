import json

import numpy as np
import pytest

from pytopofem import EllipticProblem, Solutions, load_parameters
from pytopofem.criteria import von_mises_squared
from pytopofem.errors import ConfigurationError, GeometryError, PreconditionError
from pytopofem.core.mesh import Mesh
from pytopofem.utils.meshgen import structured_bar, structured_quad

H = 1e-6


def fd_control(problem, name, z):
    out = np.zeros_like(z)
    for j in range(len(z)):
        zp, zm = z.copy(), z.copy()
        zp[j] += H
        zm[j] -= H
        problem.solution(zp)
        fp = problem.criterion_value(zp, name)
        problem.solution(zm)
        fm = problem.criterion_value(zm, name)
        out[j] = (fp - fm) / (2.0 * H)
    problem.solution(z)
    return out


def fd_config(problem, name, z):
    coords = problem.mesh.coordinates
    x0 = coords.copy()
    out = np.zeros(coords.size)
    for j in range(coords.size):
        node, d = divmod(j, coords.shape[1])
        coords[node, d] = x0[node, d] + H
        problem.solution(z)
        fp = problem.criterion_value(z, name)
        coords[node, d] = x0[node, d] - H
        problem.solution(z)
        fm = problem.criterion_value(z, name)
        coords[node, d] = x0[node, d]
        out[j] = (fp - fm) / (2.0 * H)
    problem.solution(z)
    return out


def _problem(request, params_name, mesh):
    params = request.getfixturevalue(params_name)
    if "Newton Iteration" in params:
        # finite differences need the nonlinear solve converged to round-off
        params["Newton Iteration"]["Residual Tolerance"] = 1e-14
    return EllipticProblem(mesh, params)


def _close(gradient, fd):
    scale = np.abs(fd).max()
    np.testing.assert_allclose(gradient, fd, rtol=1e-5, atol=1e-6 * scale)


def _bar_params(stiffness):
    return {
        "Physics": "Mechanical",
        "Material Models": {"rod": {"Isotropic Linear Elastic": {"Youngs Modulus": stiffness,
                                                                  "Poissons Ratio": 0.3}}},
        "Penalty Function": {"Exponent": 3.0, "Minimum Value": 0.0},
        "Essential Boundary Conditions": {"Fixed": {"Type": "Zero Value", "Index": 0, "Sides": "x-"}},
        "Natural Boundary Conditions": {"Tip": {"Type": "Uniform", "Sides": "x+", "Value": 1.0}},
        "Criteria": {"Compliance": {"Type": "Scalar Function",
                                    "Scalar Function Type": "Internal Elastic Energy"}},
    }


# ----------------------------------------------------------------------------
#  Forward solve
# ----------------------------------------------------------------------------

def test_two_cell_bar():
    L, K = 1.5, 3.0
    problem = EllipticProblem(structured_bar(2.0 * L, nx=2), _bar_params(K))
    z = np.ones(problem.num_controls)
    u = problem.solution(z).get("State", 0)
    assert np.allclose(u, [0.0, L / K, 2.0 * L / K])
    # compliance of a unit tip load is half the tip displacement
    assert np.isclose(problem.criterion_value(z, "Compliance"), 0.5 * 2.0 * L / K)


def test_sizes(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    assert problem.num_nodes == 9
    assert problem.num_cells == 4
    assert problem.num_dofs_per_node == 2
    assert problem.num_controls_per_node == 1
    assert problem.num_dofs == 18
    assert problem.num_controls == 9
    assert problem.num_config == 18
    assert problem.pde.dof_names == ("Dispx", "Dispy")


def test_solution_database(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    assert problem.get_solution().empty()

    solution = problem.solution(np.ones(problem.num_controls))
    assert not solution.empty()
    assert solution.has("State") and solution.has("Node State")
    assert solution.num_steps() == 1
    assert solution.get("State").shape == (1, 18)
    assert solution.dof_names == ("Dispx", "Dispy")
    with pytest.raises(KeyError):
        solution.get("Pressure")

    # the returned database is a snapshot
    solution.get("State")[0, :] = 0.0
    assert np.abs(problem.get_solution().get("State", 0)).max() > 0.0


def test_compliance_equals_half_work_of_loads(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.full(problem.num_controls, 0.6)
    u = problem.solution(z).get("State", 0)
    f = -problem.pde.value(np.zeros(problem.num_dofs), z)
    assert np.isclose(problem.criterion_value(z, "Compliance"), 0.5 * u @ f)


def test_volume_criterion(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.full(problem.num_controls, 0.5)
    problem.solution(z)
    assert problem.criterion_is_linear("Volume")
    assert not problem.criterion_is_linear("Compliance")
    assert np.isclose(problem.criterion_value(z, "Volume"), 1.0)
    dz = problem.criterion_gradient(z, "Volume")
    assert np.isclose(dz.sum(), 2.0)
    assert np.all(dz > 0.0)


def test_node_state_changes_the_solution(elastic_params, quad_mesh):
    elastic_params["Material Models"]["unobtainium"]["Isotropic Linear Elastic"]["Thermal Expansivity"] = 0.1
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.ones(problem.num_controls)
    cold = problem.solution(z).get("State", 0).copy()

    problem.set_node_state(np.ones(problem.num_nodes))
    hot = problem.solution(z)
    assert np.allclose(hot.get("Node State", 0), 1.0)
    # uniform heating lengthens the cantilever
    assert hot.get("State", 0)[2 * 8] > cold[2 * 8]

    with pytest.raises(ValueError):
        problem.set_node_state(np.ones(3))


def test_thermal_problem_has_no_node_state(thermal_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, thermal_params)
    with pytest.raises(ConfigurationError):
        problem.set_node_state(np.zeros(problem.num_nodes))
    solution = problem.solution(np.ones(problem.num_controls))
    assert not solution.has("Node State")


def test_inverted_cell_aborts_the_solve():
    mesh = Mesh(np.array([0.0, 1.0, 2.0]), [[0, 1], [2, 1]], element_type="bar2")
    mesh.tag_boundary_sets()
    problem = EllipticProblem(mesh, _bar_params(1.0))
    with pytest.raises(GeometryError) as err:
        problem.solution(np.ones(3))
    assert 1 in list(err.value.cells)


# ----------------------------------------------------------------------------
#  Sensitivities
# ----------------------------------------------------------------------------

@pytest.mark.parametrize("params_name, name", [
    ("elastic_params", "Displacement"),
    ("elastic_params", "Compliance"),
    ("nonlinear_thermal_params", "Temperature"),
    ("thermomechanical_params", "Deflection"),
    ("thermomechanical_params", "Thermal Energy"),
])
def test_control_gradient_matches_finite_differences(request, quad_mesh, params_name, name):
    problem = _problem(request, params_name, quad_mesh)
    z = np.linspace(0.4, 1.0, problem.num_controls)
    problem.solution(z)
    dz = problem.criterion_gradient(z, name)
    _close(dz, fd_control(problem, name, z))


@pytest.mark.parametrize("params_name, name", [
    ("elastic_params", "Displacement"),
    ("elastic_params", "Volume"),
    ("nonlinear_thermal_params", "Thermal Energy"),
    ("thermomechanical_params", "Compliance"),
])
def test_config_gradient_matches_finite_differences(request, params_name, name):
    mesh = structured_quad(2.0, 1.0, nx=2, ny=2)
    mesh.coordinates[4] += [0.05, 0.1]
    problem = _problem(request, params_name, mesh)
    z = np.linspace(1.0, 0.5, problem.num_controls)
    problem.solution(z)
    dx = problem.criterion_gradient_x(z, name)
    assert dx.shape == (problem.num_config,)
    _close(dx, fd_config(problem, name, z))


@pytest.mark.parametrize("params_name, name", [
    ("elastic_params", "Compliance"),
    ("electrical_params", "Power"),
])
def test_self_adjoint_shortcut(request, quad_mesh, params_name, name):
    params = request.getfixturevalue(params_name)
    z = np.linspace(0.3, 1.0, quad_mesh.n_nodes)

    general = EllipticProblem(quad_mesh, params)
    general.solution(z)
    params["Self-Adjoint"] = True
    shortcut = EllipticProblem(quad_mesh, params)
    solution = shortcut.solution(z)

    criterion = shortcut.criteria[name]
    assert np.allclose(shortcut.adjoint(z, solution, criterion), -solution.get("State", 0))
    assert np.allclose(general.adjoint(z, general.get_solution(), general.criteria[name]),
                       -solution.get("State", 0), atol=1e-10)

    np.testing.assert_allclose(shortcut.criterion_gradient(z, name),
                               general.criterion_gradient(z, name), rtol=1e-8, atol=1e-12)
    np.testing.assert_allclose(shortcut.criterion_gradient_x(z, name),
                               general.criterion_gradient_x(z, name), rtol=1e-8, atol=1e-12)


def test_adjoint_is_reused_until_inputs_change(elastic_params, quad_mesh, monkeypatch):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.full(problem.num_controls, 0.9)
    problem.solution(z)

    adjoint_solves = []
    solve = problem.linear_solver.solve

    def counting(matrix, x, rhs, is_adjoint=False):
        if is_adjoint:
            adjoint_solves.append(1)
        return solve(matrix, x, rhs, is_adjoint=is_adjoint)

    monkeypatch.setattr(problem.linear_solver, "solve", counting)

    problem.criterion_gradient(z, "Displacement")
    problem.criterion_gradient_x(z, "Displacement")
    assert len(adjoint_solves) == 1

    problem.criterion_gradient(z, "Compliance")
    assert len(adjoint_solves) == 2

    problem.set_essential_boundary_conditions(*problem.constrained())
    problem.criterion_gradient(z, "Compliance")
    assert len(adjoint_solves) == 3

    problem.solution(z)
    problem.criterion_gradient(z, "Compliance")
    assert len(adjoint_solves) == 4


def test_linear_criterion_needs_no_adjoint(elastic_params, quad_mesh, monkeypatch):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.ones(problem.num_controls)
    problem.solution(z)
    monkeypatch.setattr(problem, "adjoint", None)
    problem.criterion_gradient(z, "Volume")
    problem.criterion_gradient_x(z, "Volume")


def test_linear_criterion_before_solution(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.full(problem.num_controls, 0.5)
    assert np.isclose(problem.criterion_value(z, "Volume"), 1.0)
    assert np.isclose(problem.criterion_gradient(z, "Volume").sum(), 2.0)
    assert problem.criterion_gradient_x(z, "Volume").shape == (problem.num_config,)
    with pytest.raises(PreconditionError):
        problem.criterion_value(z, "Compliance")


def test_adjoint_cache_follows_the_node_state(elastic_params, quad_mesh):
    elastic_params["Material Models"]["unobtainium"]["Isotropic Linear Elastic"]["Thermal Expansivity"] = 0.1
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.full(problem.num_controls, 0.8)
    cold = problem.solution(z)
    cold_gradient = problem.criterion_gradient(z, "Compliance")

    # same state, different temperatures
    warm = Solutions(cold.physics, cold.dof_names)
    warm.set("State", cold.get("State"))
    warm.set("Node State", np.ones(problem.num_nodes))
    gradient = problem.criterion_gradient(z, "Compliance", warm)

    expected = EllipticProblem(quad_mesh, elastic_params).criterion_gradient(z, "Compliance", warm)
    np.testing.assert_allclose(gradient, expected, rtol=1e-10, atol=1e-14)
    assert not np.allclose(gradient, cold_gradient)

    # and back again
    np.testing.assert_allclose(problem.criterion_gradient(z, "Compliance", cold), cold_gradient,
                               rtol=1e-10, atol=1e-14)


def test_criteria_are_independent_of_workset_size_and_threads(elastic_params, quad_mesh):
    z = np.linspace(0.5, 1.0, quad_mesh.n_nodes)
    reference = EllipticProblem(quad_mesh, elastic_params)
    reference.solution(z)

    elastic_params["Assembly"] = {"Workset Size": 1, "Threads": 3}
    batched = EllipticProblem(quad_mesh, elastic_params)
    batched.solution(z)
    for name in ("Compliance", "Displacement", "Volume"):
        assert np.isclose(batched.criterion_value(z, name), reference.criterion_value(z, name))
        assert np.allclose(batched.criterion_gradient(z, name), reference.criterion_gradient(z, name))
        assert np.allclose(batched.criterion_gradient_x(z, name), reference.criterion_gradient_x(z, name))


class _Collaborator:
    """Criterion returning partials of configurable length."""

    is_linear = False

    def __init__(self, name, n_u, n_z, n_x):
        self.name = name
        self.sizes = n_u, n_z, n_x

    def value(self, solution, control, step=0):
        return 0.0

    def gradient_u(self, solution, control, step=0):
        return np.ones(self.sizes[0])

    def gradient_z(self, solution, control, step=0):
        return np.ones(self.sizes[1])

    def gradient_x(self, solution, control, step=0):
        return np.ones(self.sizes[2])


def test_criterion_partials_are_size_checked(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.ones(problem.num_controls)
    problem.solution(z)
    n_u, n_z, n_x = problem.num_dofs, problem.num_controls, problem.num_config

    good = _Collaborator("good", n_u, n_z, n_x)
    assert problem.gradient_of(z, good, None, "control").shape == (n_z,)
    assert problem.gradient_of(z, good, None, "config").shape == (n_x,)

    with pytest.raises(ValueError, match="d/dcontrol"):
        problem.gradient_of(z, _Collaborator("short z", n_u, 1, n_x), None, "control")
    with pytest.raises(ValueError, match="d/dconfig"):
        problem.gradient_of(z, _Collaborator("short x", n_u, n_z, n_x - 1), None, "config")
    with pytest.raises(ValueError, match="d/du"):
        problem.gradient_of(z, _Collaborator("short u", n_u + 2, n_z, n_x), None, "control")

    linear = _Collaborator("linear", n_u, 1, n_x)
    linear.is_linear = True
    with pytest.raises(ValueError):
        problem.gradient_of(z, linear, None, "control")


# ----------------------------------------------------------------------------
#  Stress criteria
# ----------------------------------------------------------------------------

def _stress_criteria(params, exponent=4.0):
    params["Criteria"]["Stress"] = {"Type": "Scalar Function", "Scalar Function Type": "Stress P-Norm",
                                    "Exponent": exponent}
    params["Criteria"]["Average Stress"] = {"Type": "Scalar Function",
                                            "Scalar Function Type": "Volume Average"}
    return params


def test_stress_criteria_of_a_uniform_bar():
    # unit tip load on a unit-area bar: sigma = 1 everywhere
    L, K = 1.5, 3.0
    problem = EllipticProblem(structured_bar(2.0 * L, nx=2), _stress_criteria(_bar_params(K), exponent=6.0))
    z = np.ones(problem.num_controls)
    problem.solution(z)
    assert not problem.criterion_is_linear("Stress")
    assert not problem.criterion_is_linear("Average Stress")
    assert np.isclose(problem.criterion_value(z, "Stress"), (2.0 * L) ** (1.0 / 6.0))
    assert np.isclose(problem.criterion_value(z, "Average Stress"), 1.0)


def test_von_mises_measure():
    assert np.isclose(von_mises_squared([2.0]), 4.0)
    # pure shear
    assert np.isclose(von_mises_squared([0.0, 0.0, 1.0]), 3.0)
    assert np.isclose(von_mises_squared([0.0, 0.0, 0.0, 0.0, 0.0, 1.0]), 3.0)
    # hydrostatic stress has no deviatoric part
    assert np.isclose(von_mises_squared([5.0, 5.0, 5.0, 0.0, 0.0, 0.0]), 0.0)
    assert np.isclose(von_mises_squared([1.0, 0.0, 0.0]), 1.0)


@pytest.mark.parametrize("params_name", ["elastic_params", "thermomechanical_params"])
@pytest.mark.parametrize("name", ["Stress", "Average Stress"])
def test_stress_control_gradient_matches_finite_differences(request, quad_mesh, params_name, name):
    problem = EllipticProblem(quad_mesh, _stress_criteria(request.getfixturevalue(params_name)))
    z = np.linspace(0.4, 1.0, problem.num_controls)
    problem.solution(z)
    _close(problem.criterion_gradient(z, name), fd_control(problem, name, z))


@pytest.mark.parametrize("name", ["Stress", "Average Stress"])
def test_stress_config_gradient_matches_finite_differences(elastic_params, name):
    mesh = structured_quad(2.0, 1.0, nx=2, ny=2)
    mesh.coordinates[4] += [0.05, 0.1]
    problem = EllipticProblem(mesh, _stress_criteria(elastic_params))
    z = np.linspace(1.0, 0.5, problem.num_controls)
    problem.solution(z)
    _close(problem.criterion_gradient_x(z, name), fd_config(problem, name, z))


def test_stress_criteria_need_elastic_physics(thermal_params, quad_mesh):
    with pytest.raises(ConfigurationError, match="Stress P-Norm"):
        EllipticProblem(quad_mesh, _stress_criteria(thermal_params))


# ----------------------------------------------------------------------------
#  Composite criteria
# ----------------------------------------------------------------------------

def _composite(params):
    params["Criteria"]["Objective"] = {"Type": "Weighted Sum", "Functions": ["Compliance", "Volume"],
                                       "Weights": [1.0, 0.5]}
    params["Criteria"]["Ratio"] = {"Type": "Division", "Numerator": "Compliance", "Denominator": "Volume"}
    return params


def test_weighted_sum(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, _composite(elastic_params))
    z = np.linspace(0.5, 1.0, problem.num_controls)
    problem.solution(z)
    assert not problem.criterion_is_linear("Objective")

    c = problem.criterion_value(z, "Compliance")
    v = problem.criterion_value(z, "Volume")
    assert np.isclose(problem.criterion_value(z, "Objective"), c + 0.5 * v)

    expected = problem.criterion_gradient(z, "Compliance") + 0.5 * problem.criterion_gradient(z, "Volume")
    assert np.allclose(problem.criterion_gradient(z, "Objective"), expected)
    expected = problem.criterion_gradient_x(z, "Compliance") + 0.5 * problem.criterion_gradient_x(z, "Volume")
    assert np.allclose(problem.criterion_gradient_x(z, "Objective"), expected)


def test_division(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, _composite(elastic_params))
    z = np.linspace(0.5, 1.0, problem.num_controls)
    problem.solution(z)

    c = problem.criterion_value(z, "Compliance")
    v = problem.criterion_value(z, "Volume")
    assert np.isclose(problem.criterion_value(z, "Ratio"), c / v)

    dc = problem.criterion_gradient(z, "Compliance")
    dv = problem.criterion_gradient(z, "Volume")
    assert np.allclose(problem.criterion_gradient(z, "Ratio"), (dc * v - c * dv) / v ** 2)
    _close(problem.criterion_gradient(z, "Ratio"), fd_control(problem, "Ratio", z))


def test_division_by_zero(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, _composite(elastic_params))
    z = np.zeros(problem.num_controls)
    problem.solution(z)
    with pytest.raises(ZeroDivisionError):
        problem.criterion_value(z, "Ratio")


def test_all_linear_weighted_sum_is_linear(elastic_params, quad_mesh):
    elastic_params["Criteria"]["Twice"] = {"Type": "Weighted Sum", "Functions": ["Volume"], "Weights": [2.0]}
    problem = EllipticProblem(quad_mesh, elastic_params)
    assert problem.criterion_is_linear("Twice")


# ----------------------------------------------------------------------------
#  Error paths
# ----------------------------------------------------------------------------

def test_unknown_criterion(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.ones(problem.num_controls)
    problem.solution(z)
    with pytest.raises(ConfigurationError, match="NOT DEFINED IN THE CRITERION MAP"):
        problem.criterion_value(z, "Stress")
    with pytest.raises(ConfigurationError):
        problem.criterion_gradient(z, "Stress")


def test_gradient_before_solution(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.ones(problem.num_controls)
    with pytest.raises(PreconditionError, match="SOLUTION DATABASE IS EMPTY"):
        problem.criterion_gradient(z, "Compliance")
    with pytest.raises(PreconditionError):
        problem.criterion_value(z, "Compliance", Solutions())


def test_missing_criterion_handle(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    z = np.ones(problem.num_controls)
    problem.solution(z)
    with pytest.raises(PreconditionError, match="NOT DEFINED BY USER"):
        problem.gradient_of(z, None, None, "control")


def test_missing_essential_bc_block(elastic_params, quad_mesh):
    del elastic_params["Essential Boundary Conditions"]
    with pytest.raises(ConfigurationError, match="ESSENTIAL BOUNDARY CONDITIONS"):
        EllipticProblem(quad_mesh, elastic_params)


def test_essential_bc_length_mismatch(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    with pytest.raises(ConfigurationError, match="DIMENSION MISMATCH"):
        problem.set_essential_boundary_conditions([0, 1], [0.0])
    with pytest.raises(ConfigurationError):
        problem.set_essential_boundary_conditions([100], [0.0])


def test_control_size_is_checked(elastic_params, quad_mesh):
    problem = EllipticProblem(quad_mesh, elastic_params)
    with pytest.raises(ValueError):
        problem.solution(np.ones(problem.num_controls + 1))


@pytest.mark.parametrize("change", [
    lambda p: p.update({"PDE Constraint": "Parabolic"}),
    lambda p: p.update({"Physics": "Acoustic"}),
    lambda p: p["Criteria"].update({"Heat": {"Type": "Scalar Function",
                                             "Scalar Function Type": "Internal Thermal Energy"}}),
    lambda p: p["Criteria"].update({"Stress": {"Type": "Scalar Function",
                                               "Scalar Function Type": "Kinetic Energy"}}),
    lambda p: p["Criteria"].update({"Stress": {"Type": "Scalar Function",
                                               "Scalar Function Type": "Stress P-Norm", "Exponent": 1.0}}),
    lambda p: p["Criteria"].update({"Stress": {"Type": "Scalar Function",
                                               "Scalar Function Type": "Volume Average",
                                               "Local Measure": "Tresca"}}),
    lambda p: p["Criteria"].update({"Sum": {"Type": "Weighted Sum", "Functions": ["Compliance", "Mass"],
                                            "Weights": [1.0, 1.0]}}),
    lambda p: p["Criteria"].update({"Sum": {"Type": "Weighted Sum", "Functions": ["Compliance"],
                                            "Weights": [1.0, 2.0]}}),
    lambda p: p["Criteria"].update({"Loop": {"Type": "Division", "Numerator": "Loop",
                                             "Denominator": "Volume"}}),
    lambda p: p["Material Models"]["unobtainium"]["Isotropic Linear Elastic"].update({"Poissons Ratio": 0.5}),
    lambda p: p["Natural Boundary Conditions"]["Load"].update({"Vector": [1.0]}),
    lambda p: p.update({"Assembly": {"Workset Size": 0}}),
    lambda p: p.update({"Penalty Function": {"Type": "RAMP"}}),
])
def test_invalid_parameters(elastic_params, quad_mesh, change):
    change(elastic_params)
    with pytest.raises(ConfigurationError):
        EllipticProblem(quad_mesh, elastic_params)


def test_parameters_from_json(tmp_path, elastic_params, quad_mesh):
    path = tmp_path / "cantilever.json"
    path.write_text(json.dumps(elastic_params))
    params = load_parameters(path)
    problem = EllipticProblem(quad_mesh, params)
    assert set(problem.criteria) == {"Compliance", "Displacement"}
    assert set(problem.linear_criteria) == {"Volume"}

    bad = tmp_path / "list.json"
    bad.write_text("[1, 2]")
    with pytest.raises(ConfigurationError):
        load_parameters(bad)
