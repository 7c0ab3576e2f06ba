# conftest.py
import copy

import numpy as np
import pytest

from pytopofem.utils.meshgen import structured_bar, structured_quad


_ELASTIC = {
    "Physics": "Mechanical",
    "PDE Constraint": "Elliptic",
    "Self-Adjoint": False,
    "Material Models": {
        "unobtainium": {
            "Isotropic Linear Elastic": {"Youngs Modulus": 1.0, "Poissons Ratio": 0.3},
        }
    },
    "Penalty Function": {"Type": "SIMP", "Exponent": 3.0, "Minimum Value": 1e-3},
    "Essential Boundary Conditions": {
        "Fix X": {"Type": "Zero Value", "Index": 0, "Sides": "x-"},
        "Fix Y": {"Type": "Zero Value", "Index": 1, "Sides": "x-"},
    },
    "Natural Boundary Conditions": {
        "Load": {"Type": "Uniform", "Sides": "x+", "Vector": [0.0, -0.1]},
    },
    "Body Loads": {
        "Gravity": {"Type": "Uniform", "Index": 0, "Value": 0.05},
    },
    "Criteria": {
        "Compliance": {"Type": "Scalar Function", "Scalar Function Type": "Internal Elastic Energy"},
        "Volume": {"Type": "Scalar Function", "Scalar Function Type": "Volume", "Linear": True},
        "Displacement": {"Type": "Scalar Function", "Scalar Function Type": "State Squared"},
    },
}

_THERMAL = {
    "Physics": "Thermal",
    "PDE Constraint": "Elliptic",
    "Material Models": {
        "copper": {
            "Isotropic Linear Thermal": {"Thermal Conductivity": 1.0, "Temperature Coefficient": 0.0},
        }
    },
    "Penalty Function": {"Type": "SIMP", "Exponent": 3.0, "Minimum Value": 1e-3},
    "Essential Boundary Conditions": {
        "Cold": {"Type": "Zero Value", "Index": 0, "Sides": "x-"},
    },
    "Natural Boundary Conditions": {
        "Heat": {"Type": "Uniform", "Sides": "x+", "Value": 1.0},
    },
    "Criteria": {
        "Thermal Energy": {"Type": "Scalar Function", "Scalar Function Type": "Internal Thermal Energy"},
        "Temperature": {"Type": "Scalar Function", "Scalar Function Type": "State Squared"},
    },
}


_THERMOMECHANICAL = {
    "Physics": "Thermomechanical",
    "PDE Constraint": "Elliptic",
    "Material Models": {
        "alloy": {
            "Isotropic Linear Elastic": {"Youngs Modulus": 1.0, "Poissons Ratio": 0.25,
                                         "Thermal Expansivity": 0.1, "Reference Temperature": 0.0},
            "Isotropic Linear Thermal": {"Thermal Conductivity": 1.0},
        }
    },
    "Penalty Function": {"Type": "SIMP", "Exponent": 3.0, "Minimum Value": 1e-3},
    "Essential Boundary Conditions": {
        "Fix X": {"Type": "Zero Value", "Index": 0, "Sides": "x-"},
        "Fix Y": {"Type": "Zero Value", "Index": 1, "Sides": "x-"},
        "Cold": {"Type": "Zero Value", "Index": 2, "Sides": "x-"},
    },
    "Natural Boundary Conditions": {
        "Load": {"Type": "Uniform", "Sides": "x+", "Vector": [0.0, -0.1, 1.0]},
    },
    "Criteria": {
        "Compliance": {"Type": "Scalar Function", "Scalar Function Type": "Internal Elastic Energy"},
        "Thermal Energy": {"Type": "Scalar Function", "Scalar Function Type": "Internal Thermal Energy"},
        "Deflection": {"Type": "Scalar Function", "Scalar Function Type": "State Squared", "Index": 1},
    },
}

_ELECTRICAL = {
    "Physics": "Electrical",
    "PDE Constraint": "Elliptic",
    "Material Models": {
        "graphite": {"Isotropic Linear Electrical": {"Electrical Conductivity": 2.0}},
    },
    "Penalty Function": {"Type": "SIMP", "Exponent": 3.0, "Minimum Value": 1e-3},
    "Essential Boundary Conditions": {
        "Ground": {"Type": "Zero Value", "Index": 0, "Sides": "x-"},
    },
    "Natural Boundary Conditions": {
        "Current": {"Type": "Uniform", "Sides": "x+", "Value": 0.5},
    },
    "Criteria": {
        "Power": {"Type": "Scalar Function", "Scalar Function Type": "Internal Electrical Energy"},
    },
}


@pytest.fixture
def elastic_params():
    """Fresh 2-D cantilever parameter dictionary."""
    return copy.deepcopy(_ELASTIC)


@pytest.fixture
def thermal_params():
    return copy.deepcopy(_THERMAL)


@pytest.fixture
def nonlinear_thermal_params():
    params = copy.deepcopy(_THERMAL)
    params["Material Models"]["copper"]["Isotropic Linear Thermal"]["Temperature Coefficient"] = 0.5
    params["Newton Iteration"] = {"Maximum Iterations": 20, "Residual Tolerance": 1e-10}
    return params


@pytest.fixture
def thermomechanical_params():
    return copy.deepcopy(_THERMOMECHANICAL)


@pytest.fixture
def electrical_params():
    return copy.deepcopy(_ELECTRICAL)


@pytest.fixture
def quad_mesh():
    return structured_quad(2.0, 1.0, nx=2, ny=2)


@pytest.fixture
def bar_mesh():
    return structured_bar(2.0, nx=2)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
