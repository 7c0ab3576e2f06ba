# pytopofem.fem.evaluation
"""
Evaluation kinds and the scalar type assigned to every input category.

A residual or criterion kernel is written once against "whatever comes out
of the workset".  The assembler asks :func:`evaluation_types` which scalar
capability to use for state, control, configuration and node state; the
capability gathers the local values either as plain ndarrays or as
:class:`~pytopofem.ad.Dual` numbers seeded with one local independent
variable per entry.  Nothing in the kernel branches on the kind.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from functools import lru_cache

import numpy as np

from typing import TYPE_CHECKING

from pytopofem import ad

if TYPE_CHECKING:
    from pytopofem.core.element import PhysicsElement

__all__ = [
    "EvaluationKind",
    "RealScalar",
    "DualScalar",
    "EvaluationTypes",
    "evaluation_types",
]


class EvaluationKind(enum.Enum):
    VALUE = "Value"
    JACOBIAN_STATE = "JacobianState"
    JACOBIAN_CONTROL = "JacobianControl"
    JACOBIAN_CONFIG = "JacobianConfig"
    JACOBIAN_NODE_STATE = "JacobianNodeState"


class RealScalar:
    """Plain ``float64`` arrays."""

    is_dual = False
    size = 0

    def zeros(self, shape):
        return np.zeros(shape)

    def gather(self, values, local_axes: int = 1):
        return np.array(values, dtype=float)

    def __repr__(self):
        return "RealScalar()"


class DualScalar:
    """Dual numbers with *n* local independent variables."""

    is_dual = True

    def __init__(self, n: int):
        self.size = int(n)

    def zeros(self, shape):
        return ad.zeros(shape, self.size)

    def gather(self, values, local_axes: int = 1):
        values = np.asarray(values, dtype=float)
        local = values.shape[values.ndim - local_axes:]
        if int(np.prod(local)) != self.size:
            raise ValueError(
                f"DualScalar({self.size}) cannot seed local block of shape {local}"
            )
        return ad.seed(values, local_axes)

    def __repr__(self):
        return f"DualScalar({self.size})"


@dataclass(frozen=True)
class EvaluationTypes:
    kind: EvaluationKind
    state: object
    control: object
    config: object
    node_state: object
    result: object

    @property
    def is_dual(self) -> bool:
        return self.result.is_dual

    @property
    def n_partials(self) -> int:
        return self.result.size


@lru_cache(maxsize=None)
def evaluation_types(element: PhysicsElement, kind: EvaluationKind) -> EvaluationTypes:
    """Scalar assignment of *kind* for one physics element.

    ========================  =====  =======  ======  ==========
    kind                      state  control  config  node state
    ========================  =====  =======  ======  ==========
    VALUE                     real   real     real    real
    JACOBIAN_STATE            dual   real     real    real
    JACOBIAN_CONTROL          real   dual     real    real
    JACOBIAN_CONFIG           real   real     dual    real
    JACOBIAN_NODE_STATE       real   real     real    dual
    ========================  =====  =======  ======  ==========

    The result is dual exactly when one input is.
    """
    kind = EvaluationKind(kind)
    real = RealScalar()
    state = control = config = node_state = real

    if kind is EvaluationKind.JACOBIAN_STATE:
        state = DualScalar(element.n_dofs_per_cell)
    elif kind is EvaluationKind.JACOBIAN_CONTROL:
        control = DualScalar(element.n_controls_per_cell)
    elif kind is EvaluationKind.JACOBIAN_CONFIG:
        config = DualScalar(element.n_config_per_cell)
    elif kind is EvaluationKind.JACOBIAN_NODE_STATE:
        if element.n_node_state_per_cell == 0:
            raise ValueError("JacobianNodeState requested for an element without node state")
        node_state = DualScalar(element.n_node_state_per_cell)

    inputs = (state, control, config, node_state)
    result = next((s for s in inputs if s.is_dual), real)
    return EvaluationTypes(kind, state, control, config, node_state, result)
