# pytopofem.physics.penalty
"""Density penalization applied at integration points."""
from pytopofem import ad
from pytopofem.config import PenaltyParameters, sublist
from pytopofem.core.element import ElementType
from pytopofem.physics.operators import interpolate

__all__ = ["MSIMP", "penalty_from_params"]


class MSIMP:
    """``minimum + (1 - minimum) * rho**exponent`` of the interpolated control."""

    def __init__(self, params: PenaltyParameters = PenaltyParameters()):
        self.exponent = params.exponent
        self.minimum = params.minimum

    def __call__(self, rho):
        return self.minimum + (1.0 - self.minimum) * ad.power(rho, self.exponent)

    def at_point(self, element: ElementType, qp: int, control, per_node: int = 1):
        return self(interpolate(element, qp, control, per_node))

    def __repr__(self):
        return f"MSIMP(exponent={self.exponent}, minimum={self.minimum})"


def penalty_from_params(params, *, exponent: float = 3.0, minimum: float = 0.0) -> MSIMP:
    block = sublist(params, "Penalty Function")
    return MSIMP(PenaltyParameters.from_params(block, exponent=exponent, minimum=minimum))
