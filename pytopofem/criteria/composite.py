# pytopofem.criteria.composite
"""Criteria built from other criteria."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from pytopofem.errors import ConfigurationError

__all__ = ["WeightedSum", "Division", "PNorm"]


class WeightedSum:
    """``sum_i w_i f_i``"""

    def __init__(self, name: str, functions: Sequence, weights: Sequence[float]):
        if len(functions) != len(weights):
            raise ConfigurationError(
                f"Number of 'Functions' in '{name}' parameter list does not equal the number of 'Weights'."
            )
        if not functions:
            raise ConfigurationError(f"Weighted Sum '{name}' has no 'Functions'.")
        self.name = name
        self.functions = list(functions)
        self.weights = [float(w) for w in weights]

    @property
    def is_linear(self) -> bool:
        return all(f.is_linear for f in self.functions)

    def _combine(self, attr, *args):
        total = None
        for f, w in zip(self.functions, self.weights):
            v = w * np.asarray(getattr(f, attr)(*args))
            total = v if total is None else total + v
        return total

    def value(self, solution, control, step: int = 0) -> float:
        return float(self._combine("value", solution, control, step))

    def gradient_u(self, solution, control, step: int = 0):
        return self._combine("gradient_u", solution, control, step)

    def gradient_z(self, solution, control, step: int = 0):
        return self._combine("gradient_z", solution, control, step)

    def gradient_x(self, solution, control, step: int = 0):
        return self._combine("gradient_x", solution, control, step)

    def __repr__(self):
        return f"<WeightedSum '{self.name}' of {[f.name for f in self.functions]}>"


class Division:
    """``f / g`` with the quotient rule on every partial."""

    is_linear = False

    def __init__(self, name: str, numerator, denominator):
        self.name = name
        self.numerator = numerator
        self.denominator = denominator

    def _quotient(self, attr, solution, control, step):
        f = self.numerator.value(solution, control, step)
        g = self.denominator.value(solution, control, step)
        if g == 0.0:
            raise ZeroDivisionError(f"Division '{self.name}': denominator '{self.denominator.name}' is zero")
        df = getattr(self.numerator, attr)(solution, control, step)
        dg = getattr(self.denominator, attr)(solution, control, step)
        return (df * g - f * dg) / (g * g)

    def value(self, solution, control, step: int = 0) -> float:
        g = self.denominator.value(solution, control, step)
        if g == 0.0:
            raise ZeroDivisionError(f"Division '{self.name}': denominator '{self.denominator.name}' is zero")
        return self.numerator.value(solution, control, step) / g

    def gradient_u(self, solution, control, step: int = 0):
        return self._quotient("gradient_u", solution, control, step)

    def gradient_z(self, solution, control, step: int = 0):
        return self._quotient("gradient_z", solution, control, step)

    def gradient_x(self, solution, control, step: int = 0):
        return self._quotient("gradient_x", solution, control, step)

    def __repr__(self):
        return f"<Division '{self.name}' = {self.numerator.name} / {self.denominator.name}>"


class PNorm:
    """``F**(1/p)`` of an integral ``F`` of p-th powers."""

    is_linear = False

    def __init__(self, name: str, integral, exponent: float):
        self.name = name
        self.integral = integral
        self.exponent = float(exponent)

    def value(self, solution, control, step: int = 0) -> float:
        return self.integral.value(solution, control, step) ** (1.0 / self.exponent)

    def _chain(self, attr, solution, control, step):
        F = self.integral.value(solution, control, step)
        if F <= 0.0:
            raise ZeroDivisionError(f"P-norm '{self.name}': integral is {F}, gradient undefined")
        slope = F ** (1.0 / self.exponent - 1.0) / self.exponent
        return slope * getattr(self.integral, attr)(solution, control, step)

    def gradient_u(self, solution, control, step: int = 0):
        return self._chain("gradient_u", solution, control, step)

    def gradient_z(self, solution, control, step: int = 0):
        return self._chain("gradient_z", solution, control, step)

    def gradient_x(self, solution, control, step: int = 0):
        return self._chain("gradient_x", solution, control, step)

    def __repr__(self):
        return f"<PNorm '{self.name}' p={self.exponent}>"
