# pytopofem.criteria.stress
"""
Stress-based criteria::

    "Criteria": {
        "Max Stress": {"Type": "Scalar Function",
                       "Scalar Function Type": "Stress P-Norm", "Exponent": 6.0},
        "Avg Stress": {"Type": "Scalar Function",
                       "Scalar Function Type": "Volume Average",
                       "Local Measure": "Von Mises"}
    }

Both are built on the von Mises measure of the unpenalized elastic stress
and weighted by the criterion's penalty.
"""
from __future__ import annotations

from typing import Dict

from pytopofem import ad
from pytopofem.core.element import PhysicsElement
from pytopofem.core.mesh import SpatialModel
from pytopofem.criteria.base import PhysicsScalarFunction
from pytopofem.criteria.composite import Division, PNorm
from pytopofem.criteria.energy import ElasticScalarKernel
from pytopofem.criteria.volume import Volume
from pytopofem.errors import ConfigurationError

__all__ = ["von_mises_squared", "StressPNorm", "VolumeAverage"]


def von_mises_squared(stress):
    """Squared von Mises measure of a Voigt stress list (shear last)."""
    if len(stress) == 1:
        return stress[0] * stress[0]
    if len(stress) == 3:
        sxx, syy, sxy = stress
        return sxx * sxx - sxx * syy + syy * syy + 3.0 * sxy * sxy
    sxx, syy, szz, syz, sxz, sxy = stress
    d1, d2, d3 = sxx - syy, syy - szz, szz - sxx
    return 0.5 * (d1 * d1 + d2 * d2 + d3 * d3) + 3.0 * (syz * syz + sxz * sxz + sxy * sxy)


class StressPNorm(ElasticScalarKernel):
    """``( sum_qp w(rho) vm(sigma)^p |J| w_qp )^(1/p)``

    The kernel integrates the p-th powers; :meth:`build` wraps the assembled
    integral in a :class:`PNorm` for the outer root.
    """

    label = "Stress P-Norm"

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict,
                 criterion: Dict, physics: str):
        super().__init__(element, spatial_model, params, criterion, physics)
        self.exponent = float(criterion.get("Exponent", 6.0))
        if self.exponent < 2.0:
            raise ConfigurationError(f"Stress P-Norm: 'Exponent' must be at least 2, got {self.exponent}.")

    def evaluate(self, workset) -> None:
        half = 0.5 * self.exponent
        for q in range(self.element.element.n_points):
            volume, _, stress = self.stress_at(workset, q)
            measure = ad.power(von_mises_squared(stress), half)
            workset.result = workset.result + (self.weight_at(workset, q) * measure) * volume

    def build(self, function: PhysicsScalarFunction):
        return PNorm(function.name, function, self.exponent)


class VolumeAverage(ElasticScalarKernel):
    """Penalized average of the von Mises stress over the penalized volume.

    The kernel is the numerator ``sum_qp w(rho) vm(sigma) |J| w_qp``;
    :meth:`build` divides it by ``sum_qp w(rho) |J| w_qp``.
    """

    label = "Volume Average"
    measures = ("Von Mises",)

    def __init__(self, element: PhysicsElement, spatial_model: SpatialModel, params: Dict,
                 criterion: Dict, physics: str):
        super().__init__(element, spatial_model, params, criterion, physics)
        measure = criterion.get("Local Measure", "Von Mises")
        if measure not in self.measures:
            raise ConfigurationError(
                f"Volume Average: unknown 'Local Measure' '{measure}'. Options are: {', '.join(self.measures)}."
            )

    def evaluate(self, workset) -> None:
        for q in range(self.element.element.n_points):
            volume, _, stress = self.stress_at(workset, q)
            measure = ad.sqrt(von_mises_squared(stress))
            workset.result = workset.result + (self.weight_at(workset, q) * measure) * volume

    def build(self, function: PhysicsScalarFunction):
        kernel = Volume(self.element, self.spatial_model, {}, {}, self.physics)
        kernel.penalty = self.penalty
        denominator = PhysicsScalarFunction(f"{function.name} (volume)", function.spatial_model,
                                            function.dof_map, kernel, assembly=function.assembly)
        return Division(function.name, function, denominator)
