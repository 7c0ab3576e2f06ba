from .evaluation import (
    EvaluationKind, RealScalar, DualScalar, EvaluationTypes, evaluation_types,
)
from .reference import get_reference

__all__ = [
    "EvaluationKind", "RealScalar", "DualScalar", "EvaluationTypes",
    "evaluation_types", "get_reference",
]
