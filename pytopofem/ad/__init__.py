from .dual import (
    Dual, zeros, seed, value_of, partials_of, is_dual,
    sqrt, exp, log, sin, cos, tanh, absolute, power, maximum,
)

__all__ = [
    "Dual", "zeros", "seed", "value_of", "partials_of", "is_dual",
    "sqrt", "exp", "log", "sin", "cos", "tanh", "absolute", "power", "maximum",
]
