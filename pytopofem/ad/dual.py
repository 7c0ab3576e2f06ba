r"""
dual.py  –  Forward‑mode dual numbers for pytopofem
===================================================
A :class:`Dual` carries a batch of primal values together with the partial
derivatives of every entry with respect to ``N`` local independent
variables.  The batch axes come first, the derivative axis is always last::

    value    : shape S
    partials : shape S + (N,)

All arithmetic is elementwise over the batch and follows the chain rule on
the last axis, so the same kernel code runs on plain ``ndarray`` inputs
(value only) and on ``Dual`` inputs (value + derivatives).
"""

from __future__ import annotations

import numpy as np


class Dual:
    """Batched value + partials, see module docstring."""

    __slots__ = ("value", "partials")

    # numpy operands defer to our reflected operators
    __array_ufunc__ = None

    def __init__(self, value, partials):
        self.value = np.asarray(value, dtype=float)
        self.partials = np.asarray(partials, dtype=float)
        if self.partials.shape[:-1] != self.value.shape:
            raise ValueError(
                f"Dual: partials shape {self.partials.shape} does not extend "
                f"value shape {self.value.shape}"
            )

    # ------------------------------------------------------------------
    #  Shape helpers
    # ------------------------------------------------------------------
    @property
    def size(self) -> int:
        """Number of independent variables N."""
        return self.partials.shape[-1]

    @property
    def shape(self):
        return self.value.shape

    @property
    def ndim(self) -> int:
        return self.value.ndim

    def __len__(self):
        return len(self.value)

    def __repr__(self):
        return f"Dual(value={self.value!r}, n_partials={self.size})"

    def copy(self) -> "Dual":
        return Dual(self.value.copy(), self.partials.copy())

    # ------------------------------------------------------------------
    #  Indexing over the batch axes
    # ------------------------------------------------------------------
    @staticmethod
    def _pidx(idx):
        if not isinstance(idx, tuple):
            idx = (idx,)
        return idx + (slice(None),)

    def __getitem__(self, idx) -> "Dual":
        return Dual(self.value[idx], self.partials[self._pidx(idx)])

    def __setitem__(self, idx, other):
        if isinstance(other, Dual):
            _check_sizes(self, other)
            self.value[idx] = other.value
            self.partials[self._pidx(idx)] = other.partials
        else:
            self.value[idx] = other
            self.partials[self._pidx(idx)] = 0.0

    def sum(self, axis=None) -> "Dual":
        if axis is None:
            axes = tuple(range(self.ndim))
            return Dual(self.value.sum(), self.partials.sum(axis=axes))
        axis = axis % self.ndim
        return Dual(self.value.sum(axis=axis), self.partials.sum(axis=axis))

    # ------------------------------------------------------------------
    #  Arithmetic
    # ------------------------------------------------------------------
    def __neg__(self):
        return Dual(-self.value, -self.partials)

    def __pos__(self):
        return self.copy()

    def __abs__(self):
        sign = np.sign(self.value)
        return Dual(np.abs(self.value), self.partials * sign[..., None])

    def __add__(self, other):
        if isinstance(other, Dual):
            _check_sizes(self, other)
            return Dual(self.value + other.value, self.partials + other.partials)
        other = np.asarray(other, dtype=float)
        value = self.value + other
        return Dual(value, _expand(self.partials, value.shape))

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, Dual):
            _check_sizes(self, other)
            return Dual(self.value - other.value, self.partials - other.partials)
        other = np.asarray(other, dtype=float)
        value = self.value - other
        return Dual(value, _expand(self.partials, value.shape))

    def __rsub__(self, other):
        other = np.asarray(other, dtype=float)
        value = other - self.value
        return Dual(value, _expand(-self.partials, value.shape))

    def __mul__(self, other):
        if isinstance(other, Dual):
            _check_sizes(self, other)
            return Dual(
                self.value * other.value,
                self.partials * other.value[..., None]
                + other.partials * self.value[..., None],
            )
        other = np.asarray(other, dtype=float)
        return Dual(self.value * other, self.partials * other[..., None])

    __rmul__ = __mul__

    def __truediv__(self, other):
        if isinstance(other, Dual):
            _check_sizes(self, other)
            value = self.value / other.value
            return Dual(
                value,
                (self.partials - other.partials * value[..., None])
                / other.value[..., None],
            )
        other = np.asarray(other, dtype=float)
        return Dual(self.value / other, self.partials / other[..., None])

    def __rtruediv__(self, other):
        other = np.asarray(other, dtype=float)
        value = other / self.value
        return Dual(value, -self.partials * (value / self.value)[..., None])

    def __pow__(self, exponent):
        if isinstance(exponent, Dual):
            return exp(exponent * log(self))
        exponent = np.asarray(exponent, dtype=float)
        value = self.value ** exponent
        slope = exponent * self.value ** (exponent - 1.0)
        return Dual(value, self.partials * slope[..., None])

    def __rpow__(self, base):
        base = np.asarray(base, dtype=float)
        value = base ** self.value
        return Dual(value, self.partials * (value * np.log(base))[..., None])

    # ------------------------------------------------------------------
    #  Comparisons act on the primal value only
    # ------------------------------------------------------------------
    def __lt__(self, other):
        return self.value < value_of(other)

    def __le__(self, other):
        return self.value <= value_of(other)

    def __gt__(self, other):
        return self.value > value_of(other)

    def __ge__(self, other):
        return self.value >= value_of(other)


def _check_sizes(a: Dual, b: Dual) -> None:
    if a.size != b.size:
        raise ValueError(
            f"Dual: cannot combine {a.size} and {b.size} independent variables"
        )


def _expand(partials: np.ndarray, shape) -> np.ndarray:
    return np.array(np.broadcast_to(partials, tuple(shape) + partials.shape[-1:]))


# ----------------------------------------------------------------------------
#  Construction helpers
# ----------------------------------------------------------------------------

def zeros(shape, n: int) -> Dual:
    shape = (int(shape),) if np.isscalar(shape) else tuple(shape)
    return Dual(np.zeros(shape), np.zeros(shape + (n,)))


def seed(values, local_axes: int = 1) -> Dual:
    """Tag every entry of the trailing *local_axes* as one independent variable.

    For ``values`` of shape ``(C, n_nodes, dim)`` and ``local_axes=2`` the
    entry ``[c, a, d]`` gets the unit partial at index ``a*dim + d``.
    """
    values = np.asarray(values, dtype=float)
    split = values.ndim - local_axes
    batch, local = values.shape[:split], values.shape[split:]
    n = int(np.prod(local)) if local else 1
    eye = np.eye(n).reshape(local + (n,))
    return Dual(values.copy(), np.broadcast_to(eye, batch + local + (n,)).copy())


def value_of(x):
    return x.value if isinstance(x, Dual) else np.asarray(x, dtype=float)


def partials_of(x, n: int) -> np.ndarray:
    if isinstance(x, Dual):
        return x.partials
    x = np.asarray(x, dtype=float)
    return np.zeros(x.shape + (n,))


def is_dual(x) -> bool:
    return isinstance(x, Dual)


# ----------------------------------------------------------------------------
#  Elementary functions
# ----------------------------------------------------------------------------

def _unary(x, f, df):
    if isinstance(x, Dual):
        return Dual(f(x.value), x.partials * df(x.value)[..., None])
    return f(np.asarray(x, dtype=float))


def sqrt(x):
    return _unary(x, np.sqrt, lambda v: 0.5 / np.sqrt(v))


def exp(x):
    return _unary(x, np.exp, np.exp)


def log(x):
    return _unary(x, np.log, lambda v: 1.0 / v)


def sin(x):
    return _unary(x, np.sin, np.cos)


def cos(x):
    return _unary(x, np.cos, lambda v: -np.sin(v))


def tanh(x):
    return _unary(x, np.tanh, lambda v: 1.0 - np.tanh(v) ** 2)


def absolute(x):
    if isinstance(x, Dual):
        return abs(x)
    return np.abs(x)


def power(x, exponent):
    if isinstance(x, Dual) or isinstance(exponent, Dual):
        if not isinstance(x, Dual):
            return exponent.__rpow__(x)
        return x ** exponent
    return np.power(np.asarray(x, dtype=float), exponent)


def maximum(a, b):
    """Elementwise max; partials follow the selected branch."""
    if not isinstance(a, Dual) and not isinstance(b, Dual):
        return np.maximum(a, b)
    n = a.size if isinstance(a, Dual) else b.size
    va, vb = value_of(a), value_of(b)
    pick_a = va >= vb
    value = np.where(pick_a, va, vb)
    pa = np.broadcast_to(partials_of(a, n), value.shape + (n,))
    pb = np.broadcast_to(partials_of(b, n), value.shape + (n,))
    return Dual(value, np.where(pick_a[..., None], pa, pb))
