# Exp_Curves/curves/chebyshev.py
"""
Chebyshev series approximation - NUMPY VECTORIZED, worker-safe.

SINGLE SOURCE OF TRUTH for building and evaluating Chebyshev series.
Used by the segment search, the channel encoder and the decoder.

An approximation of f over [min_x, max_x] with `count` coefficients:

    f(x) ~ 0.5*c[0] + sum_{j=1}^{count-1} c[j] * T_j(y),  y = (2x - min_x - max_x) / (max_x - min_x)

Construction samples f at the Chebyshev nodes cos(pi*(k+0.5)/count) mapped into
the interval and takes a discrete cosine sum (O(count^2), done as one matrix product).
Evaluation uses the Clenshaw recurrence, which is stable where expanding into
monomials is not.

QuantizedChebyshev additionally stores every coefficient as a 16-bit fixed point
value with its own scale. Evaluation always uses fixed / scale, never the
unquantized coefficient, so error checks see exactly what a decoder will see.
"""

from functools import lru_cache
from typing import Callable, Optional, Tuple, Union

import numpy as np

from ..errors import ChebyshevDomainError

INT16_MIN = -32768
INT16_MAX = 32767

ArrayLike = Union[float, np.ndarray]


# =============================================================================
# NODES AND COSINE TABLES
# =============================================================================

@lru_cache(maxsize=128)
def _cosine_table(count: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Chebyshev nodes on [-1, 1] and the (count, count) cosine matrix for `count`.

    Cached because the segment search rebuilds approximations of the same few
    sizes hundreds of thousands of times.
    """
    k = np.arange(count, dtype=np.float64) + 0.5
    nodes = np.cos(np.pi * k / count)
    table = np.cos(np.pi * np.outer(np.arange(count, dtype=np.float64), k) / count)
    nodes.flags.writeable = False
    table.flags.writeable = False
    return nodes, table


def chebyshev_nodes(min_x: float, max_x: float, count: int) -> np.ndarray:
    """Chebyshev nodes for `count` coefficients mapped into [min_x, max_x]."""
    nodes, _ = _cosine_table(count)
    bma = 0.5 * (max_x - min_x)
    bpa = 0.5 * (max_x + min_x)
    return nodes * bma + bpa


def chebyshev_coefficients(func: Callable[[np.ndarray], np.ndarray],
                           min_x: float, max_x: float, count: int) -> np.ndarray:
    """
    Compute `count` Chebyshev coefficients of func over [min_x, max_x].

    Args:
        func: Vectorized function, called once with the array of mapped nodes
        min_x, max_x: Interval
        count: Number of coefficients

    Returns:
        float64 array of shape (count,)
    """
    if count < 1:
        raise ValueError(f"Chebyshev coefficient count must be >= 1, got {count}")

    _, table = _cosine_table(count)
    f = np.asarray(func(chebyshev_nodes(min_x, max_x, count)), dtype=np.float64)
    return (2.0 / count) * (table @ f)


def coefficient_scales(error_bound: float, count: int) -> np.ndarray:
    """
    Fixed point scale schedule: scale[i] = exp(i) / error_bound.

    Higher order coefficients get geometrically finer steps, so their absolute
    quantization error shrinks as the degree grows.
    """
    if error_bound <= 0:
        raise ValueError(f"error_bound must be positive, got {error_bound}")
    return np.exp(np.arange(count, dtype=np.float64)) / error_bound


def quantize_coefficients(coefficients: np.ndarray, scales: np.ndarray) -> np.ndarray:
    """
    Round coefficients to 16-bit fixed point.

    Values are clipped into the int16 range; a clipped coefficient simply
    reconstructs badly and fails the caller's error check.
    """
    fixed = np.round(np.asarray(coefficients, dtype=np.float64) * scales[:len(coefficients)])
    return np.clip(fixed, INT16_MIN, INT16_MAX).astype(np.int16)


# =============================================================================
# CLENSHAW EVALUATION
# =============================================================================

def clenshaw(coefficients: np.ndarray, min_x: float, max_x: float,
             x: ArrayLike, m: int) -> ArrayLike:
    """
    Evaluate the first m terms of a Chebyshev series with the Clenshaw recurrence.

    Args:
        coefficients: Series coefficients (first one is weighted by 0.5)
        min_x, max_x: Interval the series was built on
        x: Scalar or array of abscissas
        m: Number of coefficients to use

    Returns:
        float for scalar x, array otherwise

    Raises:
        ChebyshevDomainError: if any x lies strictly outside [min_x, max_x]
    """
    xs = np.asarray(x, dtype=np.float64)
    if np.any((xs - min_x) * (xs - max_x) > 0.0):
        raise ChebyshevDomainError(x, min_x, max_x)

    # Zero-width interval (single-sample segment): evaluate at the centre
    if max_x == min_x:
        y = np.zeros_like(xs)
    else:
        y = (2.0 * xs - min_x - max_x) / (max_x - min_x)
    y2 = 2.0 * y

    d = np.zeros_like(xs)
    dd = np.zeros_like(xs)
    for j in range(m - 1, 0, -1):
        d, dd = y2 * d - dd + coefficients[j], d

    result = y * d - dd + 0.5 * coefficients[0]
    if result.ndim == 0:
        return float(result)
    return result


# =============================================================================
# APPROXIMATORS
# =============================================================================

class Chebyshev:
    """
    Chebyshev approximation of a scalar function over [min_x, max_x].

    Usage:
        cheby = Chebyshev.build(np.sin, 0.0, np.pi, 12)
        y = cheby.evaluate(1.0)
        m = cheby.truncated_count(1e-6)
        y_cheap = cheby.evaluate(1.0, m)
    """

    __slots__ = ('count', 'coefficients', 'min_x', 'max_x')

    def __init__(self, coefficients, min_x: float, max_x: float):
        self.coefficients = np.asarray(coefficients, dtype=np.float64).copy()
        self.count = len(self.coefficients)
        self.min_x = float(min_x)
        self.max_x = float(max_x)
        if self.count < 1:
            raise ValueError("Chebyshev approximation needs at least one coefficient")

    @classmethod
    def build(cls, func: Callable[[np.ndarray], np.ndarray],
              min_x: float, max_x: float, count: int) -> "Chebyshev":
        """Approximate func over [min_x, max_x] with `count` coefficients."""
        return cls(chebyshev_coefficients(func, min_x, max_x, count), min_x, max_x)

    def truncated_count(self, threshold: float) -> int:
        """
        Smallest m such that every coefficient at index >= m has magnitude <= threshold.

        Scans from the highest index downward. Returns 1 if all coefficients are
        below the threshold.
        """
        for m in range(self.count, 0, -1):
            if abs(self.coefficients[m - 1]) > threshold:
                return m
        return 1

    def evaluate(self, x: ArrayLike, m: Optional[int] = None) -> ArrayLike:
        """
        Evaluate using the first m coefficients (all of them by default).

        Raises:
            ChebyshevDomainError: if x lies outside the fitted interval
        """
        if m is None:
            m = self.count
        return clenshaw(self.coefficients, self.min_x, self.max_x, x, m)

    def __call__(self, x: ArrayLike) -> ArrayLike:
        return self.evaluate(x)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(count={self.count}, interval=[{self.min_x}, {self.max_x}])"


class QuantizedChebyshev(Chebyshev):
    """
    Chebyshev approximation whose coefficients are stored as int16 fixed point.

    Attributes:
        fixed_points: int16 array, one entry per coefficient
        scales: Per-coefficient scale used for quantization
        coefficients: fixed_points / scales (what evaluation uses)
    """

    __slots__ = ('fixed_points', 'scales')

    def __init__(self, fixed_points, scales, min_x: float, max_x: float):
        self.fixed_points = np.asarray(fixed_points, dtype=np.int16).copy()
        self.scales = np.asarray(scales, dtype=np.float64)[:len(self.fixed_points)].copy()
        super().__init__(self.fixed_points / self.scales, min_x, max_x)

    @classmethod
    def build(cls, func: Callable[[np.ndarray], np.ndarray],
              min_x: float, max_x: float, count: int,
              scales: np.ndarray = None) -> "QuantizedChebyshev":
        """
        Approximate func over [min_x, max_x] and quantize every coefficient.

        Args:
            func: Vectorized function to approximate
            min_x, max_x: Interval
            count: Number of coefficients
            scales: Scale schedule with at least `count` entries
        """
        if scales is None or len(scales) < count:
            raise ValueError(f"Need at least {count} coefficient scales")
        raw = chebyshev_coefficients(func, min_x, max_x, count)
        return cls(quantize_coefficients(raw, scales), scales, min_x, max_x)
