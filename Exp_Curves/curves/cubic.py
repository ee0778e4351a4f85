# Exp_Curves/curves/cubic.py
"""
Cubic Segmenter - incremental least squares with continuous derivatives.

Fits raw (x, y) points directly (no oracle, no quantization) with piecewise
cubics. Each segment is stored relative to its first point (x0, y0):

    f(u) = a*u^3 + b*u^2 + c*u + d,   u = x - x0,   y ~ y0 + f(u)

Fitting minimizes sum (f(u) - v)^2. Setting the partial derivatives to zero
gives normal equations in the moment sums Sjk = sum u^j * v^k:

    [S60 S50 S40 S30] [a]   [S31]
    [S50 S40 S30 S20] [b] = [S21]
    [S40 S30 S20 S10] [c]   [S11]
    [S30 S20 S10 S00] [d]   [S01]

The first segment solves all four unknowns. Every later segment fixes c to
the previous segment's derivative at the junction and solves the 3x3 system
for (a, b, d), so the piecewise curve has no kinks.

Sums are updated in O(1) per admitted point. Pure sequential.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..developer.dev_logger import log_event, log_worker_messages
from ..errors import SegmentationError

# Smallest positive float32 subnormal; determinants of tightly spaced
# moment sums are legitimately tiny, only exact singularity is rejected.
DEFAULT_EPSILON = 1.401298464324817e-45

Point = Tuple[float, float]


# =============================================================================
# CUBIC SEGMENT
# =============================================================================

@dataclass
class CubicSegment:
    """
    Relative cubic f(u) = a*u^3 + b*u^2 + c*u + d with its absolute anchors.

    Attributes:
        a, b, c, d: Cubic coefficients in relative coordinates
        first_point: Absolute (x, y) origin of the relative frame
        last_point: Absolute (x, y) of the last point the segment covers
    """
    a: float
    b: float
    c: float
    d: float
    first_point: Point
    last_point: Point

    def rel_evaluate(self, u):
        return ((self.a * u + self.b) * u + self.c) * u + self.d

    def evaluate(self, x):
        """Absolute value at absolute x."""
        return self.first_point[1] + self.rel_evaluate(x - self.first_point[0])

    def rel_derivative(self, u):
        return (3.0 * self.a * u + 2.0 * self.b) * u + self.c

    def abs_derivative(self, x):
        """dy/dx at absolute x."""
        return self.rel_derivative(x - self.first_point[0])

    @property
    def zero_abs_derivatives(self) -> Tuple[float, float, int]:
        """
        Absolute x positions where the derivative vanishes.

        Returns:
            (x1, x2, count) with x1 <= x2. count is 0, 1 or 2; with one root
            x1 == x2. With no roots both are NaN.
        """
        x0 = self.first_point[0]
        qa = 3.0 * self.a
        qb = 2.0 * self.b
        qc = self.c

        if qa == 0.0:
            if qb == 0.0:
                return float('nan'), float('nan'), 0
            root = x0 - qc / qb
            return root, root, 1

        disc = qb * qb - 4.0 * qa * qc
        if disc < 0.0:
            return float('nan'), float('nan'), 0
        if disc == 0.0:
            root = x0 - qb / (2.0 * qa)
            return root, root, 1

        sqrt_disc = np.sqrt(disc)
        # Numerically stable quadratic roots
        q = -0.5 * (qb + np.copysign(sqrt_disc, qb))
        r1 = q / qa
        r2 = qc / q if q != 0.0 else -r1
        u1, u2 = sorted((float(r1), float(r2)))
        return x0 + u1, x0 + u2, 2


# =============================================================================
# MOMENT SUMS
# =============================================================================

class CubicMoments:
    """
    Running sums Sjk of relative sample coordinates.

    S00 is the number of admitted points; S10..S60 are powers of u,
    S01, S11, S21, S31 mix in v.
    """

    __slots__ = ('S00', 'S10', 'S20', 'S30', 'S40', 'S50', 'S60',
                 'S01', 'S11', 'S21', 'S31')

    def __init__(self):
        for name in self.__slots__:
            setattr(self, name, 0.0)

    @classmethod
    def from_point(cls, u: float, v: float) -> "CubicMoments":
        moments = cls()
        moments.add(u, v)
        return moments

    def add(self, u: float, v: float) -> None:
        """Admit one relative point. O(1)."""
        u2 = u * u
        u3 = u2 * u
        self.S00 += 1.0
        self.S10 += u
        self.S20 += u2
        self.S30 += u3
        self.S40 += u2 * u2
        self.S50 += u2 * u3
        self.S60 += u3 * u3
        self.S01 += v
        self.S11 += u * v
        self.S21 += u2 * v
        self.S31 += u3 * v

    def start_segment(self, start_point: Point, end_point: Point,
                      epsilon: float = DEFAULT_EPSILON) -> Optional[CubicSegment]:
        """
        Unconstrained fit of (a, b, c, d).

        Returns:
            None with fewer than 4 points or a near-singular system
        """
        if self.S00 < 4:
            return None

        A = np.array([
            [self.S60, self.S50, self.S40, self.S30],
            [self.S50, self.S40, self.S30, self.S20],
            [self.S40, self.S30, self.S20, self.S10],
            [self.S30, self.S20, self.S10, self.S00],
        ])
        det = np.linalg.det(A)
        if abs(det) < epsilon:
            return None

        rhs = np.array([self.S31, self.S21, self.S11, self.S01])
        a, b, c, d = np.linalg.solve(A, rhs)
        return CubicSegment(float(a), float(b), float(c), float(d), start_point, end_point)

    def connected_segment(self, fixed_c: float, start_point: Point, end_point: Point,
                          epsilon: float = DEFAULT_EPSILON) -> Optional[CubicSegment]:
        """
        Fit of (a, b, d) with the linear coefficient pinned to fixed_c.

        Returns:
            None with fewer than 3 points or a near-singular system
        """
        if self.S00 < 3:
            return None

        # a*S60 + b*S50 + d*S30 = S31 - c*S40
        # a*S50 + b*S40 + d*S20 = S21 - c*S30
        # a*S30 + b*S20 + d*S00 = S01 - c*S10
        A = np.array([
            [self.S60, self.S50, self.S30],
            [self.S50, self.S40, self.S20],
            [self.S30, self.S20, self.S00],
        ])
        det = np.linalg.det(A)
        if abs(det) < epsilon:
            return None

        rhs = np.array([
            self.S31 - fixed_c * self.S40,
            self.S21 - fixed_c * self.S30,
            self.S01 - fixed_c * self.S10,
        ])
        a, b, d = np.linalg.solve(A, rhs)
        return CubicSegment(float(a), float(b), float(fixed_c), float(d), start_point, end_point)


# =============================================================================
# FITTING LOOP
# =============================================================================

def compute_error(segment: CubicSegment, points: np.ndarray, start_index: int, stop_index: int) -> float:
    """Largest squared error of the segment over points[start_index..stop_index]."""
    chunk = points[start_index:stop_index + 1]
    u = chunk[:, 0] - segment.first_point[0]
    v = chunk[:, 1] - segment.first_point[1]
    residual = v - segment.rel_evaluate(u)
    return float(np.max(residual * residual))


def _as_point(row) -> Point:
    return float(row[0]), float(row[1])


def fit_cubics(points: Sequence[Point], max_error: float,
               epsilon: float = DEFAULT_EPSILON, logs: list = None) -> List[CubicSegment]:
    """
    Segment points into derivative-continuous cubics within max_error.

    Points are admitted one at a time into the open segment. After each
    admission the whole open segment is refitted and its maximum squared error
    checked against max_error^2. On the first violation the segment is
    committed at the last end that still fit, except when that fit's cubic
    has a critical point inside its domain: then the boundary retreats to the
    latest accepted end at or before the critical point. The next segment
    starts at the boundary point with the committed segment's outgoing slope.

    Args:
        points: (N, 2) array or sequence of (x, y), x increasing
        max_error: Absolute tolerance per point
        epsilon: Determinant magnitude below which a system counts as singular
        logs: Optional list collecting (category, message) tuples

    Returns:
        Committed segments in order

    Raises:
        SegmentationError: a violation happened before any fit was accepted
    """
    points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    max_error_sq = max_error * max_error

    segments: List[CubicSegment] = []
    fitting_pairs: List[Tuple[CubicSegment, int]] = []

    moments = None
    is_start = True
    fixed_c = 0.0
    start_point: Point = (0.0, 0.0)
    start_index = 0
    restart = True

    index = 0
    while index < len(points):
        point = _as_point(points[index])

        if restart:
            start_point = point
            start_index = index
            moments = CubicMoments.from_point(0.0, 0.0)
            restart = False
            fitting_pairs.clear()
            index += 1
            continue

        moments.add(point[0] - start_point[0], point[1] - start_point[1])

        if is_start:
            next_segment = moments.start_segment(start_point, point, epsilon)
        else:
            next_segment = moments.connected_segment(fixed_c, start_point, point, epsilon)

        if next_segment is None:
            # Not fittable yet (too few points or singular), keep collecting
            index += 1
            continue

        error = compute_error(next_segment, points, start_index, index)

        if error <= max_error_sq:
            fitting_pairs.append((next_segment, index))
            index += 1
            continue

        if not fitting_pairs:
            raise SegmentationError(
                f"No cubic segment fits within {max_error} starting at point {start_index} "
                f"(x={start_point[0]})"
            )

        commit_segment, commit_index = _resolve_break(fitting_pairs)

        if logs is not None:
            logs.append(("CUBIC", f"COMMIT start={start_index} end={commit_index} "
                                  f"violation={index} accepted={len(fitting_pairs)}"))

        segments.append(commit_segment)
        index = commit_index
        fixed_c = commit_segment.abs_derivative(commit_segment.last_point[0])
        restart = True
        is_start = False
        fitting_pairs.clear()

    if fitting_pairs:
        segments.append(fitting_pairs[-1][0])

    return segments


def _resolve_break(fitting_pairs: List[Tuple[CubicSegment, int]]) -> Tuple[CubicSegment, int]:
    """
    Choose where to end the segment after a tolerance violation.

    Default is the last accepted fit. If that fit's cubic has a critical point
    x* with first.x < x* <= last.x, retreat to the latest accepted fit whose
    last point is at or before x*. Without such a fit, keep the last one.
    """
    last_segment, last_index = fitting_pairs[-1]
    zero_x1, zero_x2, zero_count = last_segment.zero_abs_derivatives

    zero_x = zero_x1 if zero_x2 > last_segment.last_point[0] else zero_x2

    if zero_count > 0 and last_segment.first_point[0] < zero_x <= last_segment.last_point[0]:
        for segment, index in reversed(fitting_pairs):
            if segment.last_point[0] <= zero_x:
                return segment, index

    return last_segment, last_index


# =============================================================================
# SEGMENTER
# =============================================================================

class CubicSegmenter:
    """
    Configured cubic segmentation of raw curve points.

    Usage:
        segmenter = CubicSegmenter(max_error=0.01)
        segments = segmenter.fit(points)
        values = segmenter.evaluate(segments, xs)
    """

    def __init__(self, max_error: float, epsilon: float = DEFAULT_EPSILON):
        if max_error < 0:
            raise ValueError(f"max_error must be >= 0, got {max_error}")
        self.max_error = max_error
        self.epsilon = epsilon

    def fit(self, points: Sequence[Point]) -> List[CubicSegment]:
        logs = []
        segments = fit_cubics(points, self.max_error, self.epsilon, logs)
        log_worker_messages(logs)
        log_event("CUBIC", f"RUN points={len(points)} segments={len(segments)} max_error={self.max_error}")
        return segments

    @staticmethod
    def evaluate(segments: List[CubicSegment], xs) -> np.ndarray:
        """
        Evaluate a segment list at absolute xs.

        Each x uses the last segment whose first point is at or before it;
        xs before the first segment use the first segment.
        """
        xs = np.asarray(xs, dtype=np.float64)
        if not segments:
            raise ValueError("No segments to evaluate")

        starts = np.array([segment.first_point[0] for segment in segments])
        which = np.clip(np.searchsorted(starts, xs, side='right') - 1, 0, len(segments) - 1)

        result = np.empty_like(xs)
        for i, segment in enumerate(segments):
            mask = which == i
            if np.any(mask):
                result[mask] = segment.evaluate(xs[mask])
        return result
