import math

import numpy as np
import pytest

from Exp_Curves.curves.cubic import (
    CubicMoments,
    CubicSegment,
    CubicSegmenter,
    _resolve_break,
    fit_cubics,
)
from Exp_Curves.errors import SegmentationError


def test_collinear_points_make_one_segment():
    xs = np.linspace(0.0, 1.9, 20)
    points = np.column_stack([xs, 2.0 * xs + 1.0])

    segments = CubicSegmenter(max_error=0.01).fit(points)

    assert len(segments) == 1
    assert np.allclose(CubicSegmenter.evaluate(segments, xs), 2.0 * xs + 1.0, atol=1e-6)


def test_segments_join_with_equal_slopes():
    xs = np.linspace(0.0, 6.0, 120)
    ys = np.sin(3.0 * xs)
    points = np.column_stack([xs, ys])

    segments = fit_cubics(points, 0.01)

    assert len(segments) > 1
    for prev, segment in zip(segments, segments[1:]):
        assert segment.first_point == prev.last_point
        assert segment.c == prev.abs_derivative(prev.last_point[0])


def test_committed_segments_respect_tolerance():
    xs = np.linspace(0.0, 6.0, 120)
    ys = np.sin(3.0 * xs)
    max_error = 0.01

    segments = fit_cubics(np.column_stack([xs, ys]), max_error)

    for segment in segments:
        covered = (xs >= segment.first_point[0]) & (xs <= segment.last_point[0])
        assert np.all(np.abs(segment.evaluate(xs[covered]) - ys[covered]) <= max_error + 1e-9)


def test_violation_without_any_fit_is_fatal():
    # Ill-conditioned first window that no cubic reproduces exactly
    points = [(0.0, 1e6), (1e-3, -3e6), (2e-3, 7e6), (3e-3, 2e5), (4e-3, 5e6)]
    with pytest.raises(SegmentationError):
        CubicSegmenter(max_error=0.0).fit(points)


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        CubicSegmenter(max_error=-1.0)


def test_commits_are_logged():
    xs = np.linspace(0.0, 6.0, 120)
    logs = []
    fit_cubics(np.column_stack([xs, np.sin(3.0 * xs)]), 0.01, logs=logs)
    assert logs
    assert all(category == "CUBIC" and message.startswith("COMMIT") for category, message in logs)


class TestMoments:
    def test_too_few_points(self):
        moments = CubicMoments.from_point(0.0, 0.0)
        moments.add(1.0, 1.0)
        assert moments.connected_segment(0.0, (0.0, 0.0), (1.0, 1.0)) is None
        moments.add(2.0, 4.0)
        assert moments.start_segment((0.0, 0.0), (2.0, 4.0)) is None
        assert moments.connected_segment(0.0, (0.0, 0.0), (2.0, 4.0)) is not None

    def test_singular_system(self):
        moments = CubicMoments()
        for v in (0.0, 1.0, 2.0, 3.0):
            moments.add(0.0, v)
        assert moments.start_segment((0.0, 0.0), (0.0, 3.0)) is None

    def test_exact_cubic_is_recovered(self):
        moments = CubicMoments()
        for u in (0.0, 0.5, 1.0, 1.5, 2.0):
            moments.add(u, u ** 3 - 2.0 * u + 0.5)
        segment = moments.start_segment((0.0, 0.0), (2.0, 4.5))
        assert (segment.a, segment.b, segment.c, segment.d) == pytest.approx((1.0, 0.0, -2.0, 0.5), abs=1e-9)

    def test_connected_keeps_fixed_slope(self):
        moments = CubicMoments()
        for u in (0.0, 0.5, 1.0, 1.5):
            moments.add(u, u ** 2 + 0.25 * u)
        segment = moments.connected_segment(0.25, (0.0, 0.0), (1.5, 2.625))
        assert segment.c == 0.25
        assert segment.b == pytest.approx(1.0, abs=1e-9)


class TestCubicSegment:
    def test_evaluate_is_relative_to_first_point(self):
        segment = CubicSegment(0.0, 1.0, 0.0, 0.0, (2.0, 5.0), (4.0, 9.0))
        assert segment.evaluate(4.0) == pytest.approx(9.0)
        assert segment.abs_derivative(3.0) == pytest.approx(2.0)

    def test_two_critical_points(self):
        segment = CubicSegment(1.0, 0.0, -3.0, 0.0, (0.0, 0.0), (2.0, 2.0))
        x1, x2, count = segment.zero_abs_derivatives
        assert count == 2
        assert (x1, x2) == pytest.approx((-1.0, 1.0))

    def test_one_critical_point(self):
        segment = CubicSegment(0.0, 1.0, -2.0, 0.0, (10.0, 0.0), (12.0, 0.0))
        x1, x2, count = segment.zero_abs_derivatives
        assert count == 1
        assert x1 == x2 == pytest.approx(11.0)

    def test_no_critical_points(self):
        x1, x2, count = CubicSegment(1.0, 0.0, 3.0, 0.0, (0.0, 0.0), (1.0, 4.0)).zero_abs_derivatives
        assert count == 0
        assert math.isnan(x1) and math.isnan(x2)


def test_break_backs_off_to_extremum():
    # Derivative -2u + 2 vanishes at x = 1
    def seg(last_x):
        return CubicSegment(0.0, -1.0, 2.0, 0.0, (0.0, 0.0), (last_x, 0.0))

    pairs = [(seg(0.5), 1), (seg(1.0), 2), (seg(2.0), 4), (seg(3.0), 6)]
    segment, index = _resolve_break(pairs)
    assert index == 2
    assert segment.last_point[0] == 1.0


def test_break_keeps_last_fit_without_extremum():
    def seg(last_x):
        return CubicSegment(0.0, 0.0, 1.0, 0.0, (0.0, 0.0), (last_x, last_x))

    pairs = [(seg(1.0), 1), (seg(2.0), 2)]
    assert _resolve_break(pairs)[1] == 2
