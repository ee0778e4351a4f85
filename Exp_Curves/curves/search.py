# Exp_Curves/curves/search.py
"""
Adaptive segment search - picks Chebyshev degree and segment boundaries.

Worker-safe: pure functions over numpy arrays, no process state.
The same functions run in-process (serial encoding) and inside worker
processes (FIT_TRIAL jobs), so both paths produce identical segmentations.

Search for one window of samples (x = times, oracle = spline through them):

  fit_chevy(start, max_degree)
      for degree in 1..max_degree:
          grow end = start+1, start+2, ... while every sample in [start, end]
          is within error_bound of the quantized approximation; stop at the
          first violation. Keep the end with the best ratio (later end on ties).
      pick the degree with the best ratio (higher degree on ties)
      nothing fits: [start, start] alone, which must still meet error_bound

  run_trial(max_degree)
      greedy: fit_chevy from 0, continue after the chosen end, until the
      window is exhausted

  pick_best_trial(trials)
      smallest total output bytes, earliest candidate on ties

Ratio = 4 * sample_count / (2 + 2 * degree).
"""

from typing import List, Optional, Sequence

import numpy as np

from .chebyshev import QuantizedChebyshev
from .data import TrialEntry, TrialResult, compression_ratio
from .oracle import SmoothingOracle
from ..errors import CoefficientRangeError


def fit_degree(x_points: np.ndarray, targets: np.ndarray, oracle: SmoothingOracle,
               start: int, degree: int, error_bound: float, scales: np.ndarray,
               bytes_per_coefficient: int = 2) -> Optional[TrialEntry]:
    """
    Longest forward extension from `start` that a `degree` approximation fits.

    Args:
        x_points: Window sample times
        targets: Oracle values at x_points
        oracle: Smoothing oracle the approximation is built from
        start: First sample index of the segment
        degree: Number of Chebyshev coefficients
        error_bound: Maximum absolute error at any sample in the segment
        scales: Fixed point scale schedule (len >= degree)

    Returns:
        TrialEntry for the best end, or None if not even [start, start+1] fits
    """
    point_count = len(x_points)
    pick = None
    pick_ratio = 0.0

    for end in range(start + 1, point_count):
        cheby = QuantizedChebyshev.build(oracle, x_points[start], x_points[end], degree, scales)
        approx = cheby.evaluate(x_points[start:end + 1])

        if np.any(np.abs(targets[start:end + 1] - approx) > error_bound):
            break

        ratio = compression_ratio(end - start + 1, degree, bytes_per_coefficient)
        if pick_ratio <= ratio:
            pick_ratio = ratio
            pick = TrialEntry(degree, start, end, ratio)

    return pick


def fit_chevy(x_points: np.ndarray, targets: np.ndarray, oracle: SmoothingOracle,
              start: int, max_degree: int, error_bound: float, scales: np.ndarray,
              bytes_per_coefficient: int = 2) -> TrialEntry:
    """
    Best segment starting at `start` over every degree 1..max_degree.

    Degrees are tried independently, then reduced in ascending degree order
    keeping the highest ratio; an equal ratio replaces the current pick, so the
    higher degree wins ties. When nothing fits, the sample stands alone as a
    degree-1 segment, provided that segment reconstructs it within error_bound.
    """
    fits = [
        fit_degree(x_points, targets, oracle, start, degree, error_bound, scales, bytes_per_coefficient)
        for degree in range(1, max_degree + 1)
    ]
    best = reduce_fits(fits, start, bytes_per_coefficient)
    if best.end == start:
        check_single_sample(x_points, targets, oracle, start, error_bound, scales)
    return best


def check_single_sample(x_points: np.ndarray, targets: np.ndarray, oracle: SmoothingOracle,
                        index: int, error_bound: float, scales: np.ndarray) -> None:
    """
    Verify the degree-1 fallback segment [index, index] reconstructs its sample.

    Raises:
        CoefficientRangeError: the quantized constant misses the sample by more
            than error_bound (its coefficient was clipped to int16)
    """
    cheby = QuantizedChebyshev.build(oracle, x_points[index], x_points[index], 1, scales)
    if abs(targets[index] - cheby.evaluate(x_points[index])) > error_bound:
        raise CoefficientRangeError(index, float(targets[index]), error_bound)


def reduce_fits(fits: Sequence[Optional[TrialEntry]], start: int,
                bytes_per_coefficient: int = 2) -> TrialEntry:
    """Deterministic max-by-ratio over per-degree fits given in degree order."""
    best = None
    for fit in fits:
        if fit is None:
            continue
        if best is None or fit.ratio >= best.ratio:
            best = fit

    if best is None:
        return TrialEntry(1, start, start, compression_ratio(1, 1, bytes_per_coefficient))
    return best


def run_trial(x_points: np.ndarray, y_points: np.ndarray, max_degree: int,
              error_bound: float, scales: np.ndarray,
              bytes_per_coefficient: int = 2,
              oracle: SmoothingOracle = None,
              logs: list = None) -> TrialResult:
    """
    Greedy segmentation of a whole window for one maximum degree.

    Args:
        x_points: Window sample times (non-decreasing, at least 2)
        y_points: Window sample values for one axis
        max_degree: Highest coefficient count to try per segment
        error_bound: Per-sample absolute error ceiling
        scales: Fixed point scale schedule (len >= max_degree)
        oracle: Prebuilt oracle for the window (built from x/y when omitted)
        logs: Optional list collecting (category, message) tuples

    Returns:
        TrialResult whose entries partition [0, len(x_points) - 1]

    Raises:
        CoefficientRangeError: a sample is out of range for the scale schedule
    """
    x_points = np.asarray(x_points, dtype=np.float64)
    if oracle is None:
        oracle = SmoothingOracle(x_points, y_points)
    targets = np.asarray(oracle(x_points), dtype=np.float64)

    if len(scales) < max_degree:
        raise ValueError(f"Scale schedule has {len(scales)} entries, need {max_degree}")

    result = TrialResult(max_degree=max_degree)
    point_count = len(x_points)
    start = 0

    while start < point_count:
        entry = fit_chevy(x_points, targets, oracle, start, max_degree,
                          error_bound, scales, bytes_per_coefficient)
        result.add(entry, bytes_per_coefficient)
        start = entry.end + 1

    if logs is not None:
        logs.append(("SEARCH", f"TRIAL max_degree={max_degree} segments={len(result.entries)} "
                               f"in={result.input_byte_count} out={result.output_byte_count}"))
    return result


def pick_best_trial(trials: List[TrialResult]) -> TrialResult:
    """
    Smallest total output bytes wins.

    Trials must be in candidate order; the earliest one wins ties.
    """
    if not trials:
        raise ValueError("No trials to pick from")

    best = trials[0]
    for trial in trials[1:]:
        if trial.output_byte_count < best.output_byte_count:
            best = trial
    return best
