import numpy as np
import pytest

from Exp_Curves.curves.chebyshev import QuantizedChebyshev, coefficient_scales
from Exp_Curves.curves.data import TrialEntry, TrialResult, compression_ratio
from Exp_Curves.curves.oracle import SmoothingOracle
from Exp_Curves.curves.search import fit_degree, pick_best_trial, reduce_fits, run_trial
from Exp_Curves.errors import CoefficientRangeError


def _assert_partition(entries, point_count):
    assert entries[0].start == 0
    assert entries[-1].end == point_count - 1
    for prev, entry in zip(entries, entries[1:]):
        assert entry.start == prev.end + 1


def test_compression_ratio():
    assert compression_ratio(256, 4) == pytest.approx(1024 / 10)
    assert compression_ratio(1, 1) == 1.0


def test_linear_ramp_is_one_segment():
    x = np.arange(20) / 30.0
    y = 0.5 * x
    trial = run_trial(x, y, 4, 0.1, coefficient_scales(0.1, 4))
    assert len(trial.entries) == 1
    entry = trial.entries[0]
    assert (entry.degree, entry.start, entry.end) == (2, 0, 19)
    assert trial.input_byte_count == 80
    assert trial.output_byte_count == 6


def test_trial_partitions_noisy_window(rng):
    x = np.arange(60) / 30.0
    y = np.cumsum(rng.normal(scale=0.2, size=60))
    error_bound = 0.1
    scales = coefficient_scales(error_bound, 8)
    oracle = SmoothingOracle(x, y)

    trial = run_trial(x, y, 8, error_bound, scales, oracle=oracle)
    _assert_partition(trial.entries, 60)
    assert trial.input_byte_count == 240

    for entry in trial.entries:
        assert 1 <= entry.degree <= 8
        cheby = QuantizedChebyshev.build(oracle, x[entry.start], x[entry.end], entry.degree, scales)
        approx = cheby.evaluate(x[entry.start:entry.end + 1])
        assert np.all(np.abs(approx - y[entry.start:entry.end + 1]) <= error_bound + 1e-9)


def test_fit_degree_returns_none_when_nothing_fits():
    x = np.array([0.0, 1.0])
    y = np.array([0.0, 100.0])
    oracle = SmoothingOracle(x, y)
    assert fit_degree(x, y, oracle, 0, 1, 0.1, coefficient_scales(0.1, 1)) is None


def test_unfittable_samples_stand_alone():
    x = np.array([0.0, 1.0, 2.0])
    y = np.array([0.0, 100.0, 0.0])
    trial = run_trial(x, y, 1, 0.1, coefficient_scales(0.1, 1))
    assert [e.to_tuple()[:3] for e in trial.entries] == [(1, 0, 0), (1, 1, 1), (1, 2, 2)]


def test_reduce_prefers_higher_degree_on_ties():
    fits = [TrialEntry(1, 0, 3, 4.0), None, TrialEntry(2, 0, 5, 4.0), TrialEntry(3, 0, 6, 3.5)]
    assert reduce_fits(fits, 0).degree == 2


def test_reduce_falls_back_to_single_sample():
    entry = reduce_fits([None, None], 7)
    assert entry.to_tuple() == (1, 7, 7, 1.0)


def test_pick_best_trial_prefers_earliest_on_ties():
    first = TrialResult(max_degree=4, output_byte_count=20)
    second = TrialResult(max_degree=8, output_byte_count=20)
    third = TrialResult(max_degree=16, output_byte_count=30)
    assert pick_best_trial([first, second, third]) is first
    assert pick_best_trial([third, second]) is second
    with pytest.raises(ValueError):
        pick_best_trial([])


def test_scales_must_cover_max_degree():
    x = np.arange(4, dtype=float)
    with pytest.raises(ValueError):
        run_trial(x, x, 8, 0.1, coefficient_scales(0.1, 4))


def test_trial_result_round_trips_through_dict():
    trial = TrialResult(max_degree=4)
    trial.add(TrialEntry(2, 0, 9, compression_ratio(10, 2)))
    trial.add(TrialEntry(1, 10, 10, 1.0))
    restored = TrialResult.from_dict(trial.to_dict())
    assert restored == trial
    assert restored.output_byte_count == 6 + 4


def test_trial_logs_are_collected():
    x = np.arange(10) / 30.0
    logs = []
    run_trial(x, np.zeros(10), 4, 0.1, coefficient_scales(0.1, 4), logs=logs)
    assert len(logs) == 1
    category, message = logs[0]
    assert category == "SEARCH"
    assert message.startswith("TRIAL max_degree=4")


def test_best_trial_is_no_larger_than_any_other(rng):
    x = np.arange(80) / 30.0
    y = np.sin(2.0 * x) + np.cumsum(rng.normal(scale=0.02, size=80))
    scales = coefficient_scales(0.1, 16)
    trials = [run_trial(x, y, d, 0.1, scales) for d in (4, 8, 16)]
    best = pick_best_trial(trials)
    assert all(best.output_byte_count <= t.output_byte_count for t in trials)


def test_fallback_segment_must_meet_the_bound():
    # c0 * scale0 = 2 * 5000 * 10 overflows int16, so nothing can hold sample 1
    x = np.arange(3) / 30.0
    y = np.array([0.0, 5000.0, 0.0])
    with pytest.raises(CoefficientRangeError) as info:
        run_trial(x, y, 4, 0.1, coefficient_scales(0.1, 4))
    assert info.value.sample == 1
    assert info.value.value == pytest.approx(5000.0)
    assert info.value.error_bound == 0.1


def test_range_error_survives_dict_round_trip():
    error = CoefficientRangeError(3, 4000.0, 0.1, axis=2)
    restored = CoefficientRangeError.from_dict(error.to_dict())
    assert (restored.sample, restored.value, restored.error_bound, restored.axis) == (3, 4000.0, 0.1, 2)
    assert "axis 2 sample 3" in str(restored)
