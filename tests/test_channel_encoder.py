import io

import numpy as np
import pytest

from Exp_Curves.curves.data import ROTATION, TRANSLATION, WEIGHTS
from Exp_Curves.encoding import ChannelEncoder, EncoderConfig
from Exp_Curves.errors import CoefficientRangeError, UnsupportedChannelKindError


def _encoder(config=None):
    return ChannelEncoder(io.BytesIO(), io.BytesIO(), config=config)


def _assert_windows_partitioned(segments, sample_count, bucket_length, dimension):
    for axis in range(dimension):
        for window_start in range(0, sample_count, bucket_length):
            window_len = min(bucket_length, sample_count - window_start)
            spans = [(s.start, s.end) for s in segments
                     if s.axis == axis and s.window_start == window_start]
            if window_len < 2:
                assert spans == []
                continue
            assert spans[0][0] == 0
            assert spans[-1][1] == window_len - 1
            for (_, prev_end), (start, _) in zip(spans, spans[1:]):
                assert start == prev_end + 1


def test_sine_translation_compresses_well():
    times = np.arange(256) / 30.0
    values = np.sin(times)
    original = values.copy()

    encoder = _encoder()
    segments = encoder.process(times, values, 1, TRANSLATION)

    assert encoder.input_byte_count == 1024
    assert encoder.input_byte_count / encoder.output_byte_count > 8
    assert np.max(np.abs(values - original)) <= 0.1 + 1e-9
    _assert_windows_partitioned(segments, 256, 256, 1)


def test_error_bound_holds_for_every_sample(rng, small_config):
    sample_count, dimension = 100, 3
    times = np.arange(sample_count) / 30.0
    values = np.cumsum(rng.normal(scale=0.05, size=(sample_count, dimension)), axis=0).reshape(-1)
    original = values.copy()

    encoder = _encoder(small_config)
    segments = encoder.process(times, values, dimension, TRANSLATION)

    assert np.max(np.abs(values - original)) <= 0.1 + 1e-9
    _assert_windows_partitioned(segments, sample_count, small_config.bucket_length, dimension)
    assert all(1 <= s.degree <= small_config.max_degree for s in segments)


def test_streams_and_counters_agree(rng, small_config):
    times = np.arange(70) / 30.0
    values = np.cumsum(rng.normal(scale=0.01, size=140))
    meta, coef = io.BytesIO(), io.BytesIO()
    encoder = ChannelEncoder(meta, coef, config=small_config)

    segments = encoder.process(times, values, 2, WEIGHTS)

    assert len(meta.getvalue()) == 2 * len(segments)
    assert len(coef.getvalue()) == 2 * sum(s.degree for s in segments)
    assert encoder.output_byte_count == sum(s.byte_count for s in segments)
    assert encoder.input_byte_count == 4 * 140


def test_degenerate_window_is_passed_through(small_config):
    # 33 samples with 32-sample windows leaves one sample alone
    times = np.arange(33) / 30.0
    values = 0.5 * times
    original = values.copy()
    encoder = _encoder(small_config)

    segments = encoder.process(times, values, 1, TRANSLATION)

    assert values[32] == original[32]
    assert all(s.window_start == 0 for s in segments)
    assert encoder.input_byte_count == 4 * 33
    assert encoder.output_byte_count == sum(s.byte_count for s in segments) + 1 + 4


def test_single_sample_channel_writes_nothing():
    meta, coef = io.BytesIO(), io.BytesIO()
    encoder = ChannelEncoder(meta, coef)
    values = np.array([1.0, 2.0, 3.0])

    assert encoder.process(np.array([0.0]), values, 3, TRANSLATION) == []
    assert meta.getvalue() == b"" and coef.getvalue() == b""
    assert encoder.input_byte_count == 12
    assert encoder.output_byte_count == 3 * 5
    assert list(values) == [1.0, 2.0, 3.0]


def test_identity_rotation(small_config):
    sample_count = 10
    times = np.arange(sample_count) / 30.0
    values = np.tile([0.0, 0.0, 0.0, 1.0], sample_count)
    encoder = _encoder(small_config)

    segments = encoder.process(times, values, 4, ROTATION)

    assert len(segments) == 3
    for segment in segments:
        assert segment.degree == 1
        assert (segment.start, segment.end) == (0, sample_count - 1)
        assert list(segment.fixed_points) == [0]
    assert np.allclose(values, np.tile([0.0, 0.0, 0.0, 1.0], sample_count))
    # 4 bytes per sample for the dropped component plus three fitted axes
    assert encoder.input_byte_count == 4 * sample_count + 3 * 4 * sample_count
    assert encoder.output_byte_count == 3 * 4


def test_constant_rotation_is_reconstructed(small_config):
    axis = np.array([1.0, 2.0, 3.0]) / np.sqrt(14.0)
    half = 0.35
    quat = np.concatenate([axis * np.sin(half), [np.cos(half)]])
    values = np.tile(quat, 20)
    encoder = _encoder(small_config)

    encoder.process(np.arange(20) / 30.0, values, 4, ROTATION)

    assert np.allclose(values.reshape(20, 4), quat, atol=3e-3)


def test_float32_buffer_is_mutated_in_place(small_config):
    times = np.arange(40) / 30.0
    values = np.cos(times).astype(np.float32)
    buffer_id = id(values)
    original = values.copy()

    _encoder(small_config).process(times, values, 1, TRANSLATION)

    assert id(values) == buffer_id
    assert values.dtype == np.float32
    assert np.max(np.abs(values - original)) <= 0.1 + 1e-6


def test_counters_accumulate_over_channels(small_config):
    encoder = _encoder(small_config)
    times = np.arange(20) / 30.0
    encoder.process(times, np.zeros(20), 1, TRANSLATION)
    first = encoder.input_byte_count
    encoder.process(times, np.zeros(20), 1, TRANSLATION)
    assert encoder.input_byte_count == 2 * first


class TestValidation:
    def test_unsupported_kind(self):
        meta, coef = io.BytesIO(), io.BytesIO()
        encoder = ChannelEncoder(meta, coef)
        with pytest.raises(UnsupportedChannelKindError) as info:
            encoder.process(np.arange(4.0), np.zeros(4), 1, "color")
        assert info.value.kind == "color"
        assert meta.getvalue() == b""

    def test_rotation_needs_four_components(self):
        with pytest.raises(ValueError):
            _encoder().process(np.arange(4.0), np.zeros(12), 3, ROTATION)

    def test_value_count_must_match(self):
        with pytest.raises(ValueError):
            _encoder().process(np.arange(4.0), np.zeros(10), 3, TRANSLATION)

    def test_values_must_be_an_array(self):
        with pytest.raises(ValueError):
            _encoder().process(np.arange(2.0), [0.0, 1.0], 1, TRANSLATION)


class TestEncoderConfig:
    def test_defaults(self):
        config = EncoderConfig()
        assert config.degree_candidates == (4, 8, 16, 24, 32)
        assert config.max_degree == 32
        assert config.error_bound(ROTATION) == 1.0 / 1024
        assert len(config.coefficient_scales(TRANSLATION)) == 32

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            EncoderConfig(degree_candidates=())
        with pytest.raises(ValueError):
            EncoderConfig(degree_candidates=(4, 300))
        with pytest.raises(ValueError):
            EncoderConfig(bucket_length=1000)
        with pytest.raises(ValueError):
            EncoderConfig(span_meta_mode="signed")
        with pytest.raises(ValueError):
            EncoderConfig(error_bounds={TRANSLATION: 0.0})

    def test_unknown_kind(self):
        with pytest.raises(UnsupportedChannelKindError):
            EncoderConfig().error_bound("color")

    def test_span_meta_modes(self):
        legacy = EncoderConfig()
        assert legacy.span_meta(0, 255) == 2
        assert legacy.span_meta(0, 1) == 0
        assert legacy.span_meta(3, 3) == 1
        for start, end in [(0, 255), (0, 1), (3, 3), (10, 40)]:
            assert legacy.span_count(legacy.span_meta(start, end)) == end - start + 1

        count = EncoderConfig(span_meta_mode="count")
        assert count.span_meta(0, 255) == 0
        assert count.span_meta(10, 40) == 31
        assert count.span_count(0) == 256


def test_sine_over_full_period():
    times = np.linspace(0.0, 2.0 * np.pi, 64)
    values = np.sin(times)
    original = values.copy()
    encoder = _encoder()

    segments = encoder.process(times, values, 1, TRANSLATION)

    assert encoder.input_byte_count / encoder.output_byte_count > 8
    assert all(s.degree <= 8 for s in segments)
    assert np.max(np.abs(values - original)) <= 0.1 + 1e-9
    _assert_windows_partitioned(segments, 64, 256, 1)


def test_identical_identity_quaternions_full_window():
    values = np.tile([0.0, 0.0, 0.0, 1.0], 256)
    encoder = _encoder()

    segments = encoder.process(np.arange(256) / 30.0, values, 4, ROTATION)

    assert [(s.degree, s.start, s.end) for s in segments] == [(1, 0, 255)] * 3
    assert all(not s.fixed_points.any() for s in segments)
    assert np.allclose(values, np.tile([0.0, 0.0, 0.0, 1.0], 256))


class TestOutOfRangeValues:
    def test_large_translation_raises_instead_of_clipping(self):
        times = np.arange(20) / 30.0
        values = 5000.0 + 0.01 * np.arange(20)
        original = values.copy()
        meta, coef = io.BytesIO(), io.BytesIO()
        encoder = ChannelEncoder(meta, coef)

        with pytest.raises(CoefficientRangeError) as info:
            encoder.process(times, values, 1, TRANSLATION)

        assert (info.value.axis, info.value.sample) == (0, 0)
        assert info.value.value == pytest.approx(5000.0)
        assert np.array_equal(values, original)
        assert meta.getvalue() == b"" and coef.getvalue() == b""
        assert encoder.input_byte_count == 0 and encoder.output_byte_count == 0

    def test_later_window_failure_leaves_earlier_windows_unwritten(self, small_config):
        # First 32-sample window is fine, the second one is out of range
        times = np.arange(64) / 30.0
        values = np.concatenate([np.zeros(32), np.full(32, 4000.0)])
        original = values.copy()
        meta, coef = io.BytesIO(), io.BytesIO()
        encoder = ChannelEncoder(meta, coef, config=small_config)

        with pytest.raises(CoefficientRangeError) as info:
            encoder.process(times, values, 1, TRANSLATION)

        assert info.value.sample == 32
        assert np.array_equal(values, original)
        assert meta.getvalue() == b""
        assert encoder.output_byte_count == 0

    def test_values_just_inside_range_stay_within_bound(self):
        # 0.5 * 32767 / scale0 is the largest constant a degree-1 segment holds
        times = np.arange(20) / 30.0
        values = np.full(20, 1600.0)
        _encoder().process(times, values, 1, TRANSLATION)
        assert np.max(np.abs(values - 1600.0)) <= 0.1 + 1e-9
