# Exp_Curves/encoding/decoder.py
"""
ChannelDecoder - reconstructs channel values from the segment streams.

Walks exactly the axis / window layout the encoder used, so the caller must
supply the same times, dimension, kind and EncoderConfig. Degenerate windows
(< 2 samples) were never written and come back as NaN.
"""

from typing import BinaryIO, Optional

import numpy as np

from ..curves.chebyshev import QuantizedChebyshev
from ..curves.data import ROTATION
from ..curves.quat_math import quat_exp_xyzw
from ..developer.dev_logger import log_event
from .config import EncoderConfig
from .streams import read_segment_records


class ChannelDecoder:
    """
    Reads segments for consecutive channels from one pair of streams.

    Usage:
        decoder = ChannelDecoder(meta_stream, coef_stream)
        values = decoder.decode(times, 3, "translation")
    """

    def __init__(self, metadata_stream: BinaryIO, coefficient_stream: BinaryIO,
                 config: Optional[EncoderConfig] = None):
        self.config = config if config is not None else EncoderConfig()
        self._records = read_segment_records(metadata_stream, coefficient_stream)
        self.segments_read = 0

    def _next_record(self):
        try:
            return next(self._records)
        except StopIteration:
            raise ValueError("Segment streams ended before the channel was complete") from None

    def decode(self, times: np.ndarray, dimension: int, kind: str) -> np.ndarray:
        """
        Decode one channel.

        Args:
            times: Sample times the channel was encoded with
            dimension: Components per sample (4 for rotation)
            kind: Channel kind the channel was encoded as

        Returns:
            (sample_count * dimension,) interleaved float64 values
        """
        self.config.error_bound(kind)  # raises for unknown kinds
        times = np.asarray(times, dtype=np.float64).reshape(-1)
        sample_count = len(times)

        if kind == ROTATION:
            if dimension != 4:
                raise ValueError(f"Rotation channels need dimension 4, got {dimension}")
            fitted_dimension = 3
        else:
            fitted_dimension = dimension

        work = np.full((sample_count, fitted_dimension), np.nan, dtype=np.float64)
        bucket_length = self.config.bucket_length

        for axis in range(fitted_dimension):
            for window_start in range(0, sample_count, bucket_length):
                window_end = min(window_start + bucket_length, sample_count)
                if window_end - window_start < 2:
                    continue

                x_points = times[window_start:window_end]
                start = 0
                while start < len(x_points):
                    degree, span_meta, fixed_points = self._next_record()
                    end = start + self.config.span_count(span_meta) - 1
                    if end >= len(x_points):
                        raise ValueError(f"Segment at sample {window_start + start} runs past its window")

                    scales = self.config.coefficient_scales(kind, degree)
                    cheby = QuantizedChebyshev(fixed_points, scales, x_points[start], x_points[end])
                    work[window_start + start:window_start + end + 1, axis] = cheby.evaluate(x_points[start:end + 1])

                    self.segments_read += 1
                    start = end + 1

        log_event("DECODER", f"CHANNEL kind={kind} samples={sample_count} segments={self.segments_read}")

        if kind == ROTATION:
            return quat_exp_xyzw(work).reshape(-1)
        return work.reshape(-1)
