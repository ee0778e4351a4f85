# Exp_Curves/encoding/config.py
"""
Configuration for the Chebyshev channel encoder.

Module constants are the defaults; EncoderConfig carries them into an
encoder so different runs can use different tables side by side.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

from ..curves.chebyshev import coefficient_scales
from ..curves.data import TRANSLATION, ROTATION, SCALE, WEIGHTS
from ..errors import UnsupportedChannelKindError

# Maximum absolute error per sample, in channel units.
# Rotation is measured in tangent space (quaternion log, half-angle radians).
ERROR_BOUNDS = {
    TRANSLATION: 0.1,
    ROTATION: 1.0 / 1024,
    SCALE: 0.01,
    WEIGHTS: 0.01,
}

# Maximum-degree candidates; each one is a full independent segmentation trial
DEGREE_CANDIDATES = (4, 8, 16, 24, 32)

# Samples per window; windows and axes are encoded independently
BUCKET_LENGTH = 256

# Coefficients are written as int16
BYTES_PER_COEFFICIENT = 2

# Second metadata byte per segment:
#   "legacy" - (start - end + 1) & 0xFF, the layout of existing chevy.bin files
#   "count"  - (end - start + 1) & 0xFF, the sample count
SPAN_META_MODE = "legacy"
SPAN_META_MODES = ("legacy", "count")


@dataclass
class EncoderConfig:
    """
    Encoder settings.

    Attributes:
        error_bounds: {channel kind: max absolute error}
        degree_candidates: Maximum degrees tried per window, in reduction order
        bucket_length: Samples per window (1-256, the span byte holds 256 as 0)
        span_meta_mode: "legacy" or "count"
    """
    error_bounds: Dict[str, float] = field(default_factory=lambda: dict(ERROR_BOUNDS))
    degree_candidates: Tuple[int, ...] = DEGREE_CANDIDATES
    bucket_length: int = BUCKET_LENGTH
    span_meta_mode: str = SPAN_META_MODE

    def __post_init__(self):
        self.degree_candidates = tuple(int(d) for d in self.degree_candidates)
        self.validate()

    def validate(self) -> None:
        """Raise ValueError for settings the stream format cannot represent."""
        if not self.degree_candidates:
            raise ValueError("degree_candidates must not be empty")
        for degree in self.degree_candidates:
            if not 1 <= degree <= 255:
                raise ValueError(f"Degree candidate {degree} outside 1-255 (stored in one byte)")
        if not 2 <= self.bucket_length <= 256:
            raise ValueError(f"bucket_length {self.bucket_length} outside 2-256")
        if self.span_meta_mode not in SPAN_META_MODES:
            raise ValueError(f"span_meta_mode must be one of {SPAN_META_MODES}, got {self.span_meta_mode!r}")
        for kind, bound in self.error_bounds.items():
            if bound <= 0:
                raise ValueError(f"Error bound for {kind!r} must be positive, got {bound}")

    @property
    def max_degree(self) -> int:
        return max(self.degree_candidates)

    def error_bound(self, kind: str) -> float:
        """
        Error bound for a channel kind.

        Raises:
            UnsupportedChannelKindError: kind not in the table
        """
        try:
            return self.error_bounds[kind]
        except (KeyError, TypeError):
            raise UnsupportedChannelKindError(kind) from None

    def coefficient_scales(self, kind: str, count: int = None) -> np.ndarray:
        """Fixed point scale schedule for a channel kind (max_degree entries by default)."""
        if count is None:
            count = self.max_degree
        return coefficient_scales(self.error_bound(kind), count)

    def span_meta(self, start: int, end: int) -> int:
        """Metadata byte for a segment covering window samples [start, end]."""
        if self.span_meta_mode == "legacy":
            return (start - end + 1) & 0xFF
        return (end - start + 1) & 0xFF

    def span_count(self, span_meta: int) -> int:
        """Inverse of span_meta: sample count of a segment (0 stands for 256)."""
        if self.span_meta_mode == "legacy":
            count = (2 - span_meta) & 0xFF
        else:
            count = span_meta & 0xFF
        return count if count else 256
