# Exp_Curves/curves/data.py
"""
Curve data records - plain, picklable containers.

Worker-safe: no process state, no file handles. Everything that crosses the
worker boundary has to_dict()/from_dict() so results travel as plain dicts
(same convention as the engine's result payloads).

Channel value layout (glTF accessor layout):
  values[sample * dimension + axis]   interleaved, one float per component
  rotation channels: dimension 4, quaternion [x, y, z, w]
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

# Bytes for one raw float sample component
BYTES_PER_SAMPLE = 4

# Segment header: 1 byte degree + 1 byte span meta
SEGMENT_HEADER_BYTES = 2

# Channel kind tags (glTF animation target paths)
TRANSLATION = "translation"
ROTATION = "rotation"
SCALE = "scale"
WEIGHTS = "weights"

CHANNEL_KINDS = (TRANSLATION, ROTATION, SCALE, WEIGHTS)


def segment_output_bytes(degree: int, bytes_per_coefficient: int = 2) -> int:
    """Encoded size of one segment: header plus its coefficients."""
    return SEGMENT_HEADER_BYTES + degree * bytes_per_coefficient


def compression_ratio(sample_count: int, degree: int, bytes_per_coefficient: int = 2) -> float:
    """Raw bytes covered by a segment divided by its encoded size."""
    return (BYTES_PER_SAMPLE * sample_count) / segment_output_bytes(degree, bytes_per_coefficient)


# =============================================================================
# SEGMENT SEARCH RESULTS
# =============================================================================

@dataclass(frozen=True)
class TrialEntry:
    """
    One segment chosen by the greedy search.

    Attributes:
        degree: Number of Chebyshev coefficients
        start: First sample index (window-relative, inclusive)
        end: Last sample index (window-relative, inclusive)
        ratio: Compression ratio that won the pick
    """
    degree: int
    start: int
    end: int
    ratio: float

    @property
    def sample_count(self) -> int:
        return self.end - self.start + 1

    def to_tuple(self) -> tuple:
        return (self.degree, self.start, self.end, self.ratio)


@dataclass
class TrialResult:
    """
    A complete greedy segmentation of one window for one maximum degree.

    Attributes:
        max_degree: Degree candidate this trial was run with
        entries: Segments in sample order, partitioning the window
        input_byte_count: Raw bytes covered (4 per sample)
        output_byte_count: Encoded bytes (header + coefficients per segment)
    """
    max_degree: int
    entries: List[TrialEntry] = field(default_factory=list)
    input_byte_count: int = 0
    output_byte_count: int = 0

    def add(self, entry: TrialEntry, bytes_per_coefficient: int = 2) -> None:
        self.entries.append(entry)
        self.input_byte_count += entry.sample_count * BYTES_PER_SAMPLE
        self.output_byte_count += segment_output_bytes(entry.degree, bytes_per_coefficient)

    def to_dict(self) -> dict:
        """Convert to plain dict for pickling back from a worker."""
        return {
            "max_degree": self.max_degree,
            "entries": [entry.to_tuple() for entry in self.entries],
            "input_byte_count": self.input_byte_count,
            "output_byte_count": self.output_byte_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TrialResult":
        return cls(
            max_degree=data["max_degree"],
            entries=[TrialEntry(*entry) for entry in data.get("entries", [])],
            input_byte_count=data.get("input_byte_count", 0),
            output_byte_count=data.get("output_byte_count", 0),
        )


# =============================================================================
# EMITTED SEGMENTS
# =============================================================================

@dataclass
class EncodedSegment:
    """
    A segment as written to the metadata / coefficient streams.

    Attributes:
        axis: Component index within the (fitted) channel
        window_start: Absolute sample index of the window's first sample
        start, end: Window-relative sample range (inclusive)
        degree: Number of coefficients
        span_meta: Byte written after the degree in the metadata stream
        fixed_points: int16 coefficients as written
        min_x, max_x: Time interval the approximation was built on
    """
    axis: int
    window_start: int
    start: int
    end: int
    degree: int
    span_meta: int
    fixed_points: np.ndarray
    min_x: float
    max_x: float

    @property
    def sample_count(self) -> int:
        return self.end - self.start + 1

    @property
    def absolute_start(self) -> int:
        return self.window_start + self.start

    @property
    def absolute_end(self) -> int:
        return self.window_start + self.end

    @property
    def byte_count(self) -> int:
        return segment_output_bytes(self.degree)


# =============================================================================
# COLLABORATOR INPUT / OUTPUT
# =============================================================================

@dataclass
class ChannelSamples:
    """
    One animation channel as supplied by the asset loading layer.

    Attributes:
        name: Display name (e.g. "Hips/Walk#3")
        kind: translation | rotation | scale | weights
        times: (sample_count,) non-decreasing times
        values: (sample_count * dimension,) interleaved values, mutated in place
        dimension: Components per sample
    """
    name: str
    kind: str
    times: np.ndarray
    values: np.ndarray
    dimension: int

    @property
    def sample_count(self) -> int:
        return len(self.times)


@dataclass
class ChannelReport:
    """Byte accounting for one processed channel."""
    name: str
    kind: str
    sample_count: int
    segment_count: int
    input_byte_count: int
    output_byte_count: int

    @property
    def ratio(self) -> Optional[float]:
        if self.output_byte_count == 0:
            return None
        return self.input_byte_count / self.output_byte_count

    def summary(self) -> str:
        ratio = self.ratio
        ratio_str = f"{ratio:.2f}" if ratio is not None else "-"
        return f"{self.name} ({self.input_byte_count} -> {self.output_byte_count} ({ratio_str}))"
