# Exp_Curves/errors.py
"""
Exceptions raised by the curve fitting and encoding code.

Numerical "not fittable yet" conditions are NOT exceptions: the cubic
segmenter returns None for those and keeps collecting points.
"""


class UnsupportedChannelKindError(ValueError):
    """Channel kind tag is not translation, rotation, scale or weights."""

    def __init__(self, kind):
        super().__init__(f"Unsupported channel kind: {kind!r}")
        self.kind = kind


class ChebyshevDomainError(ValueError):
    """Evaluation requested outside an approximation's fitted interval."""

    def __init__(self, x, min_x, max_x):
        super().__init__(f"x={x!r} outside fitted interval [{min_x!r}, {max_x!r}]")
        self.x = x
        self.min_x = min_x
        self.max_x = max_x


class SegmentationError(RuntimeError):
    """Tolerance violated before any cubic segment could be accepted."""


class FitTrialError(RuntimeError):
    """A degree-candidate trial failed; the whole window is aborted."""

    def __init__(self, max_degree: int, error: str):
        super().__init__(f"Fit trial (max_degree={max_degree}) failed: {error}")
        self.max_degree = max_degree
        self.error = error


class CoefficientRangeError(ValueError):
    """
    A sample cannot be represented within its error bound, even alone.

    Raised when a value's degree-0 coefficient does not fit in int16 at the
    channel's scale, so no segment covering the sample can meet the bound.
    """

    def __init__(self, sample: int, value: float, error_bound: float, axis: int = None):
        where = f"sample {sample}" if axis is None else f"axis {axis} sample {sample}"
        super().__init__(f"Value {value!r} at {where} cannot be encoded within error bound {error_bound!r}")
        self.sample = sample
        self.value = value
        self.error_bound = error_bound
        self.axis = axis

    def to_dict(self) -> dict:
        return {"sample": self.sample, "value": self.value,
                "error_bound": self.error_bound, "axis": self.axis}

    @classmethod
    def from_dict(cls, data: dict) -> "CoefficientRangeError":
        return cls(data["sample"], data["value"], data["error_bound"], data.get("axis"))
