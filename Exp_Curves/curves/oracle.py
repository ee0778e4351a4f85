# Exp_Curves/curves/oracle.py
"""
SmoothingOracle - continuous interpolant through a window of raw samples.

The segment search never fits raw points directly. It resamples this oracle at
Chebyshev nodes, so a window of 256 samples behaves like a smooth function.
Built on scipy's CubicSpline; the oracle passes through every sample exactly.

Worker-safe: picklable, rebuilt from plain arrays inside worker processes.
"""

import numpy as np
from scipy.interpolate import CubicSpline


class SmoothingOracle:
    """
    Cubic spline through (x, y) samples, exposed as evaluate(x) -> y.

    Duplicate x values (non-decreasing time arrays) collapse to one knot that
    keeps the LAST sample's value.
    """

    __slots__ = ('min_x', 'max_x', '_spline', '_constant')

    def __init__(self, x_points: np.ndarray, y_points: np.ndarray):
        x = np.asarray(x_points, dtype=np.float64)
        y = np.asarray(y_points, dtype=np.float64)
        if x.shape != y.shape or x.ndim != 1 or len(x) == 0:
            raise ValueError("SmoothingOracle needs matching non-empty 1D x/y arrays")
        if np.any(np.diff(x) < 0):
            raise ValueError("SmoothingOracle needs non-decreasing x values")

        # Keep the last sample of each run of equal x
        keep = np.append(np.diff(x) > 0, True)
        x = x[keep]
        y = y[keep]

        self.min_x = float(x[0])
        self.max_x = float(x[-1])

        if len(x) == 1:
            self._spline = None
            self._constant = float(y[0])
        else:
            self._spline = CubicSpline(x, y)
            self._constant = 0.0

    def evaluate(self, x):
        """Evaluate at scalar or array x. Returns float for scalar input."""
        if self._spline is None:
            result = np.full(np.shape(x), self._constant, dtype=np.float64)
        else:
            result = self._spline(np.asarray(x, dtype=np.float64))
        if np.ndim(result) == 0:
            return float(result)
        return result

    def __call__(self, x):
        return self.evaluate(x)
