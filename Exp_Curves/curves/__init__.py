# Exp_Curves/curves/__init__.py
"""
Curve Math Module - worker-safe numpy code, no process state.

Structure:
    curves/
    ├── data.py          # Records (trials, segments, channel samples, reports)
    ├── chebyshev.py     # Chebyshev / QuantizedChebyshev approximations
    ├── oracle.py        # SmoothingOracle (spline through a window)
    ├── quat_math.py     # Quaternion log / exp
    ├── search.py        # Degree + boundary search, trial reduction
    └── cubic.py         # CubicSegmenter (continuous piecewise cubics)
"""

from .data import (
    TRANSLATION,
    ROTATION,
    SCALE,
    WEIGHTS,
    CHANNEL_KINDS,
    TrialEntry,
    TrialResult,
    EncodedSegment,
    ChannelSamples,
    ChannelReport,
)
from .chebyshev import Chebyshev, QuantizedChebyshev, coefficient_scales
from .oracle import SmoothingOracle
from .search import fit_chevy, run_trial, pick_best_trial
from .cubic import CubicSegment, CubicMoments, CubicSegmenter, fit_cubics

__all__ = [
    'TRANSLATION',
    'ROTATION',
    'SCALE',
    'WEIGHTS',
    'CHANNEL_KINDS',
    'TrialEntry',
    'TrialResult',
    'EncodedSegment',
    'ChannelSamples',
    'ChannelReport',
    'Chebyshev',
    'QuantizedChebyshev',
    'coefficient_scales',
    'SmoothingOracle',
    'fit_chevy',
    'run_trial',
    'pick_best_trial',
    'CubicSegment',
    'CubicMoments',
    'CubicSegmenter',
    'fit_cubics',
]
