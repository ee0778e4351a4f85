# Exp_Curves/engine/worker/jobs.py
"""
Job handlers for worker process.
Contains handler functions for the fit job types.
"""

import time

import numpy as np

from ...curves.search import run_trial
from ...curves.data import TrialResult
from ...errors import CoefficientRangeError


def build_fit_trial_data(x_points: np.ndarray, y_points: np.ndarray, max_degree: int,
                         error_bound: float, scales: np.ndarray,
                         bytes_per_coefficient: int = 2) -> dict:
    """Pack one window trial into a picklable FIT_TRIAL payload."""
    return {
        "x_points": np.ascontiguousarray(x_points, dtype=np.float64),
        "y_points": np.ascontiguousarray(y_points, dtype=np.float64),
        "max_degree": int(max_degree),
        "error_bound": float(error_bound),
        "scales": np.ascontiguousarray(scales, dtype=np.float64),
        "bytes_per_coefficient": int(bytes_per_coefficient),
    }


def handle_fit_trial(job_data: dict) -> dict:
    """
    Handle FIT_TRIAL job.
    Runs one greedy segmentation of a window for one maximum degree.

    A sample the scale schedule cannot represent is an input problem, not a
    worker failure: it comes back as "range_error" so the caller can raise
    the same CoefficientRangeError the in-process search raises.

    Args:
        job_data: dict from build_fit_trial_data

    Returns:
        dict with the TrialResult (as dict) or range_error, worker logs and timing
    """
    calc_start = time.perf_counter()
    logs = []

    try:
        trial = run_trial(
            job_data["x_points"],
            job_data["y_points"],
            job_data["max_degree"],
            job_data["error_bound"],
            job_data["scales"],
            bytes_per_coefficient=job_data.get("bytes_per_coefficient", 2),
            logs=logs,
        )
    except CoefficientRangeError as e:
        logs.append(("SEARCH", f"RANGE max_degree={job_data['max_degree']} sample={e.sample} value={e.value}"))
        return {
            "trial": None,
            "range_error": e.to_dict(),
            "logs": logs,
            "calc_time_us": (time.perf_counter() - calc_start) * 1_000_000,
        }

    calc_time_us = (time.perf_counter() - calc_start) * 1_000_000

    return {
        "trial": trial.to_dict(),
        "range_error": None,
        "logs": logs,
        "calc_time_us": calc_time_us,
    }


def trial_from_result(result_data: dict) -> TrialResult:
    """
    Unpack the TrialResult from a FIT_TRIAL result payload.

    Raises:
        CoefficientRangeError: the worker hit an unrepresentable sample
    """
    range_error = result_data.get("range_error")
    if range_error is not None:
        raise CoefficientRangeError.from_dict(range_error)
    return TrialResult.from_dict(result_data["trial"])
