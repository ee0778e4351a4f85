# Exp_Curves/encoding/channel_encoder.py
"""
ChannelEncoder - compresses one animation channel into Chebyshev segments.

Layout of the work for one channel:

  for axis in 0..dimension-1:
      for window in consecutive runs of bucket_length samples:
          < 2 samples   -> passed through, only counted
          otherwise     -> one trial per degree candidate (serial or engine jobs)
                           keep the trial with the fewest output bytes

  then, once every window has a plan, write the segments and overwrite the
  samples with the quantized reconstruction

Rotation channels ([x, y, z, w] quaternions) are fitted in log space on an
owned 3-component scratch buffer and mapped back with exp at the end.

The caller's value buffer is mutated in place: afterwards it holds exactly what
a decoder reading the two streams reconstructs.
"""

from typing import BinaryIO, List, Optional

import numpy as np

from ..curves.chebyshev import QuantizedChebyshev
from ..curves.data import BYTES_PER_SAMPLE, ROTATION, EncodedSegment, TrialResult
from ..curves.oracle import SmoothingOracle
from ..curves.quat_math import quat_exp_xyzw, quat_log_xyzw
from ..curves.search import pick_best_trial, run_trial
from ..developer.dev_logger import log_event, log_worker_messages
from ..engine.engine_types import JOB_FIT_TRIAL
from ..engine.worker.jobs import build_fit_trial_data, trial_from_result
from ..errors import CoefficientRangeError, FitTrialError
from .config import BYTES_PER_COEFFICIENT, EncoderConfig
from .streams import SegmentStreamWriter

# Degenerate window: 1 marker byte plus the raw floats
DEGENERATE_HEADER_BYTES = 1


class _WindowPlan:
    """Search outcome for one window of one axis; best is None for degenerate windows."""

    __slots__ = ("axis", "window_start", "x_points", "oracle", "best")

    def __init__(self, axis: int, window_start: int, x_points: np.ndarray):
        self.axis = axis
        self.window_start = window_start
        self.x_points = x_points
        self.oracle: Optional[SmoothingOracle] = None
        self.best: Optional[TrialResult] = None


class ChannelEncoder:
    """
    Encodes channels into a metadata stream and a coefficient stream.

    One encoder may process many channels; the byte counters accumulate
    across calls.

    Usage:
        encoder = ChannelEncoder(meta_stream, coef_stream)
        segments = encoder.process(times, values, 3, "translation")
        print(encoder.input_byte_count, encoder.output_byte_count)

    Pass an EngineCore to run the degree-candidate trials of every window in
    worker processes. The result is identical to the serial path.
    """

    def __init__(self, metadata_stream: BinaryIO, coefficient_stream: BinaryIO,
                 config: Optional[EncoderConfig] = None, engine=None):
        self.config = config if config is not None else EncoderConfig()
        self.engine = engine
        self.writer = SegmentStreamWriter(metadata_stream, coefficient_stream)
        self.input_byte_count = 0
        self.output_byte_count = 0

    # =========================================================================
    # PUBLIC
    # =========================================================================

    def process(self, times: np.ndarray, values: np.ndarray, dimension: int, kind: str) -> List[EncodedSegment]:
        """
        Encode one channel and overwrite `values` with the reconstruction.

        Args:
            times: (sample_count,) non-decreasing sample times
            values: (sample_count * dimension,) interleaved values, mutated in place
            dimension: Components per sample (4 for rotation)
            kind: translation | rotation | scale | weights

        Returns:
            Segments in the order they were written

        Raises:
            UnsupportedChannelKindError: unknown kind
            ValueError: inconsistent array sizes or rotation dimension != 4
            FitTrialError: a worker trial failed
            CoefficientRangeError: a sample cannot be encoded within its error bound
        """
        error_bound = self.config.error_bound(kind)

        if not isinstance(values, np.ndarray):
            raise ValueError("values must be a numpy array (it is overwritten in place)")
        times = np.asarray(times, dtype=np.float64).reshape(-1)
        if dimension < 1:
            raise ValueError(f"dimension must be positive, got {dimension}")
        sample_count = len(times)
        if values.size != sample_count * dimension:
            raise ValueError(f"{values.size} values for {sample_count} samples of dimension {dimension}")
        if kind == ROTATION and dimension != 4:
            raise ValueError(f"Rotation channels need dimension 4, got {dimension}")

        if kind == ROTATION:
            # Owned scratch buffer in log space; the 4th component is implied
            work = quat_log_xyzw(values.reshape(sample_count, 4))
        else:
            work = np.array(values, dtype=np.float64).reshape(sample_count, dimension)

        scales = self.config.coefficient_scales(kind)

        # All windows are searched before anything is written: a channel that
        # raises leaves the streams, counters and caller buffer untouched
        plans = []
        for axis in range(work.shape[1]):
            for window_start in range(0, sample_count, self.config.bucket_length):
                window_end = min(window_start + self.config.bucket_length, sample_count)
                plans.append(self._search_window(times, work, axis, window_start, window_end,
                                                 error_bound, scales))

        if kind == ROTATION:
            # The dropped w component still counts as input
            self.input_byte_count += BYTES_PER_SAMPLE * sample_count

        segments: List[EncodedSegment] = []
        for plan in plans:
            segments.extend(self._emit_window(plan, work, scales))

        if kind == ROTATION:
            values[...] = quat_exp_xyzw(work).reshape(values.shape)
        else:
            values[...] = work.reshape(values.shape)

        log_event("ENCODER", f"CHANNEL kind={kind} samples={sample_count} dim={dimension} "
                             f"segments={len(segments)} in={self.input_byte_count} out={self.output_byte_count}")
        return segments

    # =========================================================================
    # WINDOWS
    # =========================================================================

    def _search_window(self, times: np.ndarray, work: np.ndarray, axis: int,
                       window_start: int, window_end: int,
                       error_bound: float, scales: np.ndarray) -> _WindowPlan:
        """Pick the best trial for one window of one axis (no side effects)."""
        plan = _WindowPlan(axis, window_start, times[window_start:window_end])

        if len(plan.x_points) < 2:
            return plan

        y_points = work[window_start:window_end, axis].copy()
        plan.oracle = SmoothingOracle(plan.x_points, y_points)

        try:
            if self.engine is None:
                trials = self._run_trials_serial(plan.x_points, y_points, plan.oracle, error_bound, scales)
            else:
                trials = self._run_trials_engine(plan.x_points, y_points, error_bound, scales)
        except CoefficientRangeError as e:
            log_event("ENCODER", f"RANGE axis={axis} sample={window_start + e.sample} value={e.value}")
            raise CoefficientRangeError(window_start + e.sample, e.value, e.error_bound, axis=axis) from e

        plan.best = pick_best_trial(trials)
        return plan

    def _emit_window(self, plan: _WindowPlan, work: np.ndarray, scales: np.ndarray) -> List[EncodedSegment]:
        """Write a searched window, update the counters and overwrite its samples."""
        axis, window_start, x_points = plan.axis, plan.window_start, plan.x_points
        point_count = len(x_points)

        if plan.best is None:
            # Not enough points to compress
            self.output_byte_count += DEGENERATE_HEADER_BYTES + BYTES_PER_SAMPLE * point_count
            self.input_byte_count += BYTES_PER_SAMPLE * point_count
            log_event("ENCODER", f"DEGENERATE axis={axis} start={window_start} samples={point_count}")
            return []

        best = plan.best
        self.input_byte_count += best.input_byte_count
        self.output_byte_count += best.output_byte_count

        emitted = []
        for entry in best.entries:
            cheby = QuantizedChebyshev.build(plan.oracle, x_points[entry.start], x_points[entry.end],
                                             entry.degree, scales)
            span_meta = self.config.span_meta(entry.start, entry.end)
            self.writer.write_segment(entry.degree, span_meta, cheby.fixed_points)

            rows = slice(window_start + entry.start, window_start + entry.end + 1)
            work[rows, axis] = cheby.evaluate(x_points[entry.start:entry.end + 1])

            emitted.append(EncodedSegment(
                axis=axis,
                window_start=window_start,
                start=entry.start,
                end=entry.end,
                degree=entry.degree,
                span_meta=span_meta,
                fixed_points=cheby.fixed_points,
                min_x=cheby.min_x,
                max_x=cheby.max_x,
            ))

        log_event("ENCODER", f"WINDOW axis={axis} start={window_start} samples={point_count} "
                             f"max_degree={best.max_degree} segments={len(best.entries)} "
                             f"in={best.input_byte_count} out={best.output_byte_count}")
        return emitted

    def _run_trials_serial(self, x_points, y_points, oracle, error_bound, scales) -> List[TrialResult]:
        logs = []
        trials = [
            run_trial(x_points, y_points, max_degree, error_bound, scales,
                      bytes_per_coefficient=BYTES_PER_COEFFICIENT, oracle=oracle, logs=logs)
            for max_degree in self.config.degree_candidates
        ]
        log_worker_messages(logs)
        return trials

    def _run_trials_engine(self, x_points, y_points, error_bound, scales) -> List[TrialResult]:
        """One FIT_TRIAL job per candidate, results reordered by job id (= candidate order)."""
        job_ids = []
        for max_degree in self.config.degree_candidates:
            data = build_fit_trial_data(x_points, y_points, max_degree, error_bound, scales,
                                        BYTES_PER_COEFFICIENT)
            job_id = self.engine.submit_job(JOB_FIT_TRIAL, data)
            if job_id is None:
                raise FitTrialError(max_degree, "engine rejected the job (not running or queue full)")
            job_ids.append((job_id, max_degree))

        results = self.engine.collect_results([job_id for job_id, _ in job_ids])

        trials = []
        for job_id, max_degree in sorted(job_ids):
            result = results[job_id]
            if not result.success:
                raise FitTrialError(max_degree, result.error)
            trials.append(trial_from_result(result.result))
        return trials
