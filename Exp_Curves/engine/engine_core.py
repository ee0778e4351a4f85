# Exp_Curves/engine/engine_core.py
"""
Core engine manager - spawns and manages worker processes.
This runs in the main process and executes fit trials in parallel.
"""

import multiprocessing as mp
import os
import time
from queue import Empty, Full
from typing import Dict, Iterable, List, Optional

from .engine_types import EngineJob, EngineResult, EngineHeartbeat, JOB_PING
from .engine_config import (
    WORKER_COUNT,
    JOB_QUEUE_SIZE,
    RESULT_QUEUE_SIZE,
    HEARTBEAT_INTERVAL,
    SHUTDOWN_TIMEOUT,
    POLL_INTERVAL,
    DEBUG_ENGINE
)
from .worker.entry import worker_loop
from ..developer.dev_logger import log_event, log_worker_messages


class EngineCore:
    """
    Main engine manager that spawns and coordinates worker processes.

    This class handles:
    - Starting worker processes
    - Submitting jobs to workers
    - Polling and collecting results from workers
    - Heartbeat monitoring
    - Graceful shutdown

    Usage:
        engine = EngineCore()
        engine.start()

        # Submit jobs
        job_ids = [engine.submit_job("FIT_TRIAL", data) for data in payloads]

        # Wait for exactly those results
        results = engine.collect_results(job_ids)

        # Shutdown
        engine.shutdown()

    Or as a context manager:
        with EngineCore(worker_count=2) as engine:
            ...
    """

    def __init__(self, worker_count: Optional[int] = None):
        # 'spawn' everywhere for cross-platform consistency (Windows only supports spawn)
        self._ctx = mp.get_context('spawn')

        # Communication queues
        self._job_queue = None
        self._result_queue = None

        # Worker processes
        self._workers: List = []
        self._shutdown_event = None

        # State tracking
        self._running = False
        self._start_time = 0.0
        self._next_job_id = 1
        self._jobs_submitted = 0
        self._jobs_completed = 0

        # Results received while collecting other job ids
        self._unclaimed: List[EngineResult] = []

        # Heartbeat tracking
        self._last_heartbeat = 0.0
        self._heartbeat_count = 0

        # Per-worker load tracking
        self._worker_stats = {}

        # Job type profiling: {job_type: {"count": N, "total_time_ms": X, "avg_time_ms": Y}}
        self._job_type_stats = {}

        # Don't exceed CPU cores
        requested = WORKER_COUNT if worker_count is None else worker_count
        cpu_count = os.cpu_count() or 1
        self._worker_count = max(1, min(requested, cpu_count))

        if DEBUG_ENGINE:
            print(f"[Engine Core] Initialized (will use {self._worker_count} workers)")

    @property
    def worker_count(self) -> int:
        return self._worker_count

    def __enter__(self) -> "EngineCore":
        self.start()
        return self

    def __exit__(self, exc_type, exc_value, tb):
        self.shutdown()
        return False

    def start(self):
        """
        Start the engine and spawn worker processes.
        """
        if self._running:
            if DEBUG_ENGINE:
                print("[Engine Core] Already running, ignoring start request")
            return

        if DEBUG_ENGINE:
            print(f"[Engine Core] Starting with {self._worker_count} workers...")

        # Create communication infrastructure
        self._job_queue = self._ctx.Queue(maxsize=JOB_QUEUE_SIZE)
        self._result_queue = self._ctx.Queue(maxsize=RESULT_QUEUE_SIZE)
        self._shutdown_event = self._ctx.Event()

        self._workers = []
        for i in range(self._worker_count):
            worker = self._ctx.Process(
                target=worker_loop,
                args=(self._job_queue, self._result_queue, i, self._shutdown_event),
                name=f"ExpCurves-Worker-{i}",
                daemon=True,
            )
            worker.start()
            self._workers.append(worker)

        self._running = True
        self._start_time = time.time()
        self._last_heartbeat = time.time()

        self._worker_stats = {
            i: {"jobs_processed": 0, "total_time_ms": 0.0}
            for i in range(self._worker_count)
        }

        log_event("ENGINE", f"START workers={self._worker_count}")
        if DEBUG_ENGINE:
            print(f"[Engine Core] Started successfully with {len(self._workers)} workers")

    def wait_for_readiness(self, timeout: float = 10.0) -> bool:
        """
        Wait for engine to be fully ready to process jobs.

        1. Verify all workers are alive
        2. Send one PING job per worker and wait for all responses

        Args:
            timeout: Maximum seconds to wait for readiness

        Returns:
            True if engine is ready, False if timeout or failure
        """
        if not self._running:
            if DEBUG_ENGINE:
                print("[Engine Core] Cannot check readiness - engine not running")
            return False

        alive_count = sum(1 for w in self._workers if w.is_alive())
        if alive_count != self._worker_count:
            if DEBUG_ENGINE:
                print(f"[Engine Core] FAILED: Only {alive_count}/{self._worker_count} workers alive")
            return False

        ping_jobs = []
        for i in range(self._worker_count):
            job_id = self.submit_job(JOB_PING, {"worker_check": i})
            if job_id is None:
                return False
            ping_jobs.append(job_id)

        try:
            results = self.collect_results(ping_jobs, timeout=timeout)
        except (TimeoutError, RuntimeError) as e:
            if DEBUG_ENGINE:
                print(f"[Engine Core] FAILED: {e}")
            return False

        ready = all(result.success for result in results.values())
        log_event("ENGINE", f"READY ok={ready} pings={len(results)}")
        return ready

    def is_alive(self) -> bool:
        """
        Check if the engine is running.

        Returns:
            True if engine is running and at least one worker is alive
        """
        if not self._running:
            return False

        alive_count = sum(1 for w in self._workers if w.is_alive())

        if alive_count == 0:
            if DEBUG_ENGINE:
                print("[Engine Core] WARNING: No workers alive!")
            return False

        return True

    def get_stats(self) -> Dict:
        """
        Get current engine statistics.

        Returns:
            Dictionary with engine stats
        """
        uptime = time.time() - self._start_time if self._running else 0.0
        alive_workers = sum(1 for w in self._workers if w.is_alive()) if self._workers else 0

        return {
            "running": self._running,
            "alive": self.is_alive(),
            "workers_total": self._worker_count,
            "workers_alive": alive_workers,
            "jobs_submitted": self._jobs_submitted,
            "jobs_completed": self._jobs_completed,
            "jobs_pending": self._jobs_submitted - self._jobs_completed,
            "uptime": uptime,
            "heartbeat_count": self._heartbeat_count
        }

    def get_worker_distribution(self) -> Dict:
        """
        Get worker load distribution statistics.

        Returns:
            Dictionary with per-worker stats and distribution percentages
        """
        total_jobs = sum(stats["jobs_processed"] for stats in self._worker_stats.values())

        distribution = {}
        for worker_id, stats in self._worker_stats.items():
            jobs = stats["jobs_processed"]
            distribution[worker_id] = {
                "jobs_processed": jobs,
                "percentage": (jobs / total_jobs * 100) if total_jobs > 0 else 0,
                "avg_time_ms": stats["total_time_ms"] / jobs if jobs > 0 else 0
            }

        return {
            "total_jobs": total_jobs,
            "workers": distribution
        }

    def get_job_type_stats(self) -> Dict:
        """Get job type profiling statistics."""
        return dict(self._job_type_stats)

    def check_worker_health(self) -> Dict:
        """
        Comprehensive worker health check.

        Returns:
            Dictionary with health status and warnings
        """
        health = {
            "healthy": True,
            "workers_alive": 0,
            "workers_dead": 0,
            "warnings": [],
            "critical": []
        }

        if not self._running:
            health["healthy"] = False
            health["critical"].append("Engine not running")
            return health

        for i, worker in enumerate(self._workers):
            if worker.is_alive():
                health["workers_alive"] += 1
            else:
                health["workers_dead"] += 1
                health["critical"].append(f"Worker {i} is dead")

        if health["workers_alive"] == 0:
            health["healthy"] = False
            health["critical"].append("NO WORKERS ALIVE - ENGINE UNUSABLE")
            return health

        if health["workers_dead"] > 0:
            health["healthy"] = False
            health["warnings"].append(f"{health['workers_dead']}/{self._worker_count} workers dead")

        pending = self._jobs_submitted - self._jobs_completed
        if pending > JOB_QUEUE_SIZE * 0.8:
            health["warnings"].append(f"Queue near full ({pending}/{JOB_QUEUE_SIZE})")

        return health

    def submit_job(self, job_type: str, data, check_overload: bool = True) -> Optional[int]:
        """
        Submit a job to be processed by workers.

        Args:
            job_type: String identifier for the job type (e.g., "FIT_TRIAL")
            data: Job data (must be picklable)
            check_overload: If True, reject job if queue is too full

        Returns:
            job_id if submitted successfully, None if queue is full or engine not running
        """
        if not self._running:
            if DEBUG_ENGINE:
                print("[Engine Core] Cannot submit job - engine not running")
            return None

        if check_overload:
            pending = self._jobs_submitted - self._jobs_completed
            # Reject if queue is 90% full
            if pending > JOB_QUEUE_SIZE * 0.9:
                if DEBUG_ENGINE:
                    print(f"[Engine Core] Job rejected - queue overloaded ({pending}/{JOB_QUEUE_SIZE})")
                return None

        job_id = self._next_job_id
        self._next_job_id += 1

        job = EngineJob(job_id=job_id, job_type=job_type, data=data)

        try:
            self._job_queue.put_nowait(job)
        except Full:
            if DEBUG_ENGINE:
                print(f"[Engine Core] Failed to submit job {job_id} - queue full")
            return None

        self._jobs_submitted += 1

        if DEBUG_ENGINE:
            print(f"[Engine Core] Submitted job {job_id} (type: {job_type})")

        return job_id

    def _record_result(self, result: EngineResult) -> None:
        self._jobs_completed += 1

        worker_id = result.worker_id
        if worker_id in self._worker_stats:
            self._worker_stats[worker_id]["jobs_processed"] += 1
            self._worker_stats[worker_id]["total_time_ms"] += result.processing_time * 1000

        stats = self._job_type_stats.setdefault(
            result.job_type, {"count": 0, "total_time_ms": 0.0, "avg_time_ms": 0.0}
        )
        stats["count"] += 1
        stats["total_time_ms"] += result.processing_time * 1000
        stats["avg_time_ms"] = stats["total_time_ms"] / stats["count"]

        # Worker-side logs travel inside successful results
        if result.success and isinstance(result.result, dict):
            worker_logs = result.result.get("logs")
            if worker_logs:
                log_worker_messages(worker_logs)

        if DEBUG_ENGINE:
            status = "SUCCESS" if result.success else "FAILED"
            print(f"[Engine Core] Received result for job {result.job_id} ({status})")

    def poll_results(self, max_results: int = 16) -> List[EngineResult]:
        """
        Poll for completed results from workers (non-blocking).

        Args:
            max_results: Maximum number of results to retrieve per poll

        Returns:
            List of EngineResult objects (may be empty)
        """
        if not self._running:
            return []

        results = self._unclaimed[:max_results]
        del self._unclaimed[:max_results]

        while len(results) < max_results:
            try:
                result_dict = self._result_queue.get_nowait()
            except Empty:
                break

            result = EngineResult.from_dict(result_dict)
            self._record_result(result)
            results.append(result)

        return results

    def collect_results(self, job_ids: Iterable[int], timeout: Optional[float] = None) -> Dict[int, EngineResult]:
        """
        Block until every listed job has a result.

        Results for other jobs that arrive meanwhile are kept for poll_results.
        A heartbeat is logged every HEARTBEAT_INTERVAL seconds while waiting.

        Args:
            job_ids: Jobs to wait for
            timeout: Seconds to wait in total (None = no limit)

        Returns:
            {job_id: EngineResult}

        Raises:
            TimeoutError: timeout elapsed first
            RuntimeError: engine stopped or every worker died while waiting
        """
        wanted = set(job_ids)
        collected: Dict[int, EngineResult] = {}

        # Results stashed by an earlier collect
        still_unclaimed = []
        for result in self._unclaimed:
            if result.job_id in wanted:
                collected[result.job_id] = result
            else:
                still_unclaimed.append(result)
        self._unclaimed = still_unclaimed

        start = time.time()
        while len(collected) < len(wanted):
            if not self._running:
                raise RuntimeError("Engine stopped while collecting results")

            self.send_heartbeat()

            try:
                result_dict = self._result_queue.get(timeout=POLL_INTERVAL)
            except Empty:
                if not self.is_alive():
                    raise RuntimeError("No engine workers alive while collecting results")
                if timeout is not None and time.time() - start > timeout:
                    raise TimeoutError(
                        f"Timed out after {timeout}s waiting for {len(wanted) - len(collected)} results"
                    )
                continue

            result = EngineResult.from_dict(result_dict)
            self._record_result(result)
            if result.job_id in wanted:
                collected[result.job_id] = result
            else:
                self._unclaimed.append(result)

        return collected

    def send_heartbeat(self) -> Optional[EngineHeartbeat]:
        """
        Generate and log a heartbeat if HEARTBEAT_INTERVAL has passed.
        This confirms the engine is alive and responsive.
        """
        if not self._running:
            return None

        now = time.time()
        if now - self._last_heartbeat < HEARTBEAT_INTERVAL:
            return None

        self._last_heartbeat = now
        self._heartbeat_count += 1

        heartbeat = EngineHeartbeat(
            timestamp=now,
            worker_count=sum(1 for w in self._workers if w.is_alive()),
            jobs_processed=self._jobs_completed,
            uptime=now - self._start_time
        )

        log_event("ENGINE", f"HEARTBEAT #{self._heartbeat_count} workers={heartbeat.worker_count}/"
                            f"{self._worker_count} jobs={heartbeat.jobs_processed} uptime={heartbeat.uptime:.1f}s")
        if DEBUG_ENGINE:
            print(f"[Engine Core] HEARTBEAT #{self._heartbeat_count} - "
                  f"Workers: {heartbeat.worker_count}/{self._worker_count}, "
                  f"Jobs: {heartbeat.jobs_processed}, "
                  f"Uptime: {heartbeat.uptime:.1f}s")

        return heartbeat

    def shutdown(self):
        """
        Gracefully shutdown the engine and terminate worker processes.
        """
        if not self._running:
            return

        if DEBUG_ENGINE:
            print("[Engine Core] Shutting down...")

        self._running = False

        # Signal workers to stop
        if self._shutdown_event:
            self._shutdown_event.set()

        # Wait for workers to finish (with timeout)
        start_shutdown = time.time()
        for worker in self._workers:
            remaining_time = SHUTDOWN_TIMEOUT - (time.time() - start_shutdown)
            if remaining_time > 0:
                worker.join(timeout=remaining_time)

            if worker.is_alive():
                if DEBUG_ENGINE:
                    print(f"[Engine Core] Force terminating worker {worker.name}")
                worker.terminate()
                worker.join(timeout=0.5)

        # Drain queues
        for queue in (self._job_queue, self._result_queue):
            if queue is None:
                continue
            while True:
                try:
                    queue.get_nowait()
                except (Empty, OSError, ValueError):
                    break
            queue.close()
            queue.cancel_join_thread()

        self._workers.clear()
        self._unclaimed.clear()
        self._job_queue = None
        self._result_queue = None
        self._shutdown_event = None

        log_event("ENGINE", f"SHUTDOWN jobs={self._jobs_completed}")
        if DEBUG_ENGINE:
            print(f"[Engine Core] Shutdown complete ({self._jobs_completed} jobs processed)")
