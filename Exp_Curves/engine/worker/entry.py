# Exp_Curves/engine/worker/entry.py
"""
Worker process entry point.
Contains the main worker loop and job dispatcher.
This module is the target of every engine worker process.
"""

import time
import traceback
from queue import Empty

from ..engine_config import DEBUG_ENGINE, WORKER_QUEUE_TIMEOUT
from ..engine_types import JOB_PING, JOB_FIT_TRIAL
from .jobs import handle_fit_trial


def process_job(job) -> dict:
    """
    Process a single job and return result as a plain dict (pickle-safe).
    Exceptions are reported in the result, never raised.
    """
    start_time = time.perf_counter()

    try:
        # ===================================================================
        # JOB TYPE DISPATCH
        # ===================================================================

        if job.job_type == JOB_PING:
            # Worker verification ping - used during startup to confirm worker responsiveness
            result_data = {
                "pong": True,
                "worker_check": job.data.get("worker_check", -1),
                "timestamp": time.time(),
            }

        elif job.job_type == JOB_FIT_TRIAL:
            result_data = handle_fit_trial(job.data)

        else:
            raise ValueError(f"Unknown job type '{job.job_type}' - no handler registered")

        processing_time = time.perf_counter() - start_time

        return {
            "job_id": job.job_id,
            "job_type": job.job_type,
            "result": result_data,
            "success": True,
            "error": None,
            "timestamp": time.time(),
            "processing_time": processing_time
        }

    except Exception as e:
        processing_time = time.perf_counter() - start_time

        return {
            "job_id": job.job_id,
            "job_type": job.job_type,
            "result": None,
            "success": False,
            "error": f"{type(e).__name__}: {str(e)}\n{traceback.format_exc()}",
            "timestamp": time.time(),
            "processing_time": processing_time
        }


# ============================================================================
# WORKER MAIN LOOP
# ============================================================================

def worker_loop(job_queue, result_queue, worker_id, shutdown_event):
    """
    Main loop for a worker process.
    This is the entry point called by multiprocessing.Process.
    """
    if DEBUG_ENGINE:
        print(f"[Engine Worker {worker_id}] Started")

    jobs_processed = 0

    try:
        while not shutdown_event.is_set():
            try:
                # Wait for a job (with timeout so we can check shutdown_event)
                job = job_queue.get(timeout=WORKER_QUEUE_TIMEOUT)
            except Empty:
                continue

            if DEBUG_ENGINE:
                print(f"[Engine Worker {worker_id}] Processing job {job.job_id} (type: {job.job_type})")

            result = process_job(job)
            result["worker_id"] = worker_id
            result_queue.put(result)

            jobs_processed += 1

            if DEBUG_ENGINE:
                print(f"[Engine Worker {worker_id}] Completed job {job.job_id} in {result['processing_time']*1000:.2f}ms")

    except (KeyboardInterrupt, EOFError, BrokenPipeError):
        # Parent went away or interrupted; nothing left to report to
        pass

    finally:
        if DEBUG_ENGINE:
            print(f"[Engine Worker {worker_id}] Shutting down (processed {jobs_processed} jobs)")
