# Exp_Curves/engine/engine_types.py
"""
Data structures for engine communication.
All types must be picklable (plain data and numpy arrays only).
"""

from dataclasses import dataclass
from typing import Any, Optional
import time

# Job types understood by the worker dispatcher
JOB_PING = "PING"
JOB_FIT_TRIAL = "FIT_TRIAL"


@dataclass
class EngineJob:
    """
    A job to be processed by the engine.

    Attributes:
        job_id: Unique identifier for this job, increasing in submission order
        job_type: String identifier for what kind of job this is (e.g., "FIT_TRIAL")
        data: Job-specific data (must be picklable)
        timestamp: When this job was created
    """
    job_id: int
    job_type: str
    data: Any
    timestamp: float = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()


@dataclass
class EngineResult:
    """
    A result returned from the engine.

    Attributes:
        job_id: Matches the job_id from the EngineJob
        job_type: What kind of job this was
        result: Job-specific result data (must be picklable)
        success: Whether the job completed successfully
        error: Error message if success=False
        timestamp: When this result was created
        processing_time: How long the job took (seconds)
        worker_id: ID of the worker that processed this job (for tracking)
    """
    job_id: int
    job_type: str
    result: Any
    success: bool = True
    error: Optional[str] = None
    timestamp: float = None
    processing_time: float = 0.0
    worker_id: int = -1

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = time.time()

    @classmethod
    def from_dict(cls, result_dict: dict) -> "EngineResult":
        """Build from the plain dict a worker puts on the result queue."""
        return cls(
            job_id=result_dict["job_id"],
            job_type=result_dict["job_type"],
            result=result_dict["result"],
            success=result_dict["success"],
            error=result_dict.get("error"),
            timestamp=result_dict.get("timestamp", time.time()),
            processing_time=result_dict.get("processing_time", 0.0),
            worker_id=result_dict.get("worker_id", -1),
        )


@dataclass
class EngineHeartbeat:
    """
    Periodic heartbeat signal from engine to confirm it's alive.

    Attributes:
        timestamp: When this heartbeat was sent
        worker_count: Number of active workers
        jobs_processed: Total jobs processed since startup
        uptime: Seconds since engine started
    """
    timestamp: float
    worker_count: int
    jobs_processed: int
    uptime: float
