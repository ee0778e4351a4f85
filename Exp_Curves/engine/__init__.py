# Exp_Curves/engine/__init__.py
"""
Multiprocessing Engine - runs fit trials in worker processes.

Structure:
    engine/
    ├── engine_config.py     # Worker count, queue sizes, timeouts
    ├── engine_types.py      # EngineJob / EngineResult / EngineHeartbeat
    ├── engine_core.py       # EngineCore (main process side)
    └── worker/              # Worker process side (entry + job handlers)
"""

from .engine_core import EngineCore
from .engine_types import (
    EngineJob,
    EngineResult,
    EngineHeartbeat,
    JOB_PING,
    JOB_FIT_TRIAL,
)

__all__ = [
    'EngineCore',
    'EngineJob',
    'EngineResult',
    'EngineHeartbeat',
    'JOB_PING',
    'JOB_FIT_TRIAL',
]
