# Exp_Curves/engine/worker/__init__.py
"""
Worker process modules.
These modules run in separate worker processes and only touch plain data.

Structure:
    worker/
    ├── jobs.py          # FIT_TRIAL handler + payload helpers
    └── entry.py         # Job dispatcher + worker loop
"""

from .jobs import build_fit_trial_data, handle_fit_trial, trial_from_result
from .entry import worker_loop, process_job

__all__ = [
    'build_fit_trial_data',
    'handle_fit_trial',
    'trial_from_result',
    'worker_loop',
    'process_job',
]
