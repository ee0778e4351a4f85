# Exp_Curves/developer/__init__.py
"""
Developer Tools Module

Debug toggles and the in-memory diagnostics log used by the encoder,
the cubic segmenter and the worker engine.
"""

from .dev_debug_gate import (
    enable_category,
    is_category_enabled,
    set_master_hz,
    should_print_debug,
    reset_debug_timers,
    reset_debug_gate,
)
from .dev_logger import (
    start_session,
    increment_channel,
    log_event,
    log_worker_messages,
    export_log,
    clear_log,
    get_entries,
    get_buffer_size,
    get_stats,
)

__all__ = [
    'enable_category',
    'is_category_enabled',
    'set_master_hz',
    'should_print_debug',
    'reset_debug_timers',
    'reset_debug_gate',
    'start_session',
    'increment_channel',
    'log_event',
    'log_worker_messages',
    'export_log',
    'clear_log',
    'get_entries',
    'get_buffer_size',
    'get_stats',
]
