# Exp_Curves/developer/dev_debug_gate.py
"""
Debug output frequency gating system.

Prevents log spam by limiting debug output to a master frequency (1-30 Hz).
Categories are switched on explicitly; everything is off by default.

IMPORTANT: Gating is per MESSAGE KEY, not per category. This ensures that
different log types within the same category (e.g., WINDOW vs TRIAL)
don't block each other.
"""

import time
from typing import Dict, Optional, Set

# Categories that are allowed to log (debug property names, e.g. "encoder")
_enabled_categories: Set[str] = set()

# Master frequency in Hz. 30 = no gating.
_master_hz: int = 30

# Track last print time for each unique message key
# Key format: "category" for legacy calls, "category:prefix" for log_event calls
_last_print_times: Dict[str, float] = {}


def enable_category(category: str, enabled: bool = True) -> None:
    """Turn debug output for a category on or off."""
    if enabled:
        _enabled_categories.add(category)
    else:
        _enabled_categories.discard(category)


def is_category_enabled(category: str) -> bool:
    return category in _enabled_categories


def set_master_hz(frequency: int) -> None:
    """
    Set the master output frequency.

    Args:
        frequency: Messages per second per message key, clamped to 1-30
    """
    global _master_hz
    _master_hz = max(1, min(30, int(frequency)))


def should_print_debug(category: str, message_key: Optional[str] = None) -> bool:
    """
    Check if debug output should be recorded based on the master frequency gate.

    Args:
        category: Debug category name (e.g., "encoder", "cubic")
        message_key: Optional unique key for this message type. If provided, gating is
                     per message_key instead of per category.

    Returns:
        True if the category is enabled and enough time has passed since the last entry
    """
    if category not in _enabled_categories:
        return False

    # Special case: 30Hz = every call (no gating)
    if _master_hz >= 30:
        return True

    time_threshold = 1.0 / _master_hz
    gate_key = message_key if message_key else category

    current_time = time.perf_counter()
    last_time = _last_print_times.get(gate_key, 0.0)

    if (current_time - last_time) >= time_threshold:
        _last_print_times[gate_key] = current_time
        return True

    return False


def reset_debug_timers():
    """Reset all debug print timers (called on session start/end)."""
    _last_print_times.clear()


def reset_debug_gate():
    """Disable every category and restore the default frequency."""
    global _master_hz
    _enabled_categories.clear()
    _master_hz = 30
    _last_print_times.clear()
