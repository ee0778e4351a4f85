# Exp_Curves/developer/dev_logger.py
"""
Developer Logger - Fast Memory Buffer Logging System

Encoding runs can evaluate hundreds of thousands of candidate fits, so logging
never touches the console or disk while fitting. Entries are appended to an
in-memory buffer and written out in one batch when the run is over.

Performance: ~1μs per log call (vs ~1000μs+ for console print)

Usage:
    from Exp_Curves.developer.dev_logger import log_event, export_log, clear_log
    from Exp_Curves.developer.dev_debug_gate import enable_category

    enable_category("encoder")

    # During encoding (fast - just appends to buffer)
    log_event("ENCODER", "WINDOW axis=0 start=256 samples=256 segments=3")

    # When the run is over
    export_log("encode_log.txt")
    clear_log()
"""

import sys
import time
from typing import Dict, List, Optional
from .dev_debug_gate import should_print_debug

# Global log buffer
_log_buffer: List[Dict] = []

# Session tracking
_session_start_time: Optional[float] = None
_current_channel: int = 0

# Performance stats
_total_logs: int = 0
_logs_per_category: Dict[str, int] = {}

# ══════════════════════════════════════════════════════════════════════════════
# CATEGORY MAPPING (log category -> debug property name)
# ══════════════════════════════════════════════════════════════════════════════

_CATEGORY_MAP = {
    # Engine
    'ENGINE': 'engine',

    # Chebyshev encoding
    'ENCODER': 'encoder',        # Per-channel / per-window results
    'SEARCH': 'search',          # Trial segmentations and reductions
    'DECODER': 'decoder',
    'SESSION': 'session',        # Multi-channel totals

    # Cubic regression
    'CUBIC': 'cubic',
}


def start_session():
    """Call when an encoding run starts - resets session tracking."""
    global _session_start_time, _current_channel, _total_logs
    _session_start_time = time.perf_counter()
    _current_channel = 0
    _total_logs = 0
    _logs_per_category.clear()
    _log_buffer.clear()


def increment_channel():
    """Call once per processed channel to tag entries with a channel number."""
    global _current_channel
    _current_channel += 1


def _extract_message_key(category: str, message: str) -> str:
    """
    Extract a unique key for frequency gating from a log message.

    The key is: "category:PREFIX" where PREFIX is the first word of the message.

    Examples:
        ("ENCODER", "WINDOW axis=0 ...") -> "encoder:WINDOW"
        ("SEARCH", "TRIAL max_degree=8 ...") -> "search:TRIAL"
    """
    first_space = message.find(' ')
    if first_space > 0:
        prefix = message[:first_space]
    else:
        prefix = message[:20] if len(message) > 20 else message

    debug_property = _CATEGORY_MAP.get(category, category.lower())
    return f"{debug_property}:{prefix}"


def _append(category: str, message: str) -> None:
    global _total_logs
    _log_buffer.append({
        'channel': _current_channel,
        'time': time.perf_counter(),
        'category': category,
        'message': message
    })
    _total_logs += 1
    _logs_per_category[category] = _logs_per_category.get(category, 0) + 1


def log_event(category: str, message: str):
    """
    Fast in-memory logging with frequency gating. Zero I/O while encoding.

    Args:
        category: Log category (e.g., "ENCODER", "CUBIC")
        message: The log message, first word names the message type
    """
    debug_property = _CATEGORY_MAP.get(category, category.lower())
    message_key = _extract_message_key(category, message)
    if not should_print_debug(debug_property, message_key):
        return

    _append(category, message)


def log_worker_messages(worker_logs: list):
    """
    Log messages collected by worker processes.

    Workers collect logs during computation and return them in the result.
    The main process calls this to add them to the buffer.

    Args:
        worker_logs: List of (category, message) tuples from worker
    """
    for category, message in worker_logs:
        debug_property = _CATEGORY_MAP.get(category, category.lower())
        message_key = _extract_message_key(category, message)
        if not should_print_debug(debug_property, message_key):
            continue

        _append(category, message)


def export_log(filepath: str) -> bool:
    """
    Write entire buffer to file. Call when the run is over.

    Returns:
        True if successful, False if the buffer is empty
    """
    if not _log_buffer:
        print("[DevLogger] No logs to export (buffer empty)")
        return False

    start_time = _session_start_time if _session_start_time else _log_buffer[0]['time']

    with open(filepath, 'w', encoding='utf-8') as f:
        f.write("=" * 80 + "\n")
        f.write("CURVE ENCODING LOG\n")
        f.write(f"Total Logs: {_total_logs}\n")
        f.write(f"Total Channels: {_current_channel}\n")
        f.write(f"Duration: {_log_buffer[-1]['time'] - start_time:.3f}s\n")
        f.write("=" * 80 + "\n\n")

        f.write("Logs per Category:\n")
        for cat, count in sorted(_logs_per_category.items()):
            f.write(f"  {cat}: {count}\n")
        f.write("\n" + "=" * 80 + "\n\n")

        for entry in _log_buffer:
            elapsed = entry['time'] - start_time
            f.write(f"[{entry['category']} C{entry['channel']:04d} T{elapsed:.3f}s] {entry['message']}\n")

        f.write("\n" + "=" * 80 + "\n")
        f.write(f"END OF LOG - {_total_logs} entries\n")
        f.write("=" * 80 + "\n")

    print(f"[DevLogger] Exported {_total_logs} logs to: {filepath}")
    return True


def clear_log():
    """Clear the buffer. Call after export to prepare for the next run."""
    _log_buffer.clear()


def get_entries(category: Optional[str] = None) -> List[Dict]:
    """Copy of buffered entries, optionally filtered by category."""
    if category is None:
        return list(_log_buffer)
    return [entry for entry in _log_buffer if entry['category'] == category]


def get_buffer_size() -> int:
    """Get current number of entries in buffer."""
    return len(_log_buffer)


def get_memory_usage_mb() -> float:
    """Estimate memory usage of buffer in MB."""
    return sys.getsizeof(_log_buffer) / (1024 * 1024)


def get_stats() -> Dict:
    """Get current session statistics."""
    return {
        'total_logs': _total_logs,
        'buffer_size': len(_log_buffer),
        'current_channel': _current_channel,
        'categories': dict(_logs_per_category),
        'memory_mb': get_memory_usage_mb()
    }
