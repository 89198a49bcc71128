"""
Diagnostic output for the calendar engine.

Messages go to stderr with a timestamp and a short tag naming the
component ("STORE", "STORAGE", "SYNC", ...). Output is off until
set_debug(True) is called (the --debug flag or [General] debug = true).
"""

import sys
from datetime import datetime


_enabled: bool = False


def set_debug(enabled: bool) -> None:
    """Turn diagnostic output on or off for the whole process."""
    global _enabled
    _enabled = enabled


def is_debug() -> bool:
    return _enabled


def debug_print(tag: str, message: str) -> None:
    if not _enabled:
        return
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] {tag}: {message}", file=sys.stderr)
