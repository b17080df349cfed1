"""
Debug output for Daybook.

Messages go to stderr as ``[HH:MM:SS] TAG: message`` and are only
printed once debug output has been enabled (``--debug`` on the command line).
"""

import sys
from datetime import datetime


_debug_enabled: bool = False


def set_debug(enabled: bool) -> None:
    """Enable or disable debug output for the whole process."""
    global _debug_enabled
    _debug_enabled = enabled


def debug_print(tag: str, message: str) -> None:
    if not _debug_enabled:
        return
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] {tag}: {message}", file=sys.stderr)
