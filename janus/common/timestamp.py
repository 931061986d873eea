"""
Timestamp Formatting Utilities

Operator-facing timestamps are local wall-clock time; log records use
UTC ISO strings (see logging_setup).
"""

from datetime import datetime

DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_display_time(ts: datetime | None = None) -> str:
    """
    Format a timestamp for chat messages.

    Args:
        ts: Timestamp to format (defaults to now, local time)

    Returns:
        "YYYY-mm-dd HH:MM:SS"
    """
    if ts is None:
        ts = datetime.now()
    return ts.strftime(DISPLAY_FORMAT)
