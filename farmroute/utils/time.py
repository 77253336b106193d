"""
Clock helpers for session timestamps and elapsed-time display.

Session start and end times are stored as integer epoch milliseconds so that
exported documents stay compatible with earlier exports.
"""

from datetime import datetime, timezone
from typing import Optional


def now_ms() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """
    Convert epoch milliseconds to an aware UTC datetime.

    Args:
        timestamp_ms: Epoch milliseconds

    Returns:
        UTC datetime
    """
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def elapsed_ms(start_ms: int, now: Optional[int] = None) -> int:
    """Milliseconds since start_ms, never negative."""
    current = now if now is not None else now_ms()
    return max(0, current - start_ms)


def format_elapsed(duration_ms: int) -> str:
    """
    Format a duration as HH:MM:SS.

    Hours are not wrapped at 24, so long sessions read e.g. "26:03:09".

    Args:
        duration_ms: Duration in milliseconds

    Returns:
        Zero-padded duration string
    """
    total_seconds = max(0, duration_ms) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def iso_now() -> str:
    """Current UTC time as an ISO-8601 string, used for export dates."""
    return datetime.now(timezone.utc).isoformat()
