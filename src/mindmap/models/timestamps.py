"""Timestamp normalization for node metadata and sync ages.

Upstream graphs carry timestamps in whatever shape their producer used:
ISO-8601 strings, Unix seconds, Unix milliseconds, or Neo4j temporal values.
Everything is normalized to timezone-aware UTC datetimes before display.
"""

from datetime import datetime, timezone
from typing import Any

EMPTY_MARK = "—"

# Numeric ranges used to tell epoch seconds from epoch milliseconds
_SECONDS_MIN = 1e9
_SECONDS_MAX = 1e11
_MILLIS_MIN = 1e12


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp from an ISO string, epoch seconds/millis, or datetime.

    Returns None when the value is empty or cannot be interpreted.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    # Neo4j DateTime object - convert to Python datetime
    if hasattr(value, "to_native"):
        return parse_timestamp(value.to_native())

    number = _as_number(value)
    if number is not None:
        if _SECONDS_MIN < number < _SECONDS_MAX:
            return datetime.fromtimestamp(number, tz=timezone.utc)
        if number > _MILLIS_MIN:
            return datetime.fromtimestamp(number / 1000.0, tz=timezone.utc)
        return None

    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_timestamp(value: Any) -> str:
    """Format a timestamp as e.g. 'Mar 4, 2025 09:15 AM' (UTC)."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return EMPTY_MARK
    parsed = parsed.astimezone(timezone.utc)
    return f"{parsed:%b} {parsed.day}, {parsed.year} {parsed:%I:%M %p}"


def time_ago(value: Any, now: datetime | None = None) -> str:
    """Describe how long ago a timestamp was: 'just now', '5m ago', '3h ago', '2d ago'."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return EMPTY_MARK
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    minutes = int((now - parsed).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string, the format used for sync stamps."""
    return datetime.now(timezone.utc).isoformat()
