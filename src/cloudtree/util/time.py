from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional


def now_utc() -> datetime:
    """Return current time as tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def now_epoch() -> int:
    """Return current time as integer epoch seconds (the wire format)."""
    return int(now_utc().timestamp())


def to_epoch(dt: datetime) -> float:
    """Convert a tz-aware datetime to epoch seconds."""
    return normalize_dt(dt).timestamp()


def from_epoch(value: Any) -> Optional[datetime]:
    """
    Convert wire epoch seconds into a tz-aware UTC datetime.

    Returns None for anything that is not a number (bool included).
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def normalize_dt(dt: datetime) -> datetime:
    """Ensure datetime is tz-aware. Raises if naive."""
    if not isinstance(dt, datetime):
        raise TypeError("dt must be a datetime")
    if dt.tzinfo is None:
        raise ValueError("naive datetime is not allowed; timezone-aware required")
    return dt
