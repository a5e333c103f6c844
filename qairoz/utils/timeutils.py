# utils/timeutils.py
from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return current UTC time with timezone."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """
    Render a datetime the way browsers do (`Date.toISOString()`):
    UTC, millisecond precision, trailing `Z`.
    Naive values (SQLite drops tzinfo) are taken to be UTC already.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def today_stamp() -> str:
    """YYYY-MM-DD for the current UTC day, used in export file names."""
    return utcnow().strftime("%Y-%m-%d")
