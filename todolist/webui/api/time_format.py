"""Timestamp helpers for API responses (ISO 8601 UTC, 'Z' suffix)"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_z(dt: Optional[datetime] = None) -> str:
    """
    Format datetime as RFC 3339 UTC with second precision

    Example:
        >>> iso_z(datetime(2024, 1, 31, 12, 34, 56, tzinfo=timezone.utc))
        '2024-01-31T12:34:56Z'
    """
    if dt is None:
        dt = utc_now()
    if dt.tzinfo is None:
        # Assume naive datetime is UTC
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
