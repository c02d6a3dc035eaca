"""Conversion of store timestamps to timezone-aware datetimes."""

from datetime import datetime, timezone
from typing import Any, Optional


def to_datetime(value: Any) -> Optional[datetime]:
    """Convert a store timestamp (ISO string or datetime) to an aware datetime.

    Returns None for missing values. Naive values are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise ValueError(f"Unsupported timestamp value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_store(value: datetime) -> str:
    """Serialize a datetime for a timestamptz column."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()
