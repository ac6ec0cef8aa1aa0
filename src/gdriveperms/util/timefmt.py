from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def now_utc() -> datetime:
    """Current time as a tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_rfc3339(value: str) -> datetime:
    """
    Parse an RFC3339 timestamp (``Z`` or numeric offset) into UTC.

    Raises:
        ValueError: if the value is empty, naive, or not a timestamp.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError("RFC3339 value must be a non-empty string")

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no UTC offset: {value!r}")
    return parsed.astimezone(timezone.utc)


def parse_rfc3339_or_none(value: object) -> Optional[datetime]:
    """Lenient variant used when normalizing remote payloads."""
    if not isinstance(value, str):
        return None
    try:
        return parse_rfc3339(value)
    except ValueError:
        return None


def to_rfc3339(dt: datetime) -> str:
    """Format a tz-aware datetime as RFC3339 in UTC with a ``Z`` suffix."""
    if dt.tzinfo is None:
        raise ValueError("naive datetime is not allowed; timezone-aware required")
    text = dt.astimezone(timezone.utc).isoformat(timespec="microseconds")
    return text.replace("+00:00", "Z")


def is_older_than(captured_at: datetime, max_age: timedelta, *, now: Optional[datetime] = None) -> bool:
    """True when more than ``max_age`` has elapsed since ``captured_at``."""
    current = now if now is not None else now_utc()
    return current - captured_at > max_age
