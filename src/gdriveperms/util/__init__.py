from .timefmt import (
    is_older_than,
    now_utc,
    parse_rfc3339,
    parse_rfc3339_or_none,
    to_rfc3339,
)

__all__ = [
    "now_utc",
    "parse_rfc3339",
    "parse_rfc3339_or_none",
    "to_rfc3339",
    "is_older_than",
]
