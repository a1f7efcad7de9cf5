from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional


def to_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a feed timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (a trailing ``Z`` included), datetimes and
    epoch milliseconds. Returns None for anything that is not a valid
    instant.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return to_utc(value)

    if isinstance(value, (int, float)):
        try:
            if not math.isfinite(value):
                return None
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            return to_utc(datetime.fromisoformat(s))
        except ValueError:
            return None

    return None


def format_timestamp(dt: datetime) -> str:
    """Fixed-width UTC ISO-8601, so lexical order matches time order."""
    return to_utc(dt).isoformat(timespec="microseconds")
