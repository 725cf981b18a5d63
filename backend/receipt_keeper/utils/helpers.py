"""Miscellaneous helper functions."""

from __future__ import annotations

import datetime as dt
import math
from typing import Optional


def parse_iso_datetime(value: str | None) -> Optional[dt.datetime]:
    """Parse an ISO8601 date or datetime string into an aware :class:`datetime`.

    ``datetime.fromisoformat`` does not accept a lowercase ``z`` as the
    UTC designator on older interpreters, so it is normalised first.  A
    bare date (``2024-01-31``) becomes midnight UTC and naive datetimes
    are assumed to be UTC.  Returns ``None`` if the value cannot be parsed.
    """
    if not value or not value.strip():
        return None
    value = value.strip()
    try:
        if value[-1] in "zZ":
            value = value[:-1] + "+00:00"
        parsed = dt.datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed to show ``total`` rows ``limit`` at a time."""
    if limit <= 0:
        return 0
    return math.ceil(total / limit)
