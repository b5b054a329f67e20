"""
Date Transformers

Timestamp parsing shared by the source adapters and the read side.
Every timestamp is handled as an aware UTC datetime.
"""

from datetime import datetime, timedelta
from typing import Optional

import pytz


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def parse_utc(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 or "YYYY-MM-DD HH:MM:SS" timestamp as UTC.

    Naive values are assumed to be UTC (Leaguepedia's "DateTime UTC").
    Returns None for empty or unparseable input.

    Examples:
        >>> parse_utc("2026-02-01T08:00:00Z").isoformat()
        '2026-02-01T08:00:00+00:00'
        >>> parse_utc("2026-02-01 08:00:00").isoformat()
        '2026-02-01T08:00:00+00:00'
    """
    if not value:
        return None
    text = value.strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return pytz.UTC.localize(parsed)
    return parsed.astimezone(pytz.UTC)


def cutoff_for(days_back: int, now: Optional[datetime] = None) -> datetime:
    """Start of a trailing window of ``days_back`` days ending at ``now``."""
    return (now or utc_now()) - timedelta(days=days_back)
