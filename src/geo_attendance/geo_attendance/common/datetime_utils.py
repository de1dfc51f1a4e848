from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def day_bounds(start: Optional[date], end: Optional[date]) -> tuple[Optional[datetime], Optional[datetime]]:
    """Turn an inclusive date range into [start-of-day, end-of-day] datetimes."""
    lo = datetime.combine(start, time.min) if start else None
    hi = datetime.combine(end, time.max) if end else None
    return lo, hi


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
