"""Calendar-day helpers operating on ISO ``YYYY-MM-DD`` strings."""

from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
import re
from typing import Any, Iterator

from .exceptions import InvalidDateError

logger = logging.getLogger(__name__)

ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

DayLike = str | date


def to_iso_date(day: date) -> str:
    """Format a date (or the date part of a datetime) as YYYY-MM-DD."""
    if isinstance(day, datetime):
        day = day.date()
    return day.isoformat()


def parse_iso_date(value: Any, *, strict: bool = False) -> date:
    """
    Parse a YYYY-MM-DD day.

    Anything that is not a fixed-width ISO day naming a real calendar date
    falls back to today's local date so interval math never raises. Pass
    ``strict=True`` to get an InvalidDateError instead.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and ISO_DATE_RE.fullmatch(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    if strict:
        raise InvalidDateError(value)
    logger.warning("invalid_iso_date_fallback_today value=%r", value)
    return date.today()


def add_days(value: DayLike, days: int, *, strict: bool = False) -> str:
    return to_iso_date(parse_iso_date(value, strict=strict) + timedelta(days=days))


def iter_days(start: DayLike, end: DayLike, *, strict: bool = False) -> Iterator[str]:
    """Yield every ISO day from start to end inclusive; nothing if start > end."""
    current = parse_iso_date(start, strict=strict)
    last = parse_iso_date(end, strict=strict)
    while current <= last:
        yield current.isoformat()
        current += timedelta(days=1)
