"""Month-grid and prefetch windows for the booking calendar."""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from .dates import DayLike, parse_iso_date
from .ranges import DateRange


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _add_months(day: date, months: int) -> tuple[int, int]:
    index = day.year * 12 + (day.month - 1) + months
    return index // 12, index % 12 + 1


def month_grid(month_cursor: DayLike, *, first_weekday: int = calendar.SUNDAY) -> DateRange:
    """
    Return the visible calendar grid for the month containing ``month_cursor``.

    The grid runs from the first day of the week holding the 1st to the last
    day of the week holding the month's final day.
    """
    if not 0 <= first_weekday <= 6:
        raise ValueError("first_weekday must be between 0 (Monday) and 6 (Sunday)")

    cursor = parse_iso_date(month_cursor)
    first = cursor.replace(day=1)
    last = _month_end(cursor.year, cursor.month)

    last_weekday = (first_weekday + 6) % 7
    start_offset = (first.weekday() - first_weekday) % 7
    end_offset = (last_weekday - last.weekday()) % 7
    return DateRange.of(first - timedelta(days=start_offset), last + timedelta(days=end_offset))


def prefetch_window(grid: DateRange, months: int) -> DateRange:
    """Extend ``grid`` to the end of the month ``months`` months after its last day."""
    if months < 0:
        raise ValueError("months must be >= 0")
    year, month = _add_months(parse_iso_date(grid.end), months)
    return DateRange.of(grid.start, _month_end(year, month))
