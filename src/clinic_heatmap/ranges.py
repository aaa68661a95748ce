"""
Inclusive date-range arithmetic for the heatmap cache.

Ranges are closed on both ends. Gap boundaries are found by stepping one
day before or after a covered boundary, never by open-interval math.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, NamedTuple, Sequence

from .dates import DayLike, parse_iso_date, to_iso_date

ONE_DAY = timedelta(days=1)


class DateRange(NamedTuple):
    """Closed range of ISO days, ``start <= end``."""

    start: str
    end: str

    @classmethod
    def of(cls, start: DayLike, end: DayLike) -> "DateRange":
        return cls(
            start if isinstance(start, str) else to_iso_date(start),
            end if isinstance(end, str) else to_iso_date(end),
        )


RangeLike = Sequence[DayLike]


def _as_dates(rng: RangeLike, strict: bool) -> tuple[date, date]:
    start, end = rng
    return parse_iso_date(start, strict=strict), parse_iso_date(end, strict=strict)


def _merge_parsed(ranges: Iterable[RangeLike], strict: bool) -> list[tuple[date, date]]:
    parsed = [_as_dates(r, strict) for r in ranges]
    spans = sorted((s, e) for s, e in parsed if s <= e)
    if not spans:
        return []
    merged: list[tuple[date, date]] = []
    cs, ce = spans[0]
    for s, e in spans[1:]:
        # Adjacent ranges touch when the next one starts the day after.
        if s <= ce + ONE_DAY:
            ce = max(ce, e)
        else:
            merged.append((cs, ce))
            cs, ce = s, e
    merged.append((cs, ce))
    return merged


def merge_ranges(ranges: Iterable[RangeLike], *, strict: bool = False) -> list[DateRange]:
    """
    Normalize ranges into a sorted, maximally merged covered set.

    Overlapping and adjacent ranges fold into one span. Degenerate ranges
    (start after end) are dropped. Applying this twice gives the same result.
    """
    return [DateRange(to_iso_date(s), to_iso_date(e)) for s, e in _merge_parsed(ranges, strict)]


def compute_missing_ranges(
    covered: Iterable[RangeLike], target: RangeLike, *, strict: bool = False
) -> list[DateRange]:
    """
    Return the sub-ranges of ``target`` not contained in ``covered``.

    The result is ordered and disjoint, and every range in it holds at least
    one uncovered day. A target whose start is after its end has nothing
    missing.
    """
    target_start, target_end = _as_dates(target, strict)
    missing: list[DateRange] = []
    if target_start > target_end:
        return missing

    cursor = target_start
    for range_start, range_end in _merge_parsed(covered, strict):
        if range_end < cursor:
            continue
        if range_start > target_end:
            break

        if range_start > cursor:
            gap_end = min(range_start - ONE_DAY, target_end)
            if gap_end >= cursor:
                missing.append(DateRange(to_iso_date(cursor), to_iso_date(gap_end)))

        cursor = max(cursor, range_end + ONE_DAY)
        if cursor > target_end:
            return missing

    if cursor <= target_end:
        missing.append(DateRange(to_iso_date(cursor), to_iso_date(target_end)))
    return missing


def range_contains(covered: Iterable[RangeLike], day: DayLike, *, strict: bool = False) -> bool:
    """True when ``day`` falls inside one of the covered ranges."""
    target = parse_iso_date(day, strict=strict)
    return any(s <= target <= e for s, e in _merge_parsed(covered, strict))
