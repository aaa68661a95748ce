"""
In-memory range cache backing the booking calendar heatmap.

One RangeCache lives for one identity (service, location, staff). It grows
monotonically and is only ever cleared wholesale via ``reset``.
"""

from __future__ import annotations

import logging
from typing import Mapping

from .dates import iter_days, parse_iso_date
from .exceptions import InvalidRangeError
from .ranges import DateRange, RangeLike, compute_missing_ranges, merge_ranges

logger = logging.getLogger(__name__)

ValueMap = dict[str, int]


class RangeCache:
    """Sparse day -> slot count map plus the date ranges known to be complete."""

    def __init__(self, *, strict_dates: bool = False) -> None:
        self.strict_dates = strict_dates
        self.values: ValueMap = {}
        self.covered: list[DateRange] = []

    def __repr__(self) -> str:
        return f"RangeCache(covered={self.covered!r}, days={len(self.values)})"

    def reset(self) -> None:
        """Drop all cached data, e.g. when the service or location changes."""
        self.values = {}
        self.covered = []

    def missing_ranges(self, target: RangeLike) -> list[DateRange]:
        return compute_missing_ranges(self.covered, target, strict=self.strict_dates)

    def is_covered(self, window: RangeLike) -> bool:
        return not self.missing_ranges(window)

    def record_fetch_result(
        self, interval: RangeLike, values: Mapping[str, int] | None = None
    ) -> None:
        """
        Store the result of a successful fetch for exactly ``interval``.

        The fetch is authoritative for its range: days it did not report are
        stored as 0. Must not be called for failed or cancelled fetches.

        Raises:
            InvalidRangeError: if the interval ends before it starts
        """
        start = parse_iso_date(interval[0], strict=self.strict_dates)
        end = parse_iso_date(interval[1], strict=self.strict_dates)
        if start > end:
            raise InvalidRangeError(start.isoformat(), end.isoformat())

        incoming = dict(values or {})
        for day in iter_days(start, end):
            incoming.setdefault(day, 0)
        self.values.update(incoming)

        self.covered = merge_ranges(
            [*self.covered, DateRange.of(start, end)], strict=self.strict_dates
        )
        logger.debug(
            "range_cache_recorded start=%s end=%s covered_spans=%d",
            start,
            end,
            len(self.covered),
        )

    def project(self, window: RangeLike) -> ValueMap:
        """
        Dense map with one entry per day of ``window``, defaulting to 0.

        Performs no coverage check and never fetches.
        """
        return {
            day: self.values.get(day, 0)
            for day in iter_days(window[0], window[1], strict=self.strict_dates)
        }
