"""Availability heatmap cache for the clinic booking calendar."""

from .calendar_window import month_grid, prefetch_window
from .client import (
    BackendConnectionError,
    BackendError,
    BackendNotFoundError,
    BackendRequestError,
    BackendResponseError,
    HeatmapClient,
)
from .config import Settings
from .controller import CancellationToken, HeatmapController, HeatmapState
from .dates import add_days, iter_days, parse_iso_date, to_iso_date
from .exceptions import HeatmapError, InvalidDateError, InvalidRangeError
from .models import HeatmapDay, HeatmapIdentity, HeatmapResponse
from .range_cache import RangeCache
from .ranges import DateRange, compute_missing_ranges, merge_ranges, range_contains
from .response_cache import ResponseCache, make_heatmap_cache_key

__all__ = [
    "BackendConnectionError",
    "BackendError",
    "BackendNotFoundError",
    "BackendRequestError",
    "BackendResponseError",
    "CancellationToken",
    "DateRange",
    "HeatmapClient",
    "HeatmapController",
    "HeatmapDay",
    "HeatmapError",
    "HeatmapIdentity",
    "HeatmapResponse",
    "HeatmapState",
    "InvalidDateError",
    "InvalidRangeError",
    "RangeCache",
    "ResponseCache",
    "Settings",
    "add_days",
    "compute_missing_ranges",
    "iter_days",
    "make_heatmap_cache_key",
    "merge_ranges",
    "month_grid",
    "parse_iso_date",
    "prefetch_window",
    "range_contains",
    "to_iso_date",
]
