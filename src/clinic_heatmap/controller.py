"""
Heatmap controller for the booking calendar.

Owns the RangeCache for the current identity, fills missing ranges one
request at a time and renders the dense per-day map for the visible grid.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
import logging

from .calendar_window import month_grid, prefetch_window
from .client import BackendError, HeatmapClient
from .config import Settings
from .models import HeatmapIdentity
from .range_cache import RangeCache, ValueMap
from .ranges import DateRange, RangeLike

logger = logging.getLogger(__name__)


class HeatmapState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SETTLED = "settled"


class CancellationToken:
    """Cooperative cancellation flag checked between gap fetches."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class HeatmapController:
    """Keeps the calendar heatmap filled for the selected service and location."""

    def __init__(self, client: HeatmapClient, settings: Settings | None = None) -> None:
        self.client = client
        self.settings = settings or client.settings
        self.cache = RangeCache(strict_dates=self.settings.strict_dates)
        self.identity: HeatmapIdentity | None = None
        self.state = HeatmapState.IDLE
        self.heatmap: ValueMap = {}
        self._token: CancellationToken | None = None

    @property
    def loading(self) -> bool:
        return self.state is HeatmapState.FETCHING

    def set_identity(self, identity: HeatmapIdentity | None) -> None:
        """Switch to a new identity, discarding everything cached for the old one."""
        if identity == self.identity:
            return
        self.cancel()
        self.identity = identity
        self.cache.reset()
        self.heatmap = {}
        self.state = HeatmapState.IDLE
        logger.info("heatmap_identity_changed identity=%s", identity)

    def cancel(self) -> None:
        """Stop the in-flight gap fill after its current request."""
        if self._token is None:
            return
        self._token.cancel()
        self._token = None
        if self.state is HeatmapState.FETCHING:
            self.state = HeatmapState.IDLE

    async def fill_gaps(self, target: RangeLike, token: CancellationToken) -> list[DateRange]:
        """
        Fetch every range of ``target`` missing from the cache, in ascending order.

        Requests run one at a time. A gap is recorded only after its fetch
        succeeded and the token is still live; failed gaps are logged and left
        uncovered so the next call retries them.

        Returns:
            The gaps that were recorded
        """
        identity = self.identity
        if identity is None:
            return []

        recorded: list[DateRange] = []
        for gap in self.cache.missing_ranges(target):
            if token.cancelled:
                break
            try:
                values = await self.client.fetch_heatmap(identity, gap)
            except BackendError as exc:
                logger.warning(
                    "heatmap_gap_fetch_failed start=%s end=%s error=%s", gap.start, gap.end, exc
                )
                continue
            if token.cancelled:
                break
            self.cache.record_fetch_result(gap, values)
            recorded.append(gap)

        if token.cancelled:
            logger.info("heatmap_gap_fill_cancelled recorded=%d", len(recorded))
        return recorded

    async def load_month(self, month_cursor: date | str) -> ValueMap:
        """
        Make sure the grid for ``month_cursor`` plus the prefetch margin is
        cached, then return the dense heatmap for the visible grid.

        A newer call cancels an older one still in flight, even when the newer
        window is already cached; the cancelled call returns whatever heatmap
        was last rendered.
        """
        if self.identity is None:
            return {}

        grid = month_grid(month_cursor, first_weekday=self.settings.first_weekday)
        desired = prefetch_window(grid, self.settings.prefetch_months)

        self.cancel()
        if self.cache.is_covered(desired):
            self.heatmap = self.cache.project(grid)
            self.state = HeatmapState.SETTLED
            return self.heatmap

        token = CancellationToken()
        self._token = token
        self.state = HeatmapState.FETCHING
        try:
            await self.fill_gaps(desired, token)
        except Exception:
            if self._token is token:
                self.state = HeatmapState.IDLE
            raise
        finally:
            if self._token is token:
                self._token = None

        if token.cancelled:
            return self.heatmap

        self.heatmap = self.cache.project(grid)
        self.state = HeatmapState.SETTLED
        return self.heatmap
