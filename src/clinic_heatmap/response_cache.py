"""Short-lived in-memory cache for availability responses."""

from __future__ import annotations

from collections import OrderedDict
import json
import logging
import time
from typing import Callable, Generic, TypeVar

from .models import HeatmapIdentity

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 20.0
DEFAULT_MAX_SIZE = 200


class ResponseCache(Generic[T]):
    """
    TTL cache with least-recently-used eviction.

    Reads refresh an entry's recency but not its expiry.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, tuple[T, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at < self._clock():
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: T) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_size:
            oldest, _ = self._entries.popitem(last=False)
            logger.debug("response_cache_evicted key=%s", oldest)
        self._entries[key] = (value, self._clock() + self.ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()


def make_heatmap_cache_key(identity: HeatmapIdentity, start: str, end: str) -> str:
    return json.dumps(
        {
            "serviceId": identity.service_id,
            "locationId": identity.location_id,
            "start": start,
            "end": end,
            "staffId": identity.staff_id,
        },
        sort_keys=True,
    )
