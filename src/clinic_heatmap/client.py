"""HTTP client for the clinic availability heatmap endpoint."""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

import httpx

from .config import Settings
from .models import HeatmapIdentity, HeatmapResponse
from .ranges import DateRange
from .response_cache import ResponseCache, make_heatmap_cache_key

HEATMAP_PATH = "/api/availability/heatmap"


class BackendError(Exception):
    """Base error for backend request failures."""


class BackendNotFoundError(BackendError):
    """Raised when the service or location is unknown to the backend."""


class BackendConnectionError(BackendError):
    """Raised when backend connection fails or times out."""


class BackendRequestError(BackendError):
    """Raised for rejected or failed backend requests."""


class BackendResponseError(BackendError):
    """Raised when the backend returns a body that is not a heatmap payload."""


logger = logging.getLogger(__name__)


class HeatmapClient:
    """Fetches per-day available slot counts for a date range."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
        response_cache: ResponseCache[dict[str, int]] | None = None,
    ) -> None:
        self.settings = settings
        if response_cache is None and settings.response_cache_enabled:
            response_cache = ResponseCache(
                settings.response_cache_ttl_seconds, settings.response_cache_max_size
            )
        self.response_cache = response_cache
        self.http = http or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=10.0),
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "HeatmapClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"X-Request-Id": str(uuid4())}
        token = self.settings.api_token.get_secret_value().strip()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def fetch_heatmap(
        self, identity: HeatmapIdentity, interval: DateRange
    ) -> dict[str, int]:
        """
        Return ``{date: availableSlots}`` for the days the backend reported.

        Days without data are simply absent; the caller decides their default.
        """
        cache_key = make_heatmap_cache_key(identity, interval.start, interval.end)
        if self.response_cache is not None:
            cached = self.response_cache.get(cache_key)
            if cached is not None:
                logger.debug("heatmap_response_cache_hit start=%s end=%s", *interval)
                return dict(cached)

        params = {**identity.query_params(), "start": interval.start, "end": interval.end}
        try:
            response = await self.http.get(HEATMAP_PATH, params=params, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise BackendConnectionError(
                f"backend_timeout: Request to {HEATMAP_PATH} timed out"
            ) from exc
        except httpx.HTTPError as exc:
            raise BackendConnectionError(f"backend_connection_failed: {exc}") from exc

        if response.status_code == 404:
            raise BackendNotFoundError("backend_not_found")
        if response.status_code >= 400:
            raise BackendRequestError(f"backend_error_{response.status_code}")

        # pydantic.ValidationError and JSON decode errors are both ValueErrors
        try:
            payload = HeatmapResponse.model_validate(response.json())
        except ValueError as exc:
            raise BackendResponseError("backend_invalid_heatmap_payload") from exc

        values = payload.value_map()
        if self.response_cache is not None:
            self.response_cache.set(cache_key, dict(values))
        logger.debug(
            "heatmap_fetched start=%s end=%s days=%d", interval.start, interval.end, len(values)
        )
        return values
