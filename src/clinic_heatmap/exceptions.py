"""
Domain-specific exceptions for the availability heatmap.

These exceptions carry a stable code and optional details so callers can
log or surface them without parsing messages.
"""

from __future__ import annotations

from typing import Any


class HeatmapError(Exception):
    """Base exception for all heatmap errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "code": self.code, "details": self.details}


class InvalidDateError(HeatmapError, ValueError):
    """Raised when a day is not a valid YYYY-MM-DD calendar date."""

    def __init__(self, value: Any) -> None:
        super().__init__(
            f"Invalid ISO date: {value!r}",
            code="invalid_date",
            details={"value": value if isinstance(value, str) else repr(value)},
        )


class InvalidRangeError(HeatmapError, ValueError):
    """Raised when a date range ends before it starts."""

    def __init__(self, start: str, end: str) -> None:
        super().__init__(
            f"Range end {end} is before start {start}",
            code="invalid_range",
            details={"start": start, "end": end},
        )
