"""Identity and wire models for the heatmap availability endpoint."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class HeatmapIdentity:
    """Selection that scopes one logical heatmap cache."""

    service_id: str
    location_id: str
    staff_id: str | None = None

    def query_params(self) -> dict[str, str]:
        params = {"serviceId": self.service_id, "locationId": self.location_id}
        if self.staff_id:
            params["staffId"] = self.staff_id
        return params


class HeatmapDay(BaseModel):
    """One ``{date, availableSlots}`` entry of a heatmap response."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str | None = None
    available_slots: int = Field(default=0, alias="availableSlots")

    @field_validator("date", mode="before")
    @classmethod
    def blank_date_to_none(cls, v: Any) -> str | None:
        if not isinstance(v, str) or not v:
            return None
        return v

    @field_validator("available_slots", mode="before")
    @classmethod
    def non_numeric_to_zero(cls, v: Any) -> int:
        # bool is an int subclass but never a slot count
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            return 0
        return int(v)


class HeatmapResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    days: list[HeatmapDay] = Field(default_factory=list)

    @field_validator("days", mode="before")
    @classmethod
    def drop_malformed_entries(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [entry for entry in v if isinstance(entry, dict)]

    def value_map(self) -> dict[str, int]:
        return {day.date: day.available_slots for day in self.days if day.date}
