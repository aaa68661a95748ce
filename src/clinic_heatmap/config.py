"""Configuration for the clinic availability heatmap."""

from __future__ import annotations

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment."""

    api_base_url: str = "http://localhost:3000"
    api_token: SecretStr = SecretStr("")
    request_timeout_seconds: float = 30.0

    prefetch_months: int = Field(default=2, ge=0)
    # Python weekday numbering (Monday=0); 6 renders Sunday-first weeks.
    first_weekday: int = Field(default=6, ge=0, le=6)
    strict_dates: bool = False

    response_cache_enabled: bool = True
    response_cache_ttl_seconds: float = Field(default=20.0, gt=0)
    response_cache_max_size: int = Field(default=200, ge=1)

    model_config = SettingsConfigDict(env_prefix="CLINIC_HEATMAP_", env_file=".env")

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")
