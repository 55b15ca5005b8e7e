"""Pydantic models for aioura configuration, cache entries and results."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from datetime import date, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .const import (
    DEFAULT_CACHE_DURATION,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RANGE_DAYS,
    DEFAULT_RATE_LIMIT,
    DEFAULT_RETRY_DELAY,
    ENV_API_TOKEN,
    ENV_BASE_URL,
    ENV_CACHE_DURATION,
    ENV_MAX_RETRIES,
    ENV_RATE_LIMIT,
    ENV_RETRY_DELAY,
    OURA_API_BASE_URL,
)

_LOGGER = logging.getLogger(__name__)


class OuraModel(BaseModel):
    """Base model that ignores unknown fields."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to default."""
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        _LOGGER.warning("Ignoring %s=%r, using default %d", name, raw, default)
        return default
    return value if value > 0 else default


class OuraConfig(BaseModel):
    """Client configuration, fixed for the lifetime of a client."""

    model_config = ConfigDict(frozen=True)

    base_url: str = OURA_API_BASE_URL
    api_token: str | None = None
    rate_limit: int = Field(default=DEFAULT_RATE_LIMIT, gt=0)
    cache_duration: int = Field(default=DEFAULT_CACHE_DURATION, ge=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, gt=0)
    retry_delay: int = Field(default=DEFAULT_RETRY_DELAY, ge=0)

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OuraConfig:
        """Build configuration from OURA_* environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)
        """
        if environ is None:
            environ = os.environ
        return cls(
            base_url=environ.get(ENV_BASE_URL) or OURA_API_BASE_URL,
            api_token=environ.get(ENV_API_TOKEN) or None,
            rate_limit=_env_int(environ, ENV_RATE_LIMIT, DEFAULT_RATE_LIMIT),
            cache_duration=_env_int(
                environ, ENV_CACHE_DURATION, DEFAULT_CACHE_DURATION
            ),
            max_retries=_env_int(environ, ENV_MAX_RETRIES, DEFAULT_MAX_RETRIES),
            retry_delay=_env_int(environ, ENV_RETRY_DELAY, DEFAULT_RETRY_DELAY),
        )


class DateRange(BaseModel):
    """Inclusive calendar date range used for queries and cache keys."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_order(self) -> DateRange:
        if self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} is after end_date {self.end_date}"
            )
        return self

    @classmethod
    def last_days(
        cls, days: int = DEFAULT_RANGE_DAYS, today: date | None = None
    ) -> DateRange:
        """Range ending today and starting `days` days earlier."""
        if today is None:
            today = date.today()
        return cls(start_date=today - timedelta(days=days), end_date=today)

    def as_params(self) -> dict[str, str]:
        """Query parameters for the API."""
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
        }


class CacheEntry(BaseModel):
    """Persisted cache record."""

    data: Any
    timestamp: int  # epoch milliseconds


class SleepRecovery(OuraModel):
    """Recovery related fields of one sleep period."""

    day: str | None = None
    recovery_index: int | float | None = None
    resting_heart_rate: int | float | None = None
    hrv: Any = None


class TemperatureDelta(OuraModel):
    """Temperature deviation fields of one sleep period."""

    day: str | None = None
    body_temperature_delta: int | float | None = None
    skin_temperature_delta: int | float | None = None

    @property
    def has_reading(self) -> bool:
        return (
            self.body_temperature_delta is not None
            or self.skin_temperature_delta is not None
        )


class UsageStats(BaseModel):
    """Snapshot of the local rate limit window."""

    requests_in_current_window: int
    rate_limit: int
    requests_remaining: int
    window_remaining_ms: int


class ConnectionStatus(BaseModel):
    """Result of a connection check."""

    valid: bool
    message: str


class ClearCacheResult(BaseModel):
    """Result of clearing the response cache."""

    success: bool
    cleared: int = 0
    message: str | None = None
