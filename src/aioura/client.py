"""Async client for the Oura API."""

from __future__ import annotations

import asyncio
import email.utils
import logging
import math
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, Any

import aiohttp

from .cache import ResponseCache, cache_key
from .const import (
    ACTIVITY_KEY,
    DAILY_ACTIVITY_ENDPOINT,
    DAILY_READINESS_ENDPOINT,
    DEFAULT_HEADERS,
    HEALTH_SUMMARY_KEY,
    HEART_RATE_ENDPOINT,
    HRV_KEY,
    MAX_RETRY_AFTER,
    PERSONAL_INFO_ENDPOINT,
    PERSONAL_INFO_KEY,
    READINESS_KEY,
    RECOVERY_KEY,
    SLEEP_ENDPOINT,
    SLEEP_KEY,
    TEMPERATURE_KEY,
)
from .exceptions import (
    OuraAPIError,
    OuraAuthError,
    OuraConnectionError,
    OuraError,
    OuraServerRateLimitError,
)
from .models import (
    ClearCacheResult,
    ConnectionStatus,
    DateRange,
    OuraConfig,
    SleepRecovery,
    TemperatureDelta,
    UsageStats,
)
from .rate_limit import RateLimiter
from .storage import MemoryStore

if TYPE_CHECKING:
    from .storage import KeyValueStore

_LOGGER = logging.getLogger(__name__)

DateLike = date | str | None


def _parse_retry_after(value: str | None) -> float | None:
    """Retry-After header (delta seconds or HTTP-date) as seconds to wait."""
    if value is None:
        return None
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = email.utils.parsedate_to_datetime(value)
        except (TypeError, ValueError):
            _LOGGER.debug("Ignoring unparsable Retry-After header %r", value)
            return None
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - datetime.now(timezone.utc)).total_seconds()
    if not math.isfinite(seconds):
        _LOGGER.debug("Ignoring non-finite Retry-After header %r", value)
        return None
    return min(max(0.0, seconds), MAX_RETRY_AFTER)


def _exhausted(err: OuraError, attempts: int) -> OuraError:
    """Terminal error of the same kind as the last failed attempt."""
    message = f"Failed after {attempts} attempts: {err.message}"
    if isinstance(err, OuraServerRateLimitError):
        return OuraServerRateLimitError(message, err.status, attempts, err.retry_after)
    if isinstance(err, OuraAPIError):
        return type(err)(message, err.status, attempts)
    return OuraConnectionError(message, attempts)


def _records(payload: Any) -> list[dict[str, Any]]:
    """The `data` list of a collection payload."""
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return [item for item in payload["data"] if isinstance(item, dict)]
    return []


def _settled(result: Any, transform: Callable[[Any], Any] | None = None) -> Any:
    """Unwrap one gather(return_exceptions=True) result.

    API failures become an inline error object; anything else that was raised
    is re-raised.
    """
    if isinstance(result, OuraError):
        return {"error": result.message}
    if isinstance(result, BaseException):
        raise result
    return transform(result) if transform else result


class OuraClient:
    """Async Oura API client with rate limiting, retries and caching."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        config: OuraConfig | None = None,
        store: KeyValueStore | None = None,
        *,
        rate_limiter: RateLimiter | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize client.

        Args:
            session: aiohttp ClientSession
            config: Client configuration (default: read from environment)
            store: Persistent store for cached responses (default: in memory)
            rate_limiter: Shared limiter (default: one per client from config)
            sleep: Coroutine used for backoff delays
        """
        self._session = session
        self._config = config if config is not None else OuraConfig.from_env()
        self._rate_limiter = rate_limiter or RateLimiter(self._config.rate_limit)
        self._cache = ResponseCache(
            store if store is not None else MemoryStore(),
            self._config.cache_duration,
        )
        self._sleep = sleep

        if not self._config.api_token:
            _LOGGER.error(
                "Oura API token not found. Set OURA_API_TOKEN or pass api_token"
            )

    @property
    def config(self) -> OuraConfig:
        return self._config

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    def _backoff(self, attempt: int) -> float:
        """Linear backoff delay in seconds for a 1-based attempt number."""
        return self._config.retry_delay * attempt / 1000

    async def _request(
        self, endpoint: str, params: dict[str, str] | None = None
    ) -> Any:
        """Make an authenticated GET request with retry/backoff.

        The local rate limit is checked once per call, not per attempt.
        A 429 response uses up an attempt; its Retry-After header
        replaces the normal backoff delay when present.
        """
        token = self._config.api_token
        if not token:
            raise OuraAuthError("Oura API token not configured")

        self._rate_limiter.check_and_reserve()

        url = f"{self._config.base_url}/{endpoint}"
        headers = {**DEFAULT_HEADERS, "Authorization": f"Bearer {token}"}
        max_retries = self._config.max_retries

        attempt = 1
        while True:
            try:
                return await self._attempt(url, params, headers)
            except OuraServerRateLimitError as err:
                if attempt >= max_retries:
                    raise _exhausted(err, max_retries) from err
                delay = (
                    err.retry_after
                    if err.retry_after is not None
                    else self._backoff(attempt)
                )
                _LOGGER.warning(
                    "Rate limited (429) on %s, retrying in %.1fs (attempt %d/%d)",
                    endpoint,
                    delay,
                    attempt,
                    max_retries,
                )
            except (OuraAPIError, OuraConnectionError) as err:
                _LOGGER.warning(
                    "Oura API request attempt %d/%d to %s failed: %s",
                    attempt,
                    max_retries,
                    endpoint,
                    err,
                )
                if attempt >= max_retries:
                    raise _exhausted(err, max_retries) from err
                delay = self._backoff(attempt)

            await self._sleep(delay)
            attempt += 1

    async def _attempt(
        self, url: str, params: dict[str, str] | None, headers: dict[str, str]
    ) -> Any:
        """Single request attempt, classifying every failure."""
        try:
            async with self._session.get(
                url, params=params, headers=headers
            ) as response:
                if response.status == 429:
                    raise OuraServerRateLimitError(
                        "HTTP 429: rate limited by server",
                        retry_after=_parse_retry_after(
                            response.headers.get("Retry-After")
                        ),
                    )

                if not 200 <= response.status < 300:
                    text = await response.text(errors="replace")
                    error_cls = (
                        OuraAuthError if response.status in (401, 403) else OuraAPIError
                    )
                    raise error_cls(f"HTTP {response.status}: {text}", response.status)

                try:
                    result = await response.json(content_type=None)
                except ValueError as err:
                    raise OuraAPIError(
                        f"Invalid JSON from {url}: {err}", response.status
                    ) from err

                _LOGGER.debug("API response from %s: %s", url, str(result)[:500])
                return result

        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise OuraConnectionError(f"Request to {url} failed: {err}") from err

    async def _cached_fetch(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Any]],
        use_cache: bool,
    ) -> Any:
        """Return cached data for key, or fetch and cache it."""
        if use_cache:
            cached = await self._cache.get(key)
            if cached is not None:
                return cached

        data = await fetch()

        if use_cache:
            await self._cache.set(key, data)
        return data

    @staticmethod
    def _resolve_range(start_date: DateLike, end_date: DateLike) -> DateRange:
        """Explicit range when both ends are given, else the last 7 days."""
        if start_date and end_date:
            return DateRange(start_date=start_date, end_date=end_date)
        return DateRange.last_days()

    async def _get_collection(
        self,
        endpoint: str,
        key_name: str,
        start_date: DateLike,
        end_date: DateLike,
        use_cache: bool,
    ) -> dict[str, Any]:
        date_range = self._resolve_range(start_date, end_date)
        return await self._cached_fetch(
            cache_key(key_name, date_range),
            lambda: self._request(endpoint, date_range.as_params()),
            use_cache,
        )

    # ========== Endpoints ==========

    async def get_daily_activity(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Get daily activity (steps, calories, distance, active minutes)."""
        return await self._get_collection(
            DAILY_ACTIVITY_ENDPOINT, ACTIVITY_KEY, start_date, end_date, use_cache
        )

    async def get_sleep_data(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Get sleep periods (stages, efficiency, heart rate, temperature)."""
        return await self._get_collection(
            SLEEP_ENDPOINT, SLEEP_KEY, start_date, end_date, use_cache
        )

    async def get_readiness_data(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Get daily readiness scores."""
        return await self._get_collection(
            DAILY_READINESS_ENDPOINT, READINESS_KEY, start_date, end_date, use_cache
        )

    async def get_heart_rate_variability(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Get heart rate samples used for HRV views."""
        return await self._get_collection(
            HEART_RATE_ENDPOINT, HRV_KEY, start_date, end_date, use_cache
        )

    async def get_personal_info(self, use_cache: bool = True) -> dict[str, Any]:
        """Get the user's personal information."""
        return await self._cached_fetch(
            PERSONAL_INFO_KEY,
            lambda: self._request(PERSONAL_INFO_ENDPOINT),
            use_cache,
        )

    # ========== Derived ==========

    async def get_temperature_data(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Get body and skin temperature deltas taken from sleep data.

        Days without either reading are left out.
        """
        date_range = self._resolve_range(start_date, end_date)

        async def fetch() -> dict[str, Any]:
            sleep = await self.get_sleep_data(
                date_range.start_date, date_range.end_date, use_cache
            )
            days = [TemperatureDelta.model_validate(day) for day in _records(sleep)]
            return {"data": [day.model_dump() for day in days if day.has_reading]}

        return await self._cached_fetch(
            cache_key(TEMPERATURE_KEY, date_range), fetch, use_cache
        )

    async def get_recovery_data(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Get readiness plus per-night recovery fields from sleep data.

        Readiness and sleep are fetched concurrently. If one of them fails its
        field holds {"error": message} instead of data.
        """
        date_range = self._resolve_range(start_date, end_date)

        async def fetch() -> dict[str, Any]:
            readiness, sleep = await asyncio.gather(
                self.get_readiness_data(
                    date_range.start_date, date_range.end_date, use_cache
                ),
                self.get_sleep_data(
                    date_range.start_date, date_range.end_date, use_cache
                ),
                return_exceptions=True,
            )
            return {
                "readiness": _settled(readiness, _records),
                "sleep_recovery": _settled(
                    sleep,
                    lambda payload: [
                        SleepRecovery.model_validate(day).model_dump()
                        for day in _records(payload)
                    ],
                ),
            }

        return await self._cached_fetch(
            cache_key(RECOVERY_KEY, date_range), fetch, use_cache
        )

    async def get_health_summary(
        self,
        start_date: DateLike = None,
        end_date: DateLike = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """Get activity, sleep, readiness, HRV and temperature in one call.

        A failing part is reported inline as {"error": message}; the summary
        itself only fails on programming errors.
        """
        date_range = self._resolve_range(start_date, end_date)
        start, end = date_range.start_date, date_range.end_date

        async def fetch() -> dict[str, Any]:
            parts = {
                "activity": self.get_daily_activity(start, end, use_cache),
                "sleep": self.get_sleep_data(start, end, use_cache),
                "readiness": self.get_readiness_data(start, end, use_cache),
                "hrv": self.get_heart_rate_variability(start, end, use_cache),
                "temperature": self.get_temperature_data(start, end, use_cache),
            }
            results = await asyncio.gather(*parts.values(), return_exceptions=True)

            summary: dict[str, Any] = {"date_range": date_range.as_params()}
            for name, result in zip(parts, results):
                if isinstance(result, OuraError):
                    _LOGGER.debug("Health summary part %s failed: %s", name, result)
                summary[name] = _settled(result)
            summary["last_updated"] = datetime.now(timezone.utc).isoformat()
            return summary

        return await self._cached_fetch(
            cache_key(HEALTH_SUMMARY_KEY, date_range), fetch, use_cache
        )

    # ========== Maintenance ==========

    async def clear_cache(self) -> ClearCacheResult:
        """Remove every cached response of this client."""
        return await self._cache.clear_all()

    async def validate_connection(self) -> ConnectionStatus:
        """Check token and connectivity with an uncached personal info call."""
        try:
            await self.get_personal_info(use_cache=False)
        except OuraError as err:
            return ConnectionStatus(valid=False, message=err.message)
        return ConnectionStatus(valid=True, message="API connection successful")

    def get_usage_stats(self) -> UsageStats:
        """Current local rate limit usage."""
        return self._rate_limiter.stats()
