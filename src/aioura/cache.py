"""Best-effort response cache for aioura."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from .const import CACHE_PREFIX
from .exceptions import OuraCacheError
from .models import CacheEntry, ClearCacheResult, DateRange
from .storage import KeyValueStore

_LOGGER = logging.getLogger(__name__)


def cache_key(name: str, date_range: DateRange | None = None) -> str:
    """Cache key for an endpoint, optionally scoped to a date range."""
    if date_range is None:
        return name
    params = date_range.as_params()
    return f"{name}_{params['start_date']}_{params['end_date']}"


def _now_ms() -> int:
    return int(time.time() * 1000)


class ResponseCache:
    """Namespaced, expiring cache of decoded API responses.

    Store failures never reach the caller: reads degrade to misses, writes
    to no-ops.
    """

    def __init__(
        self,
        store: KeyValueStore,
        duration_minutes: int,
        prefix: str = CACHE_PREFIX,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        """Initialize cache.

        Args:
            store: Backing key-value store
            duration_minutes: Age after which an entry is ignored
            prefix: Namespace prepended to every key
            clock: Wall clock in epoch milliseconds
        """
        self._store = store
        self._max_age_ms = duration_minutes * 60 * 1000
        self._prefix = prefix
        self._clock = clock

    async def get(self, key: str) -> Any | None:
        """Return the cached payload, or None when absent or stale."""
        try:
            raw = await self._store.get(self._prefix + key)
        except OuraCacheError as err:
            _LOGGER.warning("Cache read error for %s: %s", key, err)
            return None
        if raw is None:
            return None

        try:
            entry = CacheEntry.model_validate_json(raw)
        except ValidationError as err:
            _LOGGER.warning("Discarding unreadable cache entry %s: %s", key, err)
            return None

        age = self._clock() - entry.timestamp
        if age > self._max_age_ms:
            _LOGGER.debug("Cache entry %s expired (%d ms old)", key, age)
            return None
        _LOGGER.debug("Cache hit for %s", key)
        return entry.data

    async def set(self, key: str, payload: Any) -> None:
        """Store payload under key, replacing any previous entry."""
        try:
            raw = json.dumps({"data": payload, "timestamp": self._clock()})
        except (TypeError, ValueError) as err:
            _LOGGER.warning("Cache write error for %s: %s", key, err)
            return
        try:
            await self._store.set(self._prefix + key, raw)
        except OuraCacheError as err:
            _LOGGER.warning("Cache write error for %s: %s", key, err)

    async def clear_all(self) -> ClearCacheResult:
        """Delete every entry under this cache's prefix."""
        try:
            keys = [k for k in await self._store.keys() if k.startswith(self._prefix)]
            await self._store.delete_many(keys)
        except OuraCacheError as err:
            _LOGGER.error("Error clearing cache: %s", err)
            return ClearCacheResult(success=False, message=str(err))
        _LOGGER.info("Cleared %d cached entries", len(keys))
        return ClearCacheResult(success=True, cleared=len(keys))
