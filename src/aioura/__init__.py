"""Async client for the Oura Ring API."""

from .cache import ResponseCache, cache_key
from .client import OuraClient
from .exceptions import (
    OuraAPIError,
    OuraAuthError,
    OuraCacheError,
    OuraConnectionError,
    OuraError,
    OuraRateLimitError,
    OuraServerRateLimitError,
)
from .models import (
    ClearCacheResult,
    ConnectionStatus,
    DateRange,
    OuraConfig,
    UsageStats,
)
from .rate_limit import RateLimiter
from .storage import JsonFileStore, KeyValueStore, MemoryStore

__version__ = "0.1.0"

__all__ = [
    "ClearCacheResult",
    "ConnectionStatus",
    "DateRange",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "OuraAPIError",
    "OuraAuthError",
    "OuraCacheError",
    "OuraClient",
    "OuraConfig",
    "OuraConnectionError",
    "OuraError",
    "OuraRateLimitError",
    "OuraServerRateLimitError",
    "RateLimiter",
    "ResponseCache",
    "UsageStats",
    "cache_key",
]
