"""Exceptions for aioura."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


class OuraError(Exception):
    """Base exception for aioura."""

    kind = "API_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Structured form handed to UI callers."""
        return {
            "type": self.kind,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }


class OuraRateLimitError(OuraError):
    """Local request budget exhausted before any network call."""

    kind = "RATE_LIMITED"

    def __init__(self, message: str, wait_seconds: int) -> None:
        super().__init__(message)
        self.wait_seconds = wait_seconds


class OuraAPIError(OuraError):
    """API returned a non-success status or an unreadable body."""

    def __init__(
        self, message: str, status: int | None = None, attempts: int = 1
    ) -> None:
        super().__init__(message)
        self.status = status
        self.attempts = attempts


class OuraAuthError(OuraAPIError):
    """Token missing or rejected (401/403)."""

    kind = "AUTH_ERROR"


class OuraServerRateLimitError(OuraAPIError):
    """Server kept answering 429 until attempts ran out."""

    kind = "SERVER_RATE_LIMITED"

    def __init__(
        self,
        message: str,
        status: int | None = 429,
        attempts: int = 1,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status, attempts)
        self.retry_after = retry_after


class OuraConnectionError(OuraError):
    """Transport level failure (connection refused, DNS, timeout)."""

    kind = "NETWORK_ERROR"

    def __init__(self, message: str, attempts: int = 1) -> None:
        super().__init__(message)
        self.attempts = attempts


class OuraCacheError(OuraError):
    """Persistent store read, write or delete failed."""

    kind = "CACHE_ERROR"
