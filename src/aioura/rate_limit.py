"""Rolling-window request budget for aioura."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable

from .const import RATE_LIMIT_WINDOW
from .exceptions import OuraRateLimitError
from .models import UsageStats

_LOGGER = logging.getLogger(__name__)


class RateLimiter:
    """Admit at most `limit` requests per window.

    The window starts when the limiter is created and is reset lazily on the
    first check after it has elapsed. Check and increment happen without a
    suspension point, so callers sharing one event loop never interleave
    mid-update.
    """

    def __init__(
        self,
        limit: int,
        window: float = RATE_LIMIT_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize limiter.

        Args:
            limit: Maximum requests per window
            window: Window length in seconds
            clock: Monotonic time source in seconds
        """
        self._limit = limit
        self._window = window
        self._clock = clock
        self._request_count = 0
        self._window_start = clock()

    @property
    def request_count(self) -> int:
        return self._request_count

    def check_and_reserve(self) -> None:
        """Reserve one request slot or raise OuraRateLimitError."""
        now = self._clock()
        elapsed = now - self._window_start
        if elapsed > self._window:
            self._request_count = 0
            self._window_start = now
            elapsed = 0.0

        if self._request_count >= self._limit:
            wait_seconds = math.ceil(self._window - elapsed)
            _LOGGER.debug(
                "Local rate limit reached (%d/%d), %ds left in window",
                self._request_count,
                self._limit,
                wait_seconds,
            )
            raise OuraRateLimitError(
                f"Rate limit exceeded. Please wait {wait_seconds} seconds.",
                wait_seconds,
            )

        self._request_count += 1

    def stats(self) -> UsageStats:
        """Current window usage, without resetting an expired window."""
        elapsed_ms = (self._clock() - self._window_start) * 1000
        return UsageStats(
            requests_in_current_window=self._request_count,
            rate_limit=self._limit,
            requests_remaining=max(0, self._limit - self._request_count),
            window_remaining_ms=max(0, int(self._window * 1000 - elapsed_ms)),
        )
