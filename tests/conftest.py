"""Test fixtures for aioura."""

from __future__ import annotations

import pytest
import aiohttp
from aioresponses import aioresponses
from yarl import URL

from aioura import MemoryStore, OuraClient, OuraConfig

BASE_URL = "https://api.example.test/v2/usercollection"
TOKEN = "test-token"


def api_url(endpoint: str, start: str | None = None, end: str | None = None) -> URL:
    """Absolute request URL for an endpoint and optional date range."""
    url = URL(f"{BASE_URL}/{endpoint}")
    if start is not None:
        url = url.with_query({"start_date": start, "end_date": end})
    return url


def request_count(mock: aioresponses) -> int:
    """Total number of requests seen by an aioresponses mock."""
    return sum(len(calls) for calls in mock.requests.values())


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Sleep replacement that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def mock_aioresponse():
    """Mock aiohttp responses."""
    with aioresponses() as m:
        yield m


@pytest.fixture
async def session():
    """Create aiohttp ClientSession."""
    async with aiohttp.ClientSession() as session:
        yield session


@pytest.fixture
def config() -> OuraConfig:
    return OuraConfig(
        base_url=BASE_URL,
        api_token=TOKEN,
        rate_limit=10,
        cache_duration=30,
        max_retries=3,
        retry_delay=1000,
    )


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
async def client(session, config, store, sleep) -> OuraClient:
    return OuraClient(session, config, store, sleep=sleep)


def calls_to(mock: aioresponses, endpoint: str) -> list:
    """Recorded request calls whose path ends with endpoint."""
    return [
        call
        for (method, url), calls in mock.requests.items()
        if url.path.endswith(f"/{endpoint}")
        for call in calls
    ]
