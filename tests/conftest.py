"""Shared pytest fixtures for the provider directory test suite."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
import structlog

from provider_directory.config.settings import Settings
from provider_directory.interfaces.text_source import ITextSource
from provider_directory.models.provider import ProviderRecord
from provider_directory.providers.cache.memory_cache import MemoryCacheProvider
from provider_directory.providers.cache.session_cache import SQLiteSessionCache
from provider_directory.services.csv_parser import CsvParser
from provider_directory.services.provider_store import ProviderStore

SOURCE_URL = "https://raw.githubusercontent.com/example/directory/main/providers.csv"
TTL_MS = 300_000
START_TIME = 1_700_000_000.0

HEADER = "Company,Contact,email,number,Main Location,Category,Specialty,Service_Area,Testimonial"

SAMPLE_CSV = "\n".join(
    [
        HEADER,
        'Ace Plumbing,Dana Reyes,dana@aceplumbing.test,260-555-0101,Fort Wayne,Home Services,'
        '"Plumbing, drains and water heaters",Allen County,"Fixed our leak in an hour"',
        "Bright Electric,Sam Cole,sam@bright.test,260-555-0102,New Haven,Home Services,"
        "Electrical,Allen County,",
        'Plumb Line Legal,Ira Moss,ira@plumbline.test,260-555-0103,Fort Wayne,Legal,'
        'Contracts,Northeast Indiana,"Said ""Done"" and it was"',
        "Green Acres Lawn,,info@greenacres.test,260-555-0104,Huntertown,Landscaping,"
        "Mowing,Huntertown,",
    ]
)


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _silent_structlog() -> None:
    """Route structlog to a no-op logger without caching between tests."""
    structlog.configure(
        processors=[structlog.processors.KeyValueRenderer()],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.ReturnLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Settable clock returning seconds, shared by store and cache tiers."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def now_ms(self) -> int:
        return int(self.now * 1000)


class FakeTextSource(ITextSource):
    """Scripted text source: each fetch consumes the next response.

    A response is either CSV text or an exception instance to raise.  The
    last response repeats once the script runs out.
    """

    def __init__(self, *responses: str | Exception) -> None:
        self._responses = list(responses) or [SAMPLE_CSV]
        self.urls: list[str] = []
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.urls)

    async def fetch(self, url: str) -> str:
        self.urls.append(url)
        index = min(len(self.urls), len(self._responses)) - 1
        response = self._responses[index]
        if isinstance(response, Exception):
            raise response
        return response

    def get_provider_name(self) -> str:
        return "fake"

    async def aclose(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def providers() -> list[ProviderRecord]:
    return CsvParser().parse(SAMPLE_CSV)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemoryCacheProvider:
    return MemoryCacheProvider(ttl=TTL_MS / 1000, timer=clock)


@pytest.fixture
def session_cache(tmp_path: Path, clock: FakeClock) -> SQLiteSessionCache:
    cache = SQLiteSessionCache(
        db_path=tmp_path / "session.db",
        session_id="session-a",
        ttl_ms=TTL_MS,
        clock=clock,
    )
    cache.initialize()
    return cache


@pytest.fixture
def no_sleep() -> AsyncMock:
    return AsyncMock(return_value=None)


@pytest.fixture
def make_store(memory_cache, session_cache, clock, no_sleep):
    """Factory building a ProviderStore around a scripted source."""

    def _make(
        source: ITextSource,
        *,
        use_session: bool = True,
        fallback: list[ProviderRecord] | None = None,
        retry_attempts: int = 3,
    ) -> ProviderStore:
        return ProviderStore(
            source=source,
            parser=CsvParser(),
            memory_cache=memory_cache,
            session_cache=session_cache if use_session else None,
            source_url=SOURCE_URL,
            retry_attempts=retry_attempts,
            retry_delay_ms=1000,
            fallback_data=fallback,
            sleep=no_sleep,
            clock=clock,
        )

    return _make


def make_settings(tmp_path: Path, **overrides) -> Settings:
    """Build Settings isolated from any local .env file."""
    defaults = {
        "source_url": SOURCE_URL,
        "session_db_path": str(tmp_path / "session.db"),
        "session_id": "test-session",
        "retry_delay_ms": 0,
        "admin_token": "letmein",
        "app_env": "test",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)
