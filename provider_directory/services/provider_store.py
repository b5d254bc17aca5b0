"""Provider store: one "current provider list" operation over fetch, parse and cache.

# ─── HOW A LIST IS RESOLVED ────────────────────────────────────────────
#
#   get_providers(force_refresh=False)
#     │
#     ├─ memory tier fresh and not forced? ──→ return it (no network)
#     │
#     ├─ attempt 1..N: fetch → parse → non-empty?
#     │     success ──→ write memory + session tiers, return
#     │     failure ──→ sleep(retry_delay * attempt), try again
#     │
#     └─ all attempts failed:
#           session tier (within TTL)
#           → last memory entry (even if stale)
#           → static fallback list
#           → []
#
# Failures never reach the caller.  ``last_source`` says which branch
# produced the most recent list.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime, timezone

import structlog

from provider_directory.interfaces.cache_provider import ICacheProvider
from provider_directory.interfaces.text_source import ITextSource
from provider_directory.models.provider import CacheEntry, DataSource, ProviderRecord
from provider_directory.providers.cache.memory_cache import MemoryCacheProvider
from provider_directory.services.csv_parser import CsvParser
from provider_directory.utils.errors import (
    CacheError,
    EmptyResultError,
    FormatError,
    NetworkError,
)
from provider_directory.utils.logging import get_logger


class ProviderStore:
    """Resolves the current provider list through the fallback chain.

    Parameters
    ----------
    source:
        Remote text source; one request per attempt.
    parser:
        Parser turning fetched text into records.
    memory_cache:
        Process-lifetime tier; also serves the stale last resort.
    session_cache:
        Persisted session tier, or ``None`` to run memory-only.
    source_url:
        URL of the directory CSV; also the cache key.
    retry_attempts:
        Fetch-parse cycles before falling back (at least 1).
    retry_delay_ms:
        Base of the linear backoff: attempt ``n`` waits ``n * delay``.
    fallback_data:
        Static list served when every other source is unavailable.
    sleep:
        Awaitable sleep in seconds; replaced in tests.
    clock:
        Returns the current time in seconds; stamps cache entries.
    """

    def __init__(
        self,
        source: ITextSource,
        parser: CsvParser,
        memory_cache: MemoryCacheProvider,
        source_url: str,
        session_cache: ICacheProvider | None = None,
        retry_attempts: int = 3,
        retry_delay_ms: int = 1000,
        fallback_data: Sequence[ProviderRecord] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._parser = parser
        self._memory = memory_cache
        self._session = session_cache
        self._url = source_url
        self._retry_attempts = max(1, retry_attempts)
        self._retry_delay_s = retry_delay_ms / 1000.0
        self._fallback = list(fallback_data or [])
        self._sleep = sleep
        self._clock = clock

        self._inflight: asyncio.Task[list[ProviderRecord]] | None = None
        self._last_source: DataSource | None = None
        self._last_updated_ms: int | None = None
        self._logger: structlog.BoundLogger = get_logger(__name__).bind(source_url=source_url)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def last_source(self) -> DataSource | None:
        """Provenance of the most recently returned list (``None`` before any call)."""
        return self._last_source

    @property
    def last_updated(self) -> datetime | None:
        """When the list last came from the network, in UTC."""
        if self._last_updated_ms is None:
            return None
        return datetime.fromtimestamp(self._last_updated_ms / 1000, tz=timezone.utc)

    async def get_providers(self, force_refresh: bool = False) -> list[ProviderRecord]:
        """Return the current provider list; never raises for fetch failures.

        Concurrent callers that need the network share a single in-flight
        fetch sequence, and cancelling one caller does not cancel it.
        """
        if not force_refresh:
            entry = await self._memory.get(self._url)
            if entry is not None:
                self._last_source = DataSource.MEMORY_CACHE
                return list(entry.data)

        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(self._fetch_with_fallback())
        else:
            self._logger.debug("providers_fetch_joined")
        return list(await asyncio.shield(self._inflight))

    async def refresh(self) -> list[ProviderRecord]:
        """Bypass the fresh-cache check and go to the network."""
        return await self.get_providers(force_refresh=True)

    # ------------------------------------------------------------------
    # Fetch / retry
    # ------------------------------------------------------------------

    async def _fetch_with_fallback(self) -> list[ProviderRecord]:
        for attempt in range(1, self._retry_attempts + 1):
            try:
                providers = await self._fetch_once()
            except (NetworkError, FormatError, EmptyResultError) as exc:
                self._logger.warning(
                    "providers_fetch_attempt_failed",
                    attempt=attempt,
                    max_attempts=self._retry_attempts,
                    error=str(exc),
                )
            except Exception as exc:
                self._logger.error(
                    "providers_fetch_attempt_failed",
                    attempt=attempt,
                    max_attempts=self._retry_attempts,
                    error=str(exc),
                    error_type=type(exc).__name__,
                    exc_info=True,
                )
            else:
                await self._store(providers)
                self._last_source = DataSource.NETWORK
                self._logger.info("providers_fetched", count=len(providers), attempt=attempt)
                return providers

            if attempt < self._retry_attempts:
                await self._sleep(self._retry_delay_s * attempt)

        self._logger.error("providers_fetch_exhausted", attempts=self._retry_attempts)
        return await self._recover()

    async def _fetch_once(self) -> list[ProviderRecord]:
        text = await self._source.fetch(self._url)
        providers = self._parser.parse(text)
        if not providers:
            raise EmptyResultError(source_name="csv")
        return providers

    async def _store(self, providers: list[ProviderRecord]) -> None:
        now_ms = int(self._clock() * 1000)
        entry = CacheEntry(data=providers, timestamp=now_ms)
        await self._memory.set(self._url, entry)
        self._last_updated_ms = now_ms

        if self._session is None:
            return
        try:
            await self._session.set(self._url, entry)
        except CacheError as exc:
            self._logger.warning("session_cache_write_failed", error=str(exc))

    # ------------------------------------------------------------------
    # Recovery chain
    # ------------------------------------------------------------------

    async def _recover(self) -> list[ProviderRecord]:
        if self._session is not None:
            try:
                entry = await self._session.get(self._url)
            except CacheError as exc:
                self._logger.warning("session_cache_read_failed", error=str(exc))
                entry = None
            if entry is not None:
                return self._recovered(DataSource.SESSION_CACHE, entry.data)

        stale = await self._memory.get_stale(self._url)
        if stale is not None:
            return self._recovered(DataSource.STALE_MEMORY_CACHE, stale.data)

        if self._fallback:
            return self._recovered(DataSource.FALLBACK, self._fallback)

        return self._recovered(DataSource.EMPTY, [])

    def _recovered(
        self, source: DataSource, providers: Sequence[ProviderRecord]
    ) -> list[ProviderRecord]:
        self._last_source = source
        self._logger.warning("providers_recovered", source=source.value, count=len(providers))
        return list(providers)
