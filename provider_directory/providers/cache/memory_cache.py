"""In-memory cache tier using cachetools.TTLCache.

Fresh lookups go through a ``TTLCache`` so expiry is handled by cachetools.
The last entry written under each key is also kept outside the TTL cache:
when every fetch attempt fails the provider store may serve that stale
entry rather than nothing, and a failed fetch must never evict it.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from cachetools import TTLCache

from provider_directory.interfaces.cache_provider import ICacheProvider
from provider_directory.models.provider import CacheEntry
from provider_directory.utils.logging import get_logger


class MemoryCacheProvider(ICacheProvider):
    """Process-lifetime cache tier backed by ``cachetools.TTLCache``.

    Parameters
    ----------
    ttl:
        Time-to-live in seconds shared by every entry.
    max_size:
        Maximum number of keys held.  The store uses a single key per
        source URL, so the default is generous.
    timer:
        Clock returning seconds; must match the clock used to stamp
        entries.  Defaults to ``time.time``.
    """

    def __init__(
        self,
        ttl: float,
        max_size: int = 16,
        timer: Callable[[], float] = time.time,
    ) -> None:
        self._fresh: TTLCache[str, CacheEntry] = TTLCache(maxsize=max_size, ttl=ttl, timer=timer)
        self._last_known: dict[str, CacheEntry] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry for *key* while it is within TTL."""
        entry = self._fresh.get(key)
        if entry is not None:
            self._logger.debug("cache_hit", tier="memory", key=key)
        else:
            self._logger.debug("cache_miss", tier="memory", key=key)
        return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        self._fresh[key] = entry
        self._last_known[key] = entry
        self._logger.debug("cache_set", tier="memory", key=key, records=len(entry.data))

    async def delete(self, key: str) -> None:
        """Remove *key* from both the fresh and last-known views."""
        self._fresh.pop(key, None)
        self._last_known.pop(key, None)
        self._logger.debug("cache_delete", tier="memory", key=key)

    async def exists(self, key: str) -> bool:
        return key in self._fresh

    def get_provider_name(self) -> str:
        return "memory"

    # ------------------------------------------------------------------
    # Stale access
    # ------------------------------------------------------------------

    async def get_stale(self, key: str) -> CacheEntry | None:
        """Return the last entry written under *key*, expired or not."""
        return self._last_known.get(key)
