"""Abstract base class for provider-list cache tiers.

The provider store keeps two tiers behind this contract: a process-local
in-memory tier and a session-scoped persisted tier.  Both store
:class:`CacheEntry` values and share one TTL.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from provider_directory.models.provider import CacheEntry


class ICacheProvider(ABC):
    """Contract for a keyed cache of :class:`CacheEntry` values.

    All operations are async so that disk- or network-backed tiers fit
    the same cooperative event loop as the fetcher.
    """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry under *key* if present and within TTL.

        Parameters
        ----------
        key:
            The cache key to look up.

        Returns
        -------
        CacheEntry or None
            The fresh entry, or ``None`` when missing or expired.
        """

    @abstractmethod
    async def set(self, key: str, entry: CacheEntry) -> None:
        """Store *entry* under *key*, replacing any previous entry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry under *key*; a no-op if absent."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* holds an entry within TTL."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short tier name for logs (e.g. ``"memory"``)."""
