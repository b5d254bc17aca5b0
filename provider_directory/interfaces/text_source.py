"""Abstract base class for remote text sources.

The provider store pulls raw CSV text through this contract so the HTTP
client can be replaced by a fake in tests or by another transport.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ITextSource(ABC):
    """Contract for fetching a text resource by URL.

    Implementations perform exactly one request per call.  Retry and
    backoff belong to the caller so the policy lives in one place.
    """

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """Fetch *url* and return its body as text.

        Raises
        ------
        NetworkError
            On a non-2xx response or a transport failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short source name for logs (e.g. ``"http"``)."""

    async def aclose(self) -> None:
        """Release any held connections.  Default: nothing to release."""
