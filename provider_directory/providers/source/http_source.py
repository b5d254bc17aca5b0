"""HTTP text source for the hosted directory CSV.

Static file hosts and their CDNs cache aggressively, and the directory is
edited by hand, so every request carries a changing ``t=<epoch-ms>`` query
parameter plus no-cache headers.  Exactly one request is made per call;
the provider store owns retry and backoff.
"""

from __future__ import annotations

import time
from collections.abc import Callable

import httpx
import structlog

from provider_directory.interfaces.text_source import ITextSource
from provider_directory.utils.errors import NetworkError
from provider_directory.utils.github_urls import to_raw_url
from provider_directory.utils.logging import get_logger

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_HEADERS = {
    "User-Agent": "provider-directory/0.1 (+https://github.com/provider-directory)",
    "Accept": "text/csv,text/plain;q=0.9,*/*;q=0.8",
}
_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class HttpTextSource(ITextSource):
    """Fetches CSV text over HTTP(S) with cache-busting.

    Parameters
    ----------
    http_client:
        Shared ``httpx.AsyncClient``.  When omitted the source creates and
        owns one, closed by :meth:`aclose`.
    timeout:
        Request timeout in seconds for an owned client.
    clock:
        Returns the current time in seconds; feeds the cache-busting value.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )
        self._clock = clock
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # ITextSource implementation
    # ------------------------------------------------------------------

    async def fetch(self, url: str) -> str:
        """GET *url* with a fresh ``t`` parameter and return the body text."""
        target = to_raw_url(url)
        cache_bust = str(int(self._clock() * 1000))

        try:
            response = await self._client.get(
                target,
                params={"t": cache_bust},
                headers=_NO_CACHE_HEADERS,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise NetworkError(
                message=f"HTTP {status}: {exc.response.reason_phrase}",
                source_name=self.get_provider_name(),
                status_code=status,
            ) from exc
        except httpx.TimeoutException as exc:
            raise NetworkError(
                message=f"Timeout fetching {target}: {exc}",
                source_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(
                message=f"HTTP error fetching {target}: {exc}",
                source_name=self.get_provider_name(),
            ) from exc
        except (httpx.InvalidURL, ValueError) as exc:
            # Raised while building the request, before anything is sent.
            raise NetworkError(
                message=f"Cannot request {target}: {exc}",
                source_name=self.get_provider_name(),
            ) from exc

        self._logger.debug(
            "source_fetched",
            url=target,
            status=response.status_code,
            length=len(response.content),
        )
        return response.text

    def get_provider_name(self) -> str:
        return "http"

    async def aclose(self) -> None:
        """Close the HTTP client if this source created it."""
        if self._owns_client:
            await self._client.aclose()
