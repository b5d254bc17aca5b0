"""Custom exception hierarchy for the provider directory.

All application exceptions inherit from :class:`DirectoryError`, which
carries an optional ``source_name`` so error handlers can identify which
collaborator (e.g. "http", "csv", "session_cache") caused the failure.

The hierarchy is organized by ingestion stage:

    DirectoryError  (base -- catch-all for any directory error)
    +-- NetworkError        (non-2xx response or transport failure)
    +-- FormatError         (malformed / insufficient CSV)
    +-- EmptyResultError    (CSV parsed but yielded zero valid records)
    +-- CacheError          (session cache tier read/write failure)
    +-- ConfigurationError  (startup / invalid config)

The first three are "attempt failed" signals: the ProviderStore catches
them, retries with linear backoff and finally walks the fallback chain.
They never reach the caller of ``get_providers``.
"""


class DirectoryError(Exception):
    """Base exception for all provider directory errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``source_name`` identifying which collaborator triggered the error.
    The ``__str__`` method prefixes the source name in brackets for
    structured log output, e.g. ``[http] HTTP 404: Not Found``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        source_name: str | None = None,
    ) -> None:
        self._message = message
        self._source_name = source_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def source_name(self) -> str | None:
        return self._source_name

    def __str__(self) -> str:
        if self._source_name:
            return f"[{self._source_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Fetch / parse attempt errors
# ---------------------------------------------------------------------------

class NetworkError(DirectoryError):
    """Raised on a non-2xx response or a transport failure.

    ``status_code`` holds the HTTP status for bad responses and is
    ``None`` when the request never produced a response (DNS, timeout,
    connection reset).
    """

    def __init__(
        self,
        message: str = "Remote fetch failed",
        source_name: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)
        self._status_code = status_code

    @property
    def status_code(self) -> int | None:
        return self._status_code


class FormatError(DirectoryError):
    """Raised when CSV text is malformed or lacks a header plus one data row."""

    def __init__(
        self,
        message: str = "CSV text is malformed",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class EmptyResultError(DirectoryError):
    """Raised when CSV text parsed cleanly but produced no valid records."""

    def __init__(
        self,
        message: str = "No valid provider data found in CSV",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


# ---------------------------------------------------------------------------
# Storage / configuration errors
# ---------------------------------------------------------------------------

class CacheError(DirectoryError):
    """Raised when the persisted cache tier cannot be read or written.

    The store logs this and treats the tier as a miss.
    """

    def __init__(
        self,
        message: str = "Cache operation failed",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)


class ConfigurationError(DirectoryError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        source_name: str | None = None,
    ) -> None:
        super().__init__(message=message, source_name=source_name)
