"""Utility modules for the provider directory.

- **errors** -- Exception hierarchy rooted at DirectoryError; the fetch,
  parse and empty-result errors are the retry/fallback signals of the
  provider store.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
- **github_urls** (not re-exported here) -- blob/raw/edit URL rewriting for
  CSVs hosted on GitHub.
"""

from provider_directory.utils.errors import (
    CacheError,
    ConfigurationError,
    DirectoryError,
    EmptyResultError,
    FormatError,
    NetworkError,
)
from provider_directory.utils.logging import configure_logging, get_logger

__all__ = [
    "CacheError",
    "ConfigurationError",
    "DirectoryError",
    "EmptyResultError",
    "FormatError",
    "NetworkError",
    "configure_logging",
    "get_logger",
]
