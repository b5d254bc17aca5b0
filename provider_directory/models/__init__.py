"""Provider directory domain models: re-exports the public model classes.

Import from ``provider_directory.models`` rather than the submodule:

    from provider_directory.models import ProviderRecord, DataSource
"""

from __future__ import annotations

from provider_directory.models.provider import (
    ALL_CATEGORIES,
    PROVIDER_FIELDS,
    SEARCH_FIELDS,
    CacheEntry,
    DataSource,
    FilterState,
    ProviderRecord,
    generate_provider_id,
)

__all__ = [
    "ALL_CATEGORIES",
    "PROVIDER_FIELDS",
    "SEARCH_FIELDS",
    "CacheEntry",
    "DataSource",
    "FilterState",
    "ProviderRecord",
    "generate_provider_id",
]
