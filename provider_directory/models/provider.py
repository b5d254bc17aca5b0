"""Provider directory domain models.

Defines Pydantic v2 models for the records parsed out of the directory CSV,
the cache entries that hold them, and the filter state that narrows them.
All models use frozen config to enforce immutability; filter changes and
cache writes produce new instances rather than mutating shared lists.

Flow:
    1. The CSV parser turns each accepted row into a ProviderRecord
    2. The provider store wraps a parsed list in a CacheEntry per cache tier
    3. The filter engine keeps a FilterState and derives the visible subset
"""

from __future__ import annotations

import base64
import re
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# Column order of the published CSV; the exporter writes exactly these.
PROVIDER_FIELDS: tuple[str, ...] = (
    "Company",
    "Contact",
    "email",
    "number",
    "Main Location",
    "Category",
    "Specialty",
    "Service_Area",
    "Testimonial",
)

# Columns searched by the filter engine, in join order.
SEARCH_FIELDS: tuple[str, ...] = (
    "Company",
    "Category",
    "Specialty",
    "Contact",
    "Service_Area",
)

ALL_CATEGORIES = "all"

_ID_LENGTH = 12
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def generate_provider_id(company: str, contact: str | None) -> str:
    """Derive the display id for a provider from company and contact.

    The lowercased ``"{company}-{contact}"`` key is base64 encoded, stripped
    to alphanumerics and cut to 12 characters.  Ids are stable across
    fetches but two providers can collide, so they are display hints only.
    """
    key = f"{company}-{contact or 'no-contact'}".lower()
    encoded = base64.b64encode(key.encode("utf-8")).decode("ascii")
    return _NON_ALNUM_RE.sub("", encoded)[:_ID_LENGTH]


# ---------------------------------------------------------------------------
# ProviderRecord: one accepted CSV row.
# ---------------------------------------------------------------------------
class ProviderRecord(BaseModel):
    """A single service provider from the directory CSV.

    Fields are stored under Python names but validated and serialized under
    the CSV header names, so ``record["Main Location"]`` and
    ``record.main_location`` read the same value.  Columns outside the
    fixed set are kept as extra fields.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    id: str = ""
    company: str = Field(alias="Company", min_length=1)
    contact: str = Field(default="", alias="Contact")
    email: str = Field(default="", alias="email")
    number: str = Field(default="", alias="number")
    main_location: str = Field(default="", alias="Main Location")
    category: str = Field(alias="Category", min_length=1)
    specialty: str = Field(default="", alias="Specialty")
    service_area: str = Field(default="", alias="Service_Area")
    testimonial: str = Field(default="", alias="Testimonial")

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ProviderRecord:
        """Build a record from a header-keyed row, deriving its ``id``.

        Raises:
            pydantic.ValidationError: If Company or Category is empty.
        """
        values = {key: "" if value is None else str(value) for key, value in row.items()}
        values["id"] = generate_provider_id(values.get("Company", ""), values.get("Contact"))
        return cls.model_validate(values)

    def __getitem__(self, header: str) -> str:
        field_name = _HEADER_TO_FIELD.get(header)
        if field_name is not None:
            return getattr(self, field_name)
        extra = self.model_extra or {}
        if header in extra:
            return extra[header]
        raise KeyError(header)

    def get(self, header: str, default: str = "") -> str:
        try:
            return self[header]
        except KeyError:
            return default

    def to_row(self) -> dict[str, Any]:
        """Return the record keyed by CSV header names, extras and ``id`` included."""
        return self.model_dump(by_alias=True)


_HEADER_TO_FIELD: dict[str, str] = {
    (info.alias or name): name for name, info in ProviderRecord.model_fields.items()
}


# ---------------------------------------------------------------------------
# CacheEntry: a parsed list plus the moment it was fetched.
# ---------------------------------------------------------------------------
class CacheEntry(BaseModel):
    """A provider list stamped with its fetch time in epoch milliseconds.

    Serializes to the persisted layout ``{"data": [...], "timestamp": ms}``.
    """

    model_config = ConfigDict(frozen=True)

    data: list[ProviderRecord] = Field(default_factory=list)
    timestamp: int = Field(ge=0)

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.timestamp

    def is_fresh(self, ttl_ms: int, now_ms: int) -> bool:
        """Return ``True`` while ``now - timestamp < ttl``."""
        return self.age_ms(now_ms) < ttl_ms

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


# ---------------------------------------------------------------------------
# FilterState / DataSource
# ---------------------------------------------------------------------------
class FilterState(BaseModel):
    """Active category (or ``"all"``) and normalized search term."""

    model_config = ConfigDict(frozen=True)

    category: str = ALL_CATEGORIES
    search_term: str = ""


class DataSource(str, Enum):  # noqa: UP042 (StrEnum requires Python 3.11+)
    """Where the provider store's most recent list came from.

    Ordered from most to least authoritative.  ``EMPTY`` means every tier
    of the fallback chain came up empty and callers should show
    "nothing to show" rather than an error.
    """

    NETWORK = "NETWORK"
    MEMORY_CACHE = "MEMORY_CACHE"
    SESSION_CACHE = "SESSION_CACHE"
    STALE_MEMORY_CACHE = "STALE_MEMORY_CACHE"
    FALLBACK = "FALLBACK"
    EMPTY = "EMPTY"
