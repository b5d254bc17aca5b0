"""CSV export of a provider list.

Writes the fixed directory header followed by one row per record, with
every value double-quoted and embedded quotes doubled, so the output can
be pasted straight back into the hosted CSV and re-parsed unchanged.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from provider_directory.models.provider import PROVIDER_FIELDS, ProviderRecord


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def to_csv(providers: Iterable[ProviderRecord]) -> str:
    """Serialize *providers* to CSV text in :data:`PROVIDER_FIELDS` order.

    The header row is unquoted; data rows quote every field.  Rows are
    joined with ``\\n`` and no trailing newline is written.
    """
    lines = [",".join(PROVIDER_FIELDS)]
    for provider in providers:
        lines.append(",".join(_quote(provider.get(field)) for field in PROVIDER_FIELDS))
    return "\n".join(lines)


def export_filename(day: date | None = None) -> str:
    """Return the download name for an export made on *day* (default today)."""
    day = day or date.today()
    return f"providers-{day.isoformat()}.csv"
