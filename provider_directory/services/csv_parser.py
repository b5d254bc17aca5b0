"""Tolerant CSV parser for the provider directory dataset.

The directory CSV is edited by hand on a static file host, so the parser
favors keeping good rows over rejecting the file:

  - Blank lines are skipped.
  - Short rows are padded with empty strings; long rows are truncated.
  - Rows missing ``Company`` or ``Category`` are dropped and logged.
  - Any per-row failure drops that row only.

Only a file without a header plus at least one data line is rejected
outright, with :class:`FormatError`.

Quoting follows RFC 4180 within a single line: ``"`` toggles quoted mode,
``""`` inside quotes is a literal quote, commas inside quotes are data.
Records never span lines.
"""

from __future__ import annotations

import structlog
from pydantic import ValidationError

from provider_directory.models.provider import ProviderRecord
from provider_directory.utils.errors import FormatError
from provider_directory.utils.logging import get_logger


class CsvParser:
    """Turns raw directory CSV text into a list of :class:`ProviderRecord`."""

    def __init__(self) -> None:
        self._logger: structlog.BoundLogger = get_logger(__name__)

    def parse(self, text: str) -> list[ProviderRecord]:
        """Parse *text* into provider records in row order.

        Raises
        ------
        FormatError
            If fewer than two lines (header + one data row) are present.

        Returns
        -------
        list[ProviderRecord]
            Accepted records; empty when every row was rejected.
        """
        lines = text.strip().split("\n")
        if len(lines) < 2:
            raise FormatError(
                message="CSV file must have header and at least one data row",
                source_name="csv",
            )

        headers = [name.strip() for name in self.parse_line(lines[0].strip())]
        providers: list[ProviderRecord] = []
        skipped = 0

        for line_number, raw_line in enumerate(lines[1:], start=2):
            line = raw_line.strip()
            if not line:
                continue

            try:
                values = self.parse_line(line)
                row = {
                    header: (values[index] if index < len(values) else "").strip()
                    for index, header in enumerate(headers)
                }
                if not row.get("Company") or not row.get("Category"):
                    skipped += 1
                    self._logger.debug("csv_row_missing_required", line=line_number)
                    continue
                providers.append(ProviderRecord.from_row(row))
            except (ValidationError, ValueError, TypeError) as exc:
                skipped += 1
                self._logger.warning("csv_row_parse_failed", line=line_number, error=str(exc))

        self._logger.debug(
            "csv_parsed",
            accepted=len(providers),
            skipped=skipped,
            columns=len(headers),
        )
        return providers

    @staticmethod
    def parse_line(line: str) -> list[str]:
        """Split one CSV line into raw (untrimmed) field values.

        Total over any input: unbalanced quotes simply run to end of line.
        """
        values: list[str] = []
        current: list[str] = []
        in_quotes = False
        i = 0
        length = len(line)

        while i < length:
            char = line[i]
            if char == '"':
                if in_quotes and i + 1 < length and line[i + 1] == '"':
                    current.append('"')
                    i += 2
                    continue
                in_quotes = not in_quotes
            elif char == "," and not in_quotes:
                values.append("".join(current))
                current = []
            else:
                current.append(char)
            i += 1

        values.append("".join(current))
        return values
