"""Unit tests for the CSV exporter."""

from __future__ import annotations

from datetime import date

from provider_directory.models.provider import PROVIDER_FIELDS, ProviderRecord
from provider_directory.services.csv_exporter import export_filename, to_csv
from provider_directory.services.csv_parser import CsvParser


class TestToCsv:
    def test_header_row_is_fixed_order(self) -> None:
        assert to_csv([]) == ",".join(PROVIDER_FIELDS)

    def test_every_field_quoted(self) -> None:
        record = ProviderRecord.from_row({"Company": "Acme", "Category": "Legal"})
        row = to_csv([record]).split("\n")[1]
        assert row == '"Acme","","","","","Legal","","",""'

    def test_embedded_quotes_doubled(self) -> None:
        record = ProviderRecord.from_row(
            {"Company": 'The "Best" Co', "Category": "Legal", "Testimonial": 'Say "Hi"'}
        )
        row = to_csv([record]).split("\n")[1]
        assert row.startswith('"The ""Best"" Co"')
        assert row.endswith('"Say ""Hi"""')

    def test_extra_columns_not_exported(self) -> None:
        record = ProviderRecord.from_row(
            {"Company": "Acme", "Category": "Legal", "Website": "https://acme.test"}
        )
        assert "acme.test" not in to_csv([record])

    def test_round_trip_preserves_records(self, providers: list[ProviderRecord]) -> None:
        reparsed = CsvParser().parse(to_csv(providers))
        assert reparsed == providers

    def test_round_trip_with_commas_and_quotes(self) -> None:
        record = ProviderRecord.from_row(
            {
                "Company": "Smith, John & Sons",
                "Contact": 'John "JJ" Smith',
                "Category": "Home Services",
                "Testimonial": 'Great, "really" great',
            }
        )
        reparsed = CsvParser().parse(to_csv([record]))
        assert reparsed == [record]
        assert reparsed[0].id == record.id


class TestExportFilename:
    def test_dated_name(self) -> None:
        assert export_filename(date(2026, 10, 18)) == "providers-2026-10-18.csv"

    def test_defaults_to_today(self) -> None:
        assert export_filename() == f"providers-{date.today().isoformat()}.csv"
