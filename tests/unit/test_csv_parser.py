"""Unit tests for CsvParser: line tokenizing, row tolerance and ids."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from provider_directory.models.provider import ProviderRecord, generate_provider_id
from provider_directory.services.csv_parser import CsvParser
from provider_directory.utils.errors import FormatError
from tests.conftest import HEADER, SAMPLE_CSV


@pytest.fixture()
def parser() -> CsvParser:
    return CsvParser()


# ======================================================================
# parse_line
# ======================================================================


class TestParseLine:
    def test_plain_fields(self) -> None:
        assert CsvParser.parse_line("a,b,c") == ["a", "b", "c"]

    def test_quoted_comma_is_one_field(self) -> None:
        assert CsvParser.parse_line('"Smith, John",Plumbing') == ["Smith, John", "Plumbing"]

    def test_escaped_quote(self) -> None:
        assert CsvParser.parse_line('"Say ""Hi"""') == ['Say "Hi"']

    def test_empty_fields_are_kept(self) -> None:
        assert CsvParser.parse_line("a,,b,") == ["a", "", "b", ""]

    def test_unbalanced_quote_runs_to_end_of_line(self) -> None:
        assert CsvParser.parse_line('"abc,def') == ["abc,def"]

    def test_values_are_not_trimmed(self) -> None:
        assert CsvParser.parse_line(" a , b ") == [" a ", " b "]


# ======================================================================
# parse
# ======================================================================


class TestParse:
    def test_sample_rows_in_order(self, parser: CsvParser) -> None:
        records = parser.parse(SAMPLE_CSV)
        assert [r.company for r in records] == [
            "Ace Plumbing",
            "Bright Electric",
            "Plumb Line Legal",
            "Green Acres Lawn",
        ]

    def test_quoted_values_decoded(self, parser: CsvParser) -> None:
        records = parser.parse(SAMPLE_CSV)
        assert records[0].specialty == "Plumbing, drains and water heaters"
        assert records[2].testimonial == 'Said "Done" and it was'

    def test_header_names_address_fields(self, parser: CsvParser) -> None:
        record = parser.parse(SAMPLE_CSV)[0]
        assert record["Main Location"] == "Fort Wayne"
        assert record["Service_Area"] == "Allen County"
        assert record["email"] == "dana@aceplumbing.test"

    def test_single_line_raises_format_error(self, parser: CsvParser) -> None:
        with pytest.raises(FormatError):
            parser.parse(HEADER)

    def test_empty_text_raises_format_error(self, parser: CsvParser) -> None:
        with pytest.raises(FormatError):
            parser.parse("")

    def test_header_with_trailing_blank_lines_raises(self, parser: CsvParser) -> None:
        with pytest.raises(FormatError):
            parser.parse(HEADER + "\n\n   \n")

    def test_rows_missing_company_or_category_are_skipped(self, parser: CsvParser) -> None:
        text = "\n".join(
            [
                "Company,Category,Contact",
                ",Home Services,Nobody",
                "No Category Co,,Someone",
                "Kept Co,Legal,Lee",
            ]
        )
        records = parser.parse(text)
        assert [r.company for r in records] == ["Kept Co"]

    def test_all_rows_rejected_returns_empty_list(self, parser: CsvParser) -> None:
        assert parser.parse("Company,Category\n,\nOnly Company,") == []

    def test_blank_lines_skipped(self, parser: CsvParser) -> None:
        text = "Company,Category\n\nA,One\n   \nB,Two\n"
        assert [r.company for r in parser.parse(text)] == ["A", "B"]

    def test_crlf_line_endings(self, parser: CsvParser) -> None:
        text = "Company,Category\r\nA,One\r\nB,Two\r\n"
        records = parser.parse(text)
        assert [(r.company, r.category) for r in records] == [("A", "One"), ("B", "Two")]

    def test_missing_trailing_values_are_empty(self, parser: CsvParser) -> None:
        records = parser.parse("Company,Category,Contact,Specialty\nA,One")
        assert records[0].contact == ""
        assert records[0].specialty == ""

    def test_extra_values_ignored(self, parser: CsvParser) -> None:
        records = parser.parse("Company,Category\nA,One,surplus,more")
        assert (records[0].company, records[0].category) == ("A", "One")
        assert records[0].model_extra == {}
        assert "surplus" not in records[0].to_row().values()

    def test_values_are_trimmed(self, parser: CsvParser) -> None:
        records = parser.parse("Company , Category\n  Acme  ,  Legal ")
        assert records[0].company == "Acme"
        assert records[0].category == "Legal"

    def test_extra_columns_are_retained(self, parser: CsvParser) -> None:
        records = parser.parse("Company,Category,Website\nA,One,https://a.test")
        assert records[0]["Website"] == "https://a.test"

    def test_row_failure_skips_only_that_row(self, parser: CsvParser) -> None:
        original = ProviderRecord.from_row

        def flaky(row):  # noqa: ANN001, ANN202
            if row["Company"] == "Bad":
                raise ValueError("boom")
            return original(row)

        text = "Company,Category\nGood,One\nBad,Two\nAlso Good,Three"
        with patch.object(ProviderRecord, "from_row", side_effect=flaky):
            with capture_logs() as logs:
                records = parser.parse(text)

        assert [r.company for r in records] == ["Good", "Also Good"]
        failures = [entry for entry in logs if entry["event"] == "csv_row_parse_failed"]
        assert failures[0]["line"] == 3

    def test_count_matches_qualifying_rows(self, parser: CsvParser) -> None:
        rows = [f"Company {i},Category {i % 3}" for i in range(25)]
        records = parser.parse("Company,Category\n" + "\n".join(rows))
        assert len(records) == 25
        assert records[-1].company == "Company 24"


# ======================================================================
# Ids
# ======================================================================


class TestIds:
    def test_id_assigned_from_company_and_contact(self, parser: CsvParser) -> None:
        record = parser.parse(SAMPLE_CSV)[0]
        assert record.id == generate_provider_id("Ace Plumbing", "Dana Reyes")

    def test_known_value(self) -> None:
        assert generate_provider_id("Acme", "Bob") == "YWNtZS1ib2I"

    def test_missing_contact_uses_placeholder(self) -> None:
        assert generate_provider_id("Acme", "") == "YWNtZS1uby1j"
        assert generate_provider_id("Acme", None) == generate_provider_id("Acme", "")

    def test_case_insensitive(self) -> None:
        assert generate_provider_id("ACME", "BOB") == generate_provider_id("acme", "bob")

    def test_at_most_twelve_alphanumerics(self) -> None:
        provider_id = generate_provider_id("Émile's Café & Bakery", "Zoë O'Neil")
        assert len(provider_id) <= 12
        assert provider_id.isalnum()

    def test_stable_across_parses(self, parser: CsvParser) -> None:
        first = [r.id for r in parser.parse(SAMPLE_CSV)]
        second = [r.id for r in parser.parse(SAMPLE_CSV)]
        assert first == second
