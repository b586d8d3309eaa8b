"""Tests for RowParser: placeholders, amounts, notes, and the date gate."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fleet_config.schema import DateOrder, PlaceholderDef
from fleet_ingestion.domain.types import IssueSeverity
from fleet_ingestion.mapping import ColumnMapper
from fleet_ingestion.parsing import RowParser, parse_amount

HEADER = ("Date", "Driver", "Vehicle", "Uber", "Careem", "Notes")


@pytest.fixture
def mapping(import_config):
    return ColumnMapper(import_config.aliases).map(HEADER)


@pytest.fixture
def parser(import_config):
    return RowParser(providers=import_config.aliases.provider_names)


def parse(parser, mapping, *cells, row_number=1, order=DateOrder.DAY_FIRST):
    return parser.parse_row(tuple(cells), mapping, row_number, order)


class TestValidRow:
    def test_full_row(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "John", "Toyota Camry", "75.25", "50.00", "night shift")
        assert result.success is True
        assert result.issues == ()
        record = result.record
        assert record.row_number == 1
        assert record.date == datetime(2023, 12, 25, tzinfo=timezone.utc)
        assert record.driver_name == "John"
        assert record.vehicle_name == "Toyota Camry"
        assert record.earnings["uber"] == Decimal("75.25")
        assert record.earnings["careem"] == Decimal("50.00")
        assert record.total_earnings == Decimal("125.25")
        assert record.notes == "night shift"

    def test_unmapped_providers_default_to_zero(self, parser, mapping):
        record = parse(parser, mapping, "25/12/2023", "John", "Camry", "10", "0", "").record
        assert record.earnings["yango"] == Decimal("0")
        assert record.earnings["private"] == Decimal("0")
        assert set(record.earnings) == {"careem", "uber", "yango", "private"}

    def test_cells_are_trimmed(self, parser, mapping):
        record = parse(parser, mapping, " 25/12/2023 ", "  John ", " Camry", " 10 ", "", "").record
        assert record.driver_name == "John"
        assert record.vehicle_name == "Camry"
        assert record.earnings["uber"] == Decimal("10")

    def test_default_notes(self, parser, mapping):
        record = parse(parser, mapping, "25/12/2023", "John", "Camry", "10", "0", "  ").record
        assert record.notes == "Imported from CSV"

    def test_short_row_reads_missing_cells_as_blank(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "John")
        assert result.success is True
        assert result.record.vehicle_name == "Unknown Vehicle"
        assert result.record.total_earnings == Decimal("0")


class TestDateGate:
    def test_bad_date_rejects_row(self, parser, mapping):
        result = parse(parser, mapping, "not-a-date", "John", "Toyota", "10", "0", "", row_number=4)
        assert result.success is False
        assert result.record is None
        (issue,) = result.issues
        assert issue.severity is IssueSeverity.ERROR
        assert issue.message == "unparseable date: not-a-date"
        assert issue.row_number == 4

    def test_bad_date_stops_before_other_checks(self, parser, mapping):
        result = parse(parser, mapping, "", "", "", "abc", "-5", "")
        assert len(result.issues) == 1
        assert result.issues[0].message == "missing date"

    def test_date_order_applied(self, parser, mapping):
        record = parse(parser, mapping, "12/25/2023", "A", "B", "1", "", "", order=DateOrder.MONTH_FIRST).record
        assert record.date == datetime(2023, 12, 25, tzinfo=timezone.utc)


class TestPlaceholders:
    def test_blank_driver_and_vehicle(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "", " ", "40", "", "")
        assert result.success is True
        assert result.record.driver_name == "Unknown Driver"
        assert result.record.vehicle_name == "Unknown Vehicle"
        assert [i.field for i in result.issues] == ["driver", "vehicle"]
        assert all(i.severity is IssueSeverity.WARNING for i in result.issues)

    def test_unmapped_driver_column(self, import_config, parser):
        mapping = ColumnMapper(import_config.aliases).map(("Date", "Uber"))
        result = parser.parse_row(("25/12/2023", "10"), mapping, 1, DateOrder.DAY_FIRST)
        assert result.record.driver_name == "Unknown Driver"
        assert {i.code for i in result.issues} == {"MISSING_DRIVER", "MISSING_VEHICLE"}

    def test_custom_placeholders(self, import_config, mapping):
        parser = RowParser(
            providers=import_config.aliases.provider_names,
            placeholders=PlaceholderDef(driver="N/A", vehicle="Spare"),
        )
        record = parse(parser, mapping, "25/12/2023", "", "", "1", "", "").record
        assert (record.driver_name, record.vehicle_name) == ("N/A", "Spare")

    def test_all_optional_blank_never_errors(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "", "", "", "", "")
        assert result.success is True
        assert all(i.severity is IssueSeverity.WARNING for i in result.issues)


class TestEarnings:
    def test_blank_is_zero_silently(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "", "10", "")
        assert result.record.earnings["uber"] == Decimal("0")
        assert result.issues == ()

    def test_unparseable_amount(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "lots", "10", "")
        assert result.record.earnings["uber"] == Decimal("0")
        (issue,) = result.issues
        assert issue.severity is IssueSeverity.WARNING
        assert "lots" in issue.message
        assert issue.field == "earning:uber"
        assert issue.code == "INVALID_AMOUNT"

    def test_negative_amount(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "-5", "10", "")
        assert result.record.earnings["uber"] == Decimal("0")
        assert result.issues[0].code == "NEGATIVE_AMOUNT"
        assert "-5" in result.issues[0].message

    def test_amount_over_maximum(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "1000000", "10", "")
        assert result.record.earnings["uber"] == Decimal("0")
        assert result.issues[0].code == "AMOUNT_TOO_LARGE"

    def test_maximum_itself_allowed(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "999999.99", "", "")
        assert result.record.earnings["uber"] == Decimal("999999.99")
        assert result.issues == ()

    def test_extra_decimals_rounded_to_cents(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "12.345", "10.004", "")
        record = result.record
        assert record.earnings["uber"] == Decimal("12.35")
        assert record.earnings["careem"] == Decimal("10.00")
        assert record.total_earnings == Decimal("22.35")
        assert [i.code for i in result.issues] == ["AMOUNT_ROUNDED", "AMOUNT_ROUNDED"]
        assert "rounded to 12.35" in result.issues[0].message

    def test_sub_cent_amount_rounds_to_zero(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "0.004", "", "")
        assert result.record.earnings["uber"] == Decimal("0.00")
        assert result.record.total_earnings == Decimal("0")
        assert [i.code for i in result.issues] == ["AMOUNT_ROUNDED", "ZERO_EARNINGS"]

    def test_trailing_zero_decimals_not_reported(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "12.500", "", "")
        assert result.record.earnings["uber"] == Decimal("12.50")
        assert result.issues == ()

    def test_rounding_up_past_maximum(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "999999.995", "", "")
        assert result.record.earnings["uber"] == Decimal("0")
        assert result.issues[0].code == "AMOUNT_TOO_LARGE"

    def test_all_zero_warns(self, parser, mapping):
        result = parse(parser, mapping, "25/12/2023", "A", "B", "0", "", "")
        (issue,) = result.issues
        assert issue.code == "ZERO_EARNINGS"
        assert result.success is True

    def test_zero_warning_can_be_disabled(self, import_config, mapping):
        parser = RowParser(providers=import_config.aliases.provider_names, warn_on_zero_earnings=False)
        assert parse(parser, mapping, "25/12/2023", "A", "B", "0", "", "").issues == ()


class TestParseAmount:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("75.25", Decimal("75.25")),
            ("", Decimal("0")),
            ("$1,234.50", Decimal("1234.50")),
            ("AED 100", Decimal("100")),
            ("100 AED", Decimal("100")),
            ("€ 12", Decimal("12")),
            ("1 250", Decimal("1250")),
            ("12,5", Decimal("12.5")),
            ("-3", Decimal("-3")),
            ("12.345", Decimal("12.35")),
            ("0.004", Decimal("0.00")),
            ("1,234.567", Decimal("1234.57")),
        ],
    )
    def test_parsed(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "1.2.3", "NaN", "Infinity", "--"])
    def test_rejected(self, raw):
        assert parse_amount(raw) is None

    def test_result_has_two_places(self):
        assert parse_amount("7.1").as_tuple().exponent == -2
        assert parse_amount("7").as_tuple().exponent == -2
