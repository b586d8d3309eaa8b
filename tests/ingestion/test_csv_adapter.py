"""Tests for the CSV source adapter: decoding, line endings, delimiter sniffing."""

import pytest

from fleet_ingestion.adapters import CsvSourceAdapter, SourceAdapter, sniff_delimiter
from fleet_kernel.exceptions import SourceReadError


@pytest.fixture
def adapter():
    return CsvSourceAdapter()


class TestRead:
    def test_header_and_rows(self, adapter):
        table = adapter.read(b"Date,Driver\n25/12/2023,John\n26/12/2023,Maria\n", {})
        assert table.header == ("Date", "Driver")
        assert table.rows == (("25/12/2023", "John"), ("26/12/2023", "Maria"))
        assert table.row_count == 2
        assert table.delimiter == ","

    def test_bom_stripped(self, adapter):
        table = adapter.read("\ufeffDate,Driver\n1/1/2023,A\n".encode("utf-8"), {})
        assert table.header == ("Date", "Driver")
        assert table.encoding == "utf-8-sig"

    @pytest.mark.parametrize("newline", ["\n", "\r\n", "\r"])
    def test_any_line_ending(self, adapter, newline):
        data = newline.join(["Date,Uber", "1/1/2023,5", "2/1/2023,6"]).encode()
        table = adapter.read(data, {})
        assert table.rows == (("1/1/2023", "5"), ("2/1/2023", "6"))

    def test_quoted_cells_keep_commas(self, adapter):
        table = adapter.read(b'Date,Notes\n1/1/2023,"late, rainy"\n', {})
        assert table.rows[0] == ("1/1/2023", "late, rainy")

    def test_blank_rows_kept_in_place(self, adapter):
        table = adapter.read(b"Date\n1/1/2023\n\n3/1/2023\n", {})
        assert table.rows == (("1/1/2023",), (), ("3/1/2023",))

    def test_leading_and_trailing_blank_lines_dropped(self, adapter):
        table = adapter.read(b"\n\nDate\n1/1/2023\n\n\n", {})
        assert table.header == ("Date",)
        assert table.rows == (("1/1/2023",),)

    def test_empty_input(self, adapter):
        table = adapter.read(b"", {})
        assert table.header == ()
        assert table.rows == ()

    def test_arabic_text(self, adapter):
        table = adapter.read("تاريخ,سائق\n1/1/2023,أحمد\n".encode("utf-8"), {})
        assert table.header == ("تاريخ", "سائق")
        assert table.rows[0][1] == "أحمد"

    def test_invalid_utf8_raises(self, adapter):
        with pytest.raises(SourceReadError) as exc_info:
            adapter.read(b"Date\n\xff\xfe\xfa\n", {})
        assert exc_info.value.code == "SOURCE_READ_FAILED"

    def test_explicit_delimiter_wins(self, adapter):
        table = adapter.read(b"Date;Notes\n1/1/2023;a,b\n", {"delimiter": ";"})
        assert table.rows[0] == ("1/1/2023", "a,b")

    def test_satisfies_protocol(self, adapter):
        assert isinstance(adapter, SourceAdapter)


class TestSniffDelimiter:
    @pytest.mark.parametrize(
        "header,expected",
        [
            ("Date,Driver,Uber", ","),
            ("Date;Driver;Uber", ";"),
            ("Date\tDriver\tUber", "\t"),
            ("Date|Driver|Uber", "|"),
            ("Date", ","),
        ],
    )
    def test_picks_most_frequent(self, header, expected):
        assert sniff_delimiter(header) == expected

    def test_skips_leading_blank_lines(self):
        assert sniff_delimiter("\n\nDate;Driver\n") == ";"

    def test_semicolon_file_read(self, adapter):
        table = adapter.read(b"Date;Driver;Uber\n25/12/2023;John;10,50\n", {})
        assert table.delimiter == ";"
        assert table.rows[0] == ("25/12/2023", "John", "10,50")


class TestProbe:
    def test_probe_returns_sample(self, adapter):
        data = b"Date,Driver\n" + b"".join(f"{i}/1/2023,D{i}\n".encode() for i in range(1, 9))
        probe = adapter.probe(data, {})
        assert probe.row_count == 8
        assert probe.columns == ("Date", "Driver")
        assert len(probe.sample_rows) == 5
        assert probe.detected_delimiter == ","
