"""
CSV source adapter.

Decodes UTF-8 (a leading BOM is stripped via utf-8-sig), accepts any line
endings, and sniffs the delimiter from the header line unless one is given.
The whole file is materialized; imports are expected to be small.
"""

from __future__ import annotations

import csv
import io
from typing import Any

from fleet_ingestion.adapters.base import SourceProbe, SourceTable
from fleet_ingestion.domain.types import RawRow
from fleet_kernel.exceptions import SourceReadError


CANDIDATE_DELIMITERS = (",", ";", "\t", "|")


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() in ("utf-8", "utf8"):
        return "utf-8-sig"  # Strip BOM if present
    return enc


def _decode(data: bytes, encoding: str) -> str:
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise SourceReadError(
            f"file is not valid {encoding} text (byte offset {exc.start})"
        ) from exc
    except LookupError as exc:
        raise SourceReadError(f"unknown encoding {encoding!r}") from exc


def sniff_delimiter(text: str) -> str:
    """Pick the candidate delimiter occurring most often in the first non-blank line."""
    first_line = next((line for line in text.splitlines() if line.strip()), "")
    counts = {d: first_line.count(d) for d in CANDIDATE_DELIMITERS}
    best = max(CANDIDATE_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] > 0 else ","


def _is_blank(row: RawRow) -> bool:
    return all(not cell.strip() for cell in row)


class CsvSourceAdapter:
    """Read delimited text as a header row plus data rows."""

    def read(self, data: bytes, options: dict[str, Any]) -> SourceTable:
        encoding = _get_encoding(options)
        text = _decode(data, encoding)
        delimiter = options.get("delimiter") or sniff_delimiter(text)

        reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
        try:
            rows: list[RawRow] = [tuple(r) for r in reader]
        except csv.Error as exc:
            raise SourceReadError(f"malformed delimited text: {exc}") from exc

        # Leading blank lines before the header carry no row numbers
        while rows and _is_blank(rows[0]):
            rows.pop(0)
        while rows and _is_blank(rows[-1]):
            rows.pop()

        if not rows:
            return SourceTable(header=(), rows=(), encoding=encoding, delimiter=delimiter)
        return SourceTable(
            header=rows[0],
            rows=tuple(rows[1:]),
            encoding=encoding,
            delimiter=delimiter,
        )

    def probe(self, data: bytes, options: dict[str, Any]) -> SourceProbe:
        sample_size = int(options.get("sample_size", 5))
        table = self.read(data, options)
        return SourceProbe(
            row_count=table.row_count,
            columns=table.header,
            sample_rows=table.rows[:sample_size],
            encoding=table.encoding,
            detected_delimiter=table.delimiter,
        )
