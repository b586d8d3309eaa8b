"""
Source adapter protocol and the DTOs it returns.

Contract:
    SourceAdapter.read() decodes the uploaded bytes and materializes every row.
    SourceAdapter.probe() returns a quick snapshot: row count, columns, sample rows.

Architecture: fleet_ingestion/adapters. Bytes in, strings out; no DB imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from fleet_ingestion.domain.types import RawRow


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol for turning an uploaded file into a header plus data rows."""

    def read(self, data: bytes, options: dict[str, Any]) -> "SourceTable":
        """Decode and materialize the whole file."""
        ...

    def probe(self, data: bytes, options: dict[str, Any]) -> "SourceProbe":
        """Quick probe: row count, detected columns, sample rows."""
        ...


@dataclass(frozen=True)
class SourceTable:
    """
    A fully materialized source file.

    ``rows`` holds every data row after the header, blank ones included, so
    that ``rows[i]`` is data row ``i + 1``. Trailing blank lines are dropped.
    """

    header: RawRow
    rows: tuple[RawRow, ...]
    encoding: str = "utf-8"
    delimiter: str = ","

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass(frozen=True)
class SourceProbe:
    """Result of probing a source file (row count, columns, first N rows)."""

    row_count: int
    columns: tuple[str, ...]
    sample_rows: tuple[RawRow, ...]
    encoding: str | None = None
    detected_delimiter: str | None = None
