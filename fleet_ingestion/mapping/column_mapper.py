"""
Column mapper: header row -> ColumnMapping. ZERO I/O.

Matching runs in three passes over the normalized headers. First each field
claims the leftmost header equal to its primary (first-listed) alias, so
"Day,Date" maps DATE to "Date". The exact pass then claims every remaining
header equal to any alias. The substring pass finally tries the
remaining headers (header contains alias, or alias contains header) with
fields tested in priority order: DATE, earning providers in configured
order, DRIVER, VEHICLE, NOTES. A column, once mapped, is never remapped,
and a field keeps the first column it was mapped to.
"""

from __future__ import annotations

import string

from fleet_config.schema import ColumnAliasTable
from fleet_ingestion.domain.types import (
    DATE,
    DRIVER,
    NOTES,
    VEHICLE,
    CanonicalField,
    ColumnMapping,
    RawRow,
)
from fleet_kernel.exceptions import MappingError


_STRIP_CHARS = string.punctuation + string.whitespace


def normalize_header(cell: str) -> str:
    """Trim, strip surrounding punctuation, collapse whitespace, case-fold."""
    return " ".join(cell.strip(_STRIP_CHARS).split()).casefold()


class ColumnMapper:
    """Maps header cells to canonical fields using a configured alias table."""

    def __init__(self, aliases: ColumnAliasTable):
        self._aliases = aliases
        self._priority: list[tuple[CanonicalField, tuple[str, ...]]] = []
        self._add(DATE, aliases.date)
        for provider in aliases.earning_providers:
            self._add(CanonicalField.earning(provider.name), provider.aliases)
        self._add(DRIVER, aliases.driver)
        self._add(VEHICLE, aliases.vehicle)
        self._add(NOTES, aliases.notes)

    def _add(self, canonical: CanonicalField, aliases: tuple[str, ...]) -> None:
        normalized = tuple(dict.fromkeys(a for a in map(normalize_header, aliases) if a))
        if normalized:
            self._priority.append((canonical, normalized))

    def map(self, header: RawRow) -> ColumnMapping:
        """
        Build the mapping for one file's header row.

        Raises:
            MappingError: if no header matches a DATE alias.
        """
        normalized = [normalize_header(cell) for cell in header]
        columns: dict[CanonicalField, int] = {}
        claimed: set[int] = set()

        for canonical, aliases in self._priority:
            for index, cell in enumerate(normalized):
                if index not in claimed and cell == aliases[0]:
                    columns[canonical] = index
                    claimed.add(index)
                    break

        for index, cell in enumerate(normalized):
            if not cell or index in claimed:
                continue
            for canonical, aliases in self._priority:
                if canonical not in columns and cell in aliases:
                    columns[canonical] = index
                    claimed.add(index)
                    break

        for index, cell in enumerate(normalized):
            if not cell or index in claimed:
                continue
            for canonical, aliases in self._priority:
                if canonical in columns:
                    continue
                if any(alias in cell or cell in alias for alias in aliases):
                    columns[canonical] = index
                    claimed.add(index)
                    break

        if DATE not in columns:
            raise MappingError(DATE.label, available_headers=tuple(header))

        warnings: list[str] = []
        if DRIVER not in columns:
            warnings.append("no DRIVER column found; rows will use the placeholder driver")
        if VEHICLE not in columns:
            warnings.append("no VEHICLE column found; rows will use the placeholder vehicle")
        if not any(f.provider for f in columns):
            warnings.append("no earning columns found; all entries will have zero earnings")

        # Order by column position so iteration follows the file
        ordered = dict(sorted(columns.items(), key=lambda item: item[1]))
        return ColumnMapping(columns=ordered, headers=tuple(header), warnings=tuple(warnings))
