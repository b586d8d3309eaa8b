"""Header-to-canonical-field mapping."""

from fleet_ingestion.mapping.column_mapper import ColumnMapper, normalize_header

__all__ = ["ColumnMapper", "normalize_header"]
