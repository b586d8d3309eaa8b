"""Source adapters for the bulk import (bytes in, rows out, no DB)."""

from fleet_ingestion.adapters.base import SourceAdapter, SourceProbe, SourceTable
from fleet_ingestion.adapters.csv_adapter import CsvSourceAdapter, sniff_delimiter

__all__ = [
    "SourceAdapter",
    "SourceProbe",
    "SourceTable",
    "CsvSourceAdapter",
    "sniff_delimiter",
]
