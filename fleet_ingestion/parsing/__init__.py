"""Pure date and row parsing."""

from fleet_ingestion.parsing.date_parser import (
    DateParseResult,
    DateParser,
    detect_date_order,
    expand_year,
)
from fleet_ingestion.parsing.row_parser import RowParser, RowParseResult, parse_amount

__all__ = [
    "DateParseResult",
    "DateParser",
    "RowParseResult",
    "RowParser",
    "detect_date_order",
    "expand_year",
    "parse_amount",
]
