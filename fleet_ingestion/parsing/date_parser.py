"""
Date parser: raw date cell -> UTC-midnight datetime. ZERO I/O.

Candidate patterns are tried in order for the session's date order:
day/month (or month/day) with a four-digit year, then with a two-digit
year, each over the separators ``/``, ``-`` and ``.``; then the year-first
fallbacks ``yyyy-mm-dd`` and ``yyyy/mm/dd``. Calendar validation is strict:
day 32, February 30 and month 13 are rejected, never rolled over.

Any pattern may carry a time of day after a space or ``T``
(``25/12/2023 00:00``, ``2023-12-25T08:30:00``). The time is checked
for shape and then dropped; other trailing text is still rejected.

Two-digit years pivot at 50: ``49`` is 2049, ``50`` is 1950.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable

from fleet_config.schema import DateOrder
from fleet_ingestion.domain.types import DATE, ImportIssue


TWO_DIGIT_YEAR_PIVOT = 50

# Optional time of day, matched and dropped
_TIME = r"(?:[ T](?:[01]?\d|2[0-3]):[0-5]\d(?::[0-5]\d(?:\.\d+)?)?Z?)?"

_FOUR_DIGIT = re.compile(r"^(\d{1,2})([/.-])(\d{1,2})\2(\d{4})" + _TIME + "$")
_TWO_DIGIT = re.compile(r"^(\d{1,2})([/.-])(\d{1,2})\2(\d{2})" + _TIME + "$")
_YEAR_FIRST = re.compile(r"^(\d{4})([/-])(\d{1,2})\2(\d{1,2})" + _TIME + "$")

# Issue codes
MISSING_DATE = "MISSING_DATE"
UNPARSEABLE_DATE = "UNPARSEABLE_DATE"


@dataclass(frozen=True)
class DateParseResult:
    """Result of parsing one date cell."""

    success: bool
    value: datetime | None = None
    issue: ImportIssue | None = None


def expand_year(two_digit: int) -> int:
    return 2000 + two_digit if two_digit < TWO_DIGIT_YEAR_PIVOT else 1900 + two_digit


def _utc_midnight(year: int, month: int, day: int) -> datetime | None:
    try:
        d = date(year, month, day)
    except ValueError:
        return None
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def _day_month(first: int, second: int, order: DateOrder) -> tuple[int, int]:
    if order is DateOrder.MONTH_FIRST:
        return second, first
    return first, second


class DateParser:
    """Strict multi-pattern date parsing for one fixed date order."""

    def parse_value(self, raw: str, date_order: DateOrder) -> datetime | None:
        """Return the UTC-midnight datetime for ``raw``, or None when no pattern fits."""
        text = raw.strip()
        if date_order is DateOrder.AUTO:
            date_order = DateOrder.DAY_FIRST

        for pattern, year_of in (
            (_FOUR_DIGIT, int),
            (_TWO_DIGIT, lambda y: expand_year(int(y))),
        ):
            m = pattern.match(text)
            if m:
                day, month = _day_month(int(m.group(1)), int(m.group(3)), date_order)
                value = _utc_midnight(year_of(m.group(4)), month, day)
                if value is not None:
                    return value

        m = _YEAR_FIRST.match(text)
        if m:
            return _utc_midnight(int(m.group(1)), int(m.group(3)), int(m.group(4)))
        return None

    def parse(self, raw: str | None, row_number: int, date_order: DateOrder) -> DateParseResult:
        if raw is None or not raw.strip():
            return DateParseResult(
                success=False,
                issue=ImportIssue.error(row_number, "missing date", MISSING_DATE, DATE.key),
            )
        value = self.parse_value(raw, date_order)
        if value is None:
            return DateParseResult(
                success=False,
                issue=ImportIssue.error(
                    row_number, f"unparseable date: {raw.strip()}", UNPARSEABLE_DATE, DATE.key
                ),
            )
        return DateParseResult(success=True, value=value)


def detect_date_order(cells: Iterable[str], default: DateOrder) -> tuple[DateOrder, str | None]:
    """
    Infer one date order for a whole file from its date cells.

    A first component above 12 in any cell means day-first; a second
    component above 12 means month-first. Returns ``(order, warning)``; the
    warning is set when there was no evidence, or conflicting evidence, and
    ``default`` was used.
    """
    if default is DateOrder.AUTO:
        default = DateOrder.DAY_FIRST

    day_first = month_first = False
    for cell in cells:
        m = _FOUR_DIGIT.match(cell.strip()) or _TWO_DIGIT.match(cell.strip())
        if not m:
            continue
        first, second = int(m.group(1)), int(m.group(3))
        if first > 12 and second <= 12:
            day_first = True
        elif second > 12 and first <= 12:
            month_first = True

    if day_first and not month_first:
        return DateOrder.DAY_FIRST, None
    if month_first and not day_first:
        return DateOrder.MONTH_FIRST, None
    reason = "conflicting" if day_first else "no"
    return default, (
        f"{reason} evidence for the date order in this file; using {default.value}"
    )
