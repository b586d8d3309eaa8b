"""
Row parser: RawRow + ColumnMapping -> RowRecord and its issues. ZERO I/O.

Only the date can reject a row. Every other defect is substituted (a
placeholder name, a zero amount, the default notes) and reported as a
WARNING, so incomplete rows are imported rather than lost.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from fleet_config.schema import DateOrder, PlaceholderDef
from fleet_ingestion.domain.types import (
    DATE,
    DRIVER,
    NOTES,
    VEHICLE,
    CanonicalField,
    ColumnMapping,
    ImportIssue,
    RawRow,
    RowRecord,
)
from fleet_ingestion.parsing.date_parser import DateParser


ZERO = Decimal("0")
CENT = Decimal("0.01")

_CURRENCY_CODE = re.compile(r"^[A-Za-z]{3}\s*|\s*[A-Za-z]{3}$")
_THOUSANDS = re.compile(r"^-?\d{1,3}(,\d{3})+(\.\d+)?$")
_DECIMAL_COMMA = re.compile(r"^-?\d+,\d{1,2}$")

# Issue codes
MISSING_DRIVER = "MISSING_DRIVER"
MISSING_VEHICLE = "MISSING_VEHICLE"
INVALID_AMOUNT = "INVALID_AMOUNT"
NEGATIVE_AMOUNT = "NEGATIVE_AMOUNT"
AMOUNT_TOO_LARGE = "AMOUNT_TOO_LARGE"
AMOUNT_ROUNDED = "AMOUNT_ROUNDED"
ZERO_EARNINGS = "ZERO_EARNINGS"


@dataclass(frozen=True)
class RowParseResult:
    """Either a record plus its warnings, or a single ERROR issue."""

    success: bool
    record: RowRecord | None = None
    issues: tuple[ImportIssue, ...] = ()


def clean_amount(raw: str) -> str:
    """Strip currency symbols and codes, spaces, and thousands separators."""
    text = "".join(
        ch for ch in raw if not ch.isspace() and unicodedata.category(ch) != "Sc"
    )
    text = _CURRENCY_CODE.sub("", text)
    if _THOUSANDS.match(text):
        return text.replace(",", "")
    if _DECIMAL_COMMA.match(text):
        return text.replace(",", ".")
    return text


def to_cents(value: Decimal) -> Decimal:
    """Round half up to whole cents. Amounts too large to carry cents come back unchanged."""
    if value.adjusted() >= 20:
        return value
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _exact_amount(raw: str) -> Decimal | None:
    if not raw.strip():
        return ZERO
    try:
        value = Decimal(clean_amount(raw))
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_amount(raw: str) -> Decimal | None:
    """
    Parse a money cell, rounded to cents.

    Blank is zero; None means the text is not a number.
    """
    value = _exact_amount(raw)
    return None if value is None else to_cents(value)


def cell(raw: RawRow, mapping: ColumnMapping, canonical: CanonicalField) -> str:
    """The stripped cell for ``canonical``; blank when unmapped or past the row's end."""
    index = mapping.index_of(canonical)
    if index is None or index >= len(raw):
        return ""
    return raw[index].strip()


class RowParser:
    """Validates and normalizes one data row against the file's column mapping."""

    def __init__(
        self,
        providers: tuple[str, ...] = (),
        placeholders: PlaceholderDef | None = None,
        default_notes: str = "Imported from CSV",
        max_earning_amount: Decimal = Decimal("999999.99"),
        warn_on_zero_earnings: bool = True,
        date_parser: DateParser | None = None,
    ):
        self._providers = providers
        self._placeholders = placeholders or PlaceholderDef()
        self._default_notes = default_notes
        self._max_amount = max_earning_amount
        self._warn_on_zero = warn_on_zero_earnings
        self._dates = date_parser or DateParser()

    def parse_row(
        self,
        raw: RawRow,
        mapping: ColumnMapping,
        row_number: int,
        date_order: DateOrder,
    ) -> RowParseResult:
        dated = self._dates.parse(cell(raw, mapping, DATE), row_number, date_order)
        if not dated.success:
            return RowParseResult(success=False, issues=(dated.issue,))

        warnings: list[ImportIssue] = []

        driver = cell(raw, mapping, DRIVER)
        if not driver:
            driver = self._placeholders.driver
            warnings.append(ImportIssue.warning(
                row_number,
                f"missing driver; using placeholder {driver!r}",
                MISSING_DRIVER,
                DRIVER.key,
            ))

        vehicle = cell(raw, mapping, VEHICLE)
        if not vehicle:
            vehicle = self._placeholders.vehicle
            warnings.append(ImportIssue.warning(
                row_number,
                f"missing vehicle; using placeholder {vehicle!r}",
                MISSING_VEHICLE,
                VEHICLE.key,
            ))

        earnings = {name: ZERO for name in self._providers}
        for canonical in mapping.earning_fields:
            amount, issue = self._earning(cell(raw, mapping, canonical), canonical, row_number)
            earnings[canonical.provider] = amount
            if issue is not None:
                warnings.append(issue)

        if self._warn_on_zero and mapping.earning_fields and not any(earnings.values()):
            warnings.append(ImportIssue.warning(row_number, "all earnings are zero", ZERO_EARNINGS))

        record = RowRecord(
            row_number=row_number,
            date=dated.value,
            driver_name=driver,
            vehicle_name=vehicle,
            earnings=earnings,
            notes=cell(raw, mapping, NOTES) or self._default_notes,
        )
        return RowParseResult(success=True, record=record, issues=tuple(warnings))

    def _earning(
        self, text: str, canonical: CanonicalField, row_number: int
    ) -> tuple[Decimal, ImportIssue | None]:
        provider = canonical.provider
        amount = _exact_amount(text)
        if amount is None:
            return ZERO, ImportIssue.warning(
                row_number, f"invalid {provider} amount: {text}; using 0", INVALID_AMOUNT, canonical.key
            )
        if amount < 0:
            return ZERO, ImportIssue.warning(
                row_number, f"negative {provider} amount: {text}; using 0", NEGATIVE_AMOUNT, canonical.key
            )
        rounded = to_cents(amount)
        if rounded > self._max_amount:
            return ZERO, ImportIssue.warning(
                row_number,
                f"{provider} amount {text} exceeds the maximum {self._max_amount}; using 0",
                AMOUNT_TOO_LARGE,
                canonical.key,
            )
        if rounded != amount:
            return rounded, ImportIssue.warning(
                row_number,
                f"{provider} amount {text} has more than two decimals; rounded to {rounded}",
                AMOUNT_ROUNDED,
                canonical.key,
            )
        return rounded, None
