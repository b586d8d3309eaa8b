"""
Import configuration schema.

Human-authored, reviewable configuration for the bulk earnings import. YAML
is parsed into these frozen types by the loader. The alias table is pure
data: adding a header language or synonym is a YAML change, never a change
to matching logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class DateOrder(str, Enum):
    """Day/month convention for ambiguous numeric dates, fixed per import session."""

    DAY_FIRST = "day_first"  # 25/12/2023
    MONTH_FIRST = "month_first"  # 12/25/2023
    AUTO = "auto"  # Detect once per file, before any row is parsed


# ---------------------------------------------------------------------------
# Column aliases
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EarningProviderDef:
    """One earning provider (ride-hailing platform, private jobs, ...) and its header aliases."""

    name: str
    aliases: tuple[str, ...]


@dataclass(frozen=True)
class ColumnAliasTable:
    """Header aliases per canonical field, plus one alias list per earning provider."""

    date: tuple[str, ...]
    driver: tuple[str, ...] = ()
    vehicle: tuple[str, ...] = ()
    notes: tuple[str, ...] = ()
    earning_providers: tuple[EarningProviderDef, ...] = ()

    @property
    def provider_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.earning_providers)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlaceholderDef:
    """Names substituted when a row has no driver or vehicle."""

    driver: str = "Unknown Driver"
    vehicle: str = "Unknown Vehicle"


@dataclass(frozen=True)
class ImportDefaults:
    """Session defaults a caller may override per run."""

    date_order: DateOrder = DateOrder.DAY_FIRST
    delimiter: str | None = None  # None: sniff from the header line
    progress_every_rows: int = 25
    parse_workers: int = 1
    default_notes: str = "Imported from CSV"
    max_earning_amount: Decimal = Decimal("999999.99")
    warn_on_zero_earnings: bool = True
    placeholders: PlaceholderDef = field(default_factory=PlaceholderDef)


@dataclass(frozen=True)
class ImportConfigDef:
    """A parsed, validated import configuration file."""

    version: int
    aliases: ColumnAliasTable
    defaults: ImportDefaults
    checksum: str = ""
    source: str = ""
