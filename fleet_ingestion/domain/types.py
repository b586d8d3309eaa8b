"""
fleet_ingestion.domain.types -- Pure frozen dataclasses for the import pipeline.

ZERO I/O. Imports only from fleet_config.schema and fleet_kernel.domain.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping
from uuid import UUID

from fleet_config.schema import ColumnAliasTable, DateOrder, ImportConfigDef, PlaceholderDef


# =============================================================================
# Canonical fields and column mapping
# =============================================================================


class FieldKind(str, Enum):
    """Semantic identity of a column."""

    DATE = "date"
    DRIVER = "driver"
    VEHICLE = "vehicle"
    NOTES = "notes"
    EARNING = "earning"


@dataclass(frozen=True, order=True)
class CanonicalField:
    """A canonical column: one of the fixed kinds, or EARNING for a named provider."""

    kind: FieldKind
    provider: str | None = None

    @property
    def key(self) -> str:
        if self.kind is FieldKind.EARNING:
            return f"earning:{self.provider}"
        return self.kind.value

    @property
    def label(self) -> str:
        return self.provider if self.kind is FieldKind.EARNING else self.kind.name

    @classmethod
    def earning(cls, provider: str) -> CanonicalField:
        return cls(FieldKind.EARNING, provider)

    def __str__(self) -> str:
        return self.label


DATE = CanonicalField(FieldKind.DATE)
DRIVER = CanonicalField(FieldKind.DRIVER)
VEHICLE = CanonicalField(FieldKind.VEHICLE)
NOTES = CanonicalField(FieldKind.NOTES)


@dataclass(frozen=True)
class ColumnMapping:
    """
    Canonical field -> column index, built once per file.

    DATE is always present (the mapper raises MappingError otherwise).
    ``warnings`` are file-level notes (missing optional columns).
    """

    columns: Mapping[CanonicalField, int]
    headers: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", MappingProxyType(dict(self.columns)))

    def index_of(self, canonical: CanonicalField) -> int | None:
        return self.columns.get(canonical)

    def has(self, canonical: CanonicalField) -> bool:
        return canonical in self.columns

    @property
    def earning_fields(self) -> tuple[CanonicalField, ...]:
        return tuple(f for f in self.columns if f.kind is FieldKind.EARNING)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnMapping):
            return NotImplemented
        return (
            dict(self.columns) == dict(other.columns)
            and self.headers == other.headers
            and self.warnings == other.warnings
        )

    def __hash__(self) -> int:
        return hash((tuple(sorted(self.columns.items())), self.headers, self.warnings))


RawRow = tuple[str, ...]


# =============================================================================
# Issues
# =============================================================================


class IssueSeverity(str, Enum):
    """ERROR excludes the row from persistence; WARNING keeps it with a substituted value."""

    ERROR = "error"
    WARNING = "warning"


FILE_LEVEL_ROW = 0  # Row number used for issues about the file as a whole


@dataclass(frozen=True)
class ImportIssue:
    """One defect attributed to a data row (or to the file, with row_number 0)."""

    row_number: int
    severity: IssueSeverity
    message: str
    code: str = ""
    field: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is IssueSeverity.ERROR

    @classmethod
    def error(cls, row_number: int, message: str, code: str, field: str | None = None) -> ImportIssue:
        return cls(row_number, IssueSeverity.ERROR, message, code, field)

    @classmethod
    def warning(cls, row_number: int, message: str, code: str, field: str | None = None) -> ImportIssue:
        return cls(row_number, IssueSeverity.WARNING, message, code, field)


def sort_issues(issues: list[ImportIssue] | tuple[ImportIssue, ...]) -> tuple[ImportIssue, ...]:
    """Stable sort by row number; issues of one row keep their emission order."""
    return tuple(sorted(issues, key=lambda i: i.row_number))


# =============================================================================
# Records
# =============================================================================


@dataclass(frozen=True)
class RowRecord:
    """The validated, in-memory form of one source row prior to persistence."""

    row_number: int
    date: datetime  # Midnight UTC of the business day
    driver_name: str
    vehicle_name: str
    earnings: Mapping[str, Decimal] = field(default_factory=dict)
    notes: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "earnings", MappingProxyType(dict(self.earnings)))

    @property
    def total_earnings(self) -> Decimal:
        return sum(self.earnings.values(), Decimal("0"))


class EntityKind(str, Enum):
    """Entities auto-provisioned by the import."""

    DRIVER = "driver"
    VEHICLE = "vehicle"


@dataclass
class EntityStub:
    """A distinct referenced entity name during resolution. Mutable until resolved."""

    kind: EntityKind
    name: str  # First spelling seen, used if the entity has to be created
    key: str  # Case-insensitive lookup key
    resolved_id: UUID | None = None
    created: bool = False
    error: str | None = None

    @property
    def is_resolved(self) -> bool:
        return self.resolved_id is not None


@dataclass(frozen=True)
class DailyEntryDraft:
    """
    A resolved row ready for persistence.

    ``business_date`` is the parsed date from the file; ``created_at`` and
    ``updated_at`` are the wall-clock UTC time of the import.
    """

    entry_id: UUID
    business_date: datetime
    driver_id: UUID
    driver_name: str
    vehicle_id: UUID
    vehicle_name: str
    earnings: Mapping[str, Decimal]
    notes: str
    source_row: int
    created_at: datetime
    updated_at: datetime
    import_id: UUID | None = None

    @property
    def total_earnings(self) -> Decimal:
        return sum(self.earnings.values(), Decimal("0"))


# =============================================================================
# Session, progress, summary
# =============================================================================


class ImportState(str, Enum):
    """Orchestrator lifecycle. COMPLETE, ABORTED and CANCELLED are terminal."""

    IDLE = "idle"
    READING = "reading"
    MAPPING = "mapping"
    PARSING = "parsing"
    RESOLVING = "resolving"
    PERSISTING = "persisting"
    COMPLETE = "complete"
    ABORTED = "aborted"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ImportState.COMPLETE, ImportState.ABORTED, ImportState.CANCELLED)


@dataclass(frozen=True)
class ProgressSnapshot:
    """What a progress sink receives after each phase and every N persisted rows."""

    current_step: ImportState
    percent_complete: int
    errors_so_far: int
    warnings_so_far: int
    processed_rows: int = 0
    total_rows: int = 0


ProgressSink = Callable[[ProgressSnapshot], None]


@dataclass(frozen=True)
class SessionConfig:
    """
    Caller-supplied settings, fixed for one import run.

    ``cancel_event`` is any object with ``is_set()`` (a ``threading.Event``).
    """

    aliases: ColumnAliasTable
    date_order: DateOrder = DateOrder.DAY_FIRST
    cancel_event: threading.Event | None = None
    delimiter: str | None = None
    progress_every_rows: int = 25
    parse_workers: int = 1
    default_notes: str = "Imported from CSV"
    max_earning_amount: Decimal = Decimal("999999.99")
    warn_on_zero_earnings: bool = True
    placeholders: PlaceholderDef = field(default_factory=PlaceholderDef)

    @classmethod
    def from_config(cls, config: ImportConfigDef, **overrides: Any) -> SessionConfig:
        """Build a session from a loaded configuration, applying per-run overrides."""
        d = config.defaults
        session = cls(
            aliases=config.aliases,
            date_order=d.date_order,
            delimiter=d.delimiter,
            progress_every_rows=d.progress_every_rows,
            parse_workers=d.parse_workers,
            default_notes=d.default_notes,
            max_earning_amount=d.max_earning_amount,
            warn_on_zero_earnings=d.warn_on_zero_earnings,
            placeholders=d.placeholders,
        )
        return replace(session, **overrides) if overrides else session

    @property
    def cancel_requested(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass(frozen=True)
class ImportSummary:
    """Final outcome of one import run. Returned to the caller; not persisted."""

    import_id: UUID
    final_state: ImportState
    total_rows: int
    succeeded_rows: int
    failed_rows: int
    issues: tuple[ImportIssue, ...] = ()
    created_entity_counts: Mapping[EntityKind, int] = field(default_factory=dict)
    skipped_blank_rows: int = 0
    # Source row numbers of the entries actually saved
    persisted_rows: frozenset[int] = frozenset()

    @property
    def cancelled(self) -> bool:
        return self.final_state is ImportState.CANCELLED

    @property
    def aborted(self) -> bool:
        return self.final_state is ImportState.ABORTED

    @property
    def errors(self) -> tuple[ImportIssue, ...]:
        return tuple(i for i in self.issues if i.severity is IssueSeverity.ERROR)

    @property
    def warnings(self) -> tuple[ImportIssue, ...]:
        return tuple(i for i in self.issues if i.severity is IssueSeverity.WARNING)

    @property
    def warned_rows(self) -> int:
        """Rows persisted with at least one warning."""
        warned = {i.row_number for i in self.warnings if i.row_number != FILE_LEVEL_ROW}
        return len(warned & self.persisted_rows)

    @property
    def clean_rows(self) -> int:
        """Rows persisted with no issue at all."""
        return self.succeeded_rows - self.warned_rows

    @property
    def not_attempted_rows(self) -> int:
        """Rows neither persisted nor rejected (left over after a cancellation)."""
        return self.total_rows - self.succeeded_rows - self.failed_rows

    def issues_for_row(self, row_number: int) -> tuple[ImportIssue, ...]:
        return tuple(i for i in self.issues if i.row_number == row_number)
