"""Pure domain types for the import pipeline (no I/O)."""

from fleet_ingestion.domain.types import (
    DATE,
    DRIVER,
    FILE_LEVEL_ROW,
    NOTES,
    VEHICLE,
    CanonicalField,
    ColumnMapping,
    DailyEntryDraft,
    EntityKind,
    EntityStub,
    FieldKind,
    ImportIssue,
    ImportState,
    ImportSummary,
    IssueSeverity,
    ProgressSink,
    ProgressSnapshot,
    RawRow,
    RowRecord,
    SessionConfig,
    sort_issues,
)

__all__ = [
    "DATE",
    "DRIVER",
    "FILE_LEVEL_ROW",
    "NOTES",
    "VEHICLE",
    "CanonicalField",
    "ColumnMapping",
    "DailyEntryDraft",
    "EntityKind",
    "EntityStub",
    "FieldKind",
    "ImportIssue",
    "ImportState",
    "ImportSummary",
    "IssueSeverity",
    "ProgressSink",
    "ProgressSnapshot",
    "RawRow",
    "RowRecord",
    "SessionConfig",
    "sort_issues",
]
