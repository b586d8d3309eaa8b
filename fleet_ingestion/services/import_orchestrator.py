"""
Import orchestrator: uploaded bytes -> persisted daily entries + ImportSummary.

State machine::

    IDLE -> READING -> MAPPING -> PARSING -> RESOLVING -> PERSISTING -> COMPLETE
                          |
                          +-> ABORTED   (missing DATE column)

    READING .. PERSISTING -> CANCELLED  (cancel signal seen at a boundary)

Phases run strictly in sequence; each needs the complete output of the one
before. Cancellation is honored at phase boundaries and between persisted
rows; rows already saved stay saved. Row-level defects never raise. They are
collected as ImportIssue values and returned in the summary.

Uses structured logging (LogContext, get_logger("ingestion.*")).
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator
from uuid import UUID, uuid4

from fleet_config.schema import DateOrder
from fleet_ingestion.adapters.base import SourceAdapter, SourceTable
from fleet_ingestion.adapters.csv_adapter import CsvSourceAdapter
from fleet_ingestion.domain.types import (
    DATE,
    FILE_LEVEL_ROW,
    ColumnMapping,
    DailyEntryDraft,
    EntityKind,
    ImportIssue,
    ImportState,
    ImportSummary,
    ProgressSink,
    ProgressSnapshot,
    RawRow,
    RowRecord,
    SessionConfig,
    sort_issues,
)
from fleet_ingestion.mapping.column_mapper import ColumnMapper
from fleet_ingestion.parsing.date_parser import detect_date_order
from fleet_ingestion.parsing.row_parser import RowParser, RowParseResult
from fleet_ingestion.resolution.entity_resolver import EntityResolver, ResolvedRecord
from fleet_ingestion.services.persistence_gateway import PersistenceGateway
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.exceptions import (
    ImportAlreadyRunError,
    InvalidStateTransitionError,
    MappingError,
)
from fleet_kernel.logging_config import LogContext, get_logger

logger = get_logger("ingestion.import_orchestrator")

# Issue codes
MAPPING_WARNING = "MAPPING_WARNING"
DATE_ORDER_UNDETERMINED = "DATE_ORDER_UNDETERMINED"
PERSISTENCE_FAILED = "PERSISTENCE_FAILED"

_TRANSITIONS: dict[ImportState, frozenset[ImportState]] = {
    ImportState.IDLE: frozenset({ImportState.READING}),
    ImportState.READING: frozenset({ImportState.MAPPING, ImportState.CANCELLED}),
    ImportState.MAPPING: frozenset({ImportState.PARSING, ImportState.ABORTED, ImportState.CANCELLED}),
    ImportState.PARSING: frozenset({ImportState.RESOLVING, ImportState.CANCELLED}),
    ImportState.RESOLVING: frozenset({ImportState.PERSISTING, ImportState.CANCELLED}),
    ImportState.PERSISTING: frozenset({ImportState.COMPLETE, ImportState.CANCELLED}),
}

# Percent complete on entering each state; PERSISTING climbs to _PERSIST_END
_PERCENT: dict[ImportState, int] = {
    ImportState.IDLE: 0,
    ImportState.READING: 10,
    ImportState.MAPPING: 20,
    ImportState.PARSING: 30,
    ImportState.RESOLVING: 40,
    ImportState.PERSISTING: 50,
    ImportState.COMPLETE: 100,
    ImportState.ABORTED: 100,
}
_PERSIST_END = 95


def _is_blank(raw: RawRow) -> bool:
    return all(not cell.strip() for cell in raw)


class ImportOrchestrator:
    """
    Runs one import from bytes to persisted entries. Single-use.

    The gateway is the only storage dependency; the caller owns the outer
    transaction and decides when to commit.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        clock: Clock | None = None,
        adapter: SourceAdapter | None = None,
        import_id: UUID | None = None,
    ):
        self._gateway = gateway
        self._clock = clock or SystemClock()
        self._adapter = adapter or CsvSourceAdapter()
        self._import_id = import_id or uuid4()
        self._state = ImportState.IDLE
        self._sink: ProgressSink | None = None
        self._issues: list[ImportIssue] = []
        self._percent = 0
        self._total_rows = 0
        self._processed_rows = 0

    @property
    def import_id(self) -> UUID:
        return self._import_id

    @property
    def state(self) -> ImportState:
        return self._state

    # ------------------------------------------------------------------
    # State and progress
    # ------------------------------------------------------------------

    def _transition(self, to_state: ImportState) -> None:
        if to_state not in _TRANSITIONS.get(self._state, frozenset()):
            raise InvalidStateTransitionError(self._state.value, to_state.value)
        logger.debug(
            "import_state_changed",
            extra={"from_state": self._state.value, "to_state": to_state.value},
        )
        self._state = to_state
        self._percent = _PERCENT.get(to_state, self._percent)
        self._emit()

    @contextmanager
    def _phase(self, state: ImportState) -> Iterator[None]:
        self._transition(state)
        with LogContext.bind(phase=state.value):
            yield

    def _emit(self) -> None:
        if self._sink is None:
            return
        errors = sum(1 for i in self._issues if i.is_error)
        self._sink(ProgressSnapshot(
            current_step=self._state,
            percent_complete=self._percent,
            errors_so_far=errors,
            warnings_so_far=len(self._issues) - errors,
            processed_rows=self._processed_rows,
            total_rows=self._total_rows,
        ))

    def _cancelled(self, session: SessionConfig) -> bool:
        if not session.cancel_requested:
            return False
        logger.info("import_cancel_requested", extra={"state": self._state.value})
        self._transition(ImportState.CANCELLED)
        return True

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(
        self,
        file_bytes: bytes,
        session: SessionConfig,
        progress_sink: ProgressSink | None = None,
    ) -> ImportSummary:
        """
        Import ``file_bytes`` under ``session``.

        Raises:
            ImportAlreadyRunError: if this instance already ran.
            SourceReadError: if the bytes cannot be decoded into rows.
        """
        if self._state is not ImportState.IDLE:
            raise ImportAlreadyRunError(str(self._import_id), self._state.value)
        self._sink = progress_sink

        with LogContext.bind(import_id=str(self._import_id), producer="ingestion"):
            logger.info(
                "import_started",
                extra={
                    "byte_count": len(file_bytes),
                    "date_order": session.date_order.value,
                    "providers": list(session.aliases.provider_names),
                },
            )
            try:
                return self._run(file_bytes, session)
            except Exception as exc:
                logger.error(
                    "import_failed",
                    extra={"state": self._state.value, "error_type": type(exc).__name__, "error": str(exc)},
                )
                raise

    def _run(self, file_bytes: bytes, session: SessionConfig) -> ImportSummary:
        with self._phase(ImportState.READING):
            table = self._adapter.read(file_bytes, {"delimiter": session.delimiter})
            logger.info(
                "source_read",
                extra={"row_count": table.row_count, "delimiter": table.delimiter, "columns": list(table.header)},
            )
        if self._cancelled(session):
            return self._summary()

        with self._phase(ImportState.MAPPING):
            try:
                mapping = ColumnMapper(session.aliases).map(table.header)
            except MappingError as exc:
                self._issues.append(ImportIssue.error(FILE_LEVEL_ROW, str(exc), exc.code, DATE.key))
                logger.warning(
                    "import_aborted",
                    extra={"reason": exc.code, "available_headers": list(exc.available_headers)},
                )
                self._transition(ImportState.ABORTED)
                return self._summary()
            for warning in mapping.warnings:
                self._issues.append(ImportIssue.warning(FILE_LEVEL_ROW, warning, MAPPING_WARNING))
            logger.info(
                "columns_mapped",
                extra={
                    "columns": {f.key: i for f, i in mapping.columns.items()},
                    "mapping_warnings": list(mapping.warnings),
                },
            )
            date_order = self._date_order(table, mapping, session)
        if self._cancelled(session):
            return self._summary()

        with self._phase(ImportState.PARSING):
            records, skipped_blank = self._parse(table, mapping, session, date_order)
        if self._cancelled(session):
            return self._summary(skipped_blank_rows=skipped_blank)

        with self._phase(ImportState.RESOLVING):
            resolver = EntityResolver(self._gateway)
            existing = resolver.snapshot_existing(records)
            plan = resolver.resolve(records, existing)
            resolved, entity_issues = plan.apply(records)
            self._issues.extend(entity_issues)
            created = plan.created_counts
            logger.info(
                "entities_resolved",
                extra={
                    "distinct_entities": len(plan.stubs),
                    "created_counts": {k.value: n for k, n in created.items()},
                    "failed": len(plan.failed),
                },
            )
        if self._cancelled(session):
            return self._summary(created, skipped_blank)

        with self._phase(ImportState.PERSISTING):
            persisted, interrupted = self._persist(resolved, session)
        if interrupted:
            self._transition(ImportState.CANCELLED)
            return self._summary(created, skipped_blank, persisted)

        self._transition(ImportState.COMPLETE)
        summary = self._summary(created, skipped_blank, persisted)
        logger.info(
            "import_completed",
            extra={
                "total_rows": summary.total_rows,
                "succeeded_rows": summary.succeeded_rows,
                "failed_rows": summary.failed_rows,
                "warned_rows": summary.warned_rows,
                "skipped_blank_rows": skipped_blank,
            },
        )
        return summary

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _date_order(
        self, table: SourceTable, mapping: ColumnMapping, session: SessionConfig
    ) -> DateOrder:
        if session.date_order is not DateOrder.AUTO:
            return session.date_order
        index = mapping.index_of(DATE)
        cells = (raw[index] for raw in table.rows if index < len(raw))
        order, warning = detect_date_order(cells, DateOrder.DAY_FIRST)
        if warning:
            self._issues.append(ImportIssue.warning(FILE_LEVEL_ROW, warning, DATE_ORDER_UNDETERMINED, DATE.key))
        logger.info("date_order_detected", extra={"date_order": order.value, "fallback": warning is not None})
        return order

    def _parse(
        self,
        table: SourceTable,
        mapping: ColumnMapping,
        session: SessionConfig,
        date_order: DateOrder,
    ) -> tuple[list[RowRecord], int]:
        parser = RowParser(
            providers=session.aliases.provider_names,
            placeholders=session.placeholders,
            default_notes=session.default_notes,
            max_earning_amount=session.max_earning_amount,
            warn_on_zero_earnings=session.warn_on_zero_earnings,
        )
        # Row numbers count blank rows too, so they match the file
        numbered = [(n, raw) for n, raw in enumerate(table.rows, start=1) if not _is_blank(raw)]
        skipped_blank = table.row_count - len(numbered)
        self._total_rows = len(numbered)

        def parse_one(item: tuple[int, RawRow]) -> RowParseResult:
            row_number, raw = item
            return parser.parse_row(raw, mapping, row_number, date_order)

        if session.parse_workers > 1 and len(numbered) > 1:
            with ThreadPoolExecutor(max_workers=session.parse_workers) as pool:
                results = list(pool.map(parse_one, numbered))
        else:
            results = [parse_one(item) for item in numbered]

        records: list[RowRecord] = []
        row_issues: list[ImportIssue] = []
        for result in results:
            row_issues.extend(result.issues)
            if result.success:
                records.append(result.record)
            else:
                for issue in result.issues:
                    logger.info(
                        "row_rejected",
                        extra={"source_row": issue.row_number, "error_code": issue.code, "error_msg": issue.message},
                    )
        self._issues.extend(sort_issues(row_issues))
        records.sort(key=lambda r: r.row_number)

        logger.info(
            "rows_parsed",
            extra={
                "total_rows": self._total_rows,
                "parsed_rows": len(records),
                "rejected_rows": self._total_rows - len(records),
                "skipped_blank_rows": skipped_blank,
            },
        )
        return records, skipped_blank

    def _persist(
        self, resolved: list[ResolvedRecord], session: SessionConfig
    ) -> tuple[list[int], bool]:
        """Save every resolved row. Returns (saved source rows, interrupted by cancellation)."""
        persisted: list[int] = []
        every = max(1, session.progress_every_rows)
        now = self._clock.now_utc()
        # Rows already excluded before persistence count as processed
        self._processed_rows = self._total_rows - len(resolved)

        for position, item in enumerate(resolved, start=1):
            if session.cancel_requested:
                logger.info(
                    "import_cancel_requested",
                    extra={"state": self._state.value, "source_row": item.record.row_number},
                )
                return persisted, True
            draft = self._draft(item, now)
            try:
                result = self._gateway.save_entry(draft)
                ok, error = result.success, result.error
            except Exception as exc:
                ok, error = False, f"{type(exc).__name__}: {exc}"

            if ok:
                persisted.append(draft.source_row)
                logger.info(
                    "entry_persisted",
                    extra={"source_row": draft.source_row, "entry_id": str(draft.entry_id)},
                )
            else:
                issue = ImportIssue.error(
                    draft.source_row, f"could not save entry: {error or 'unknown error'}", PERSISTENCE_FAILED
                )
                self._issues.append(issue)
                logger.warning(
                    "row_persist_failed",
                    extra={"source_row": draft.source_row, "error_code": issue.code, "error_msg": issue.message},
                )

            self._processed_rows += 1
            if position % every == 0 or position == len(resolved):
                self._percent = _PERCENT[ImportState.PERSISTING] + (
                    (_PERSIST_END - _PERCENT[ImportState.PERSISTING]) * position // len(resolved)
                )
                self._emit()

        return persisted, False

    def _draft(self, item: ResolvedRecord, now: datetime) -> DailyEntryDraft:
        record = item.record
        return DailyEntryDraft(
            entry_id=uuid4(),
            business_date=record.date,
            driver_id=item.driver_id,
            driver_name=record.driver_name,
            vehicle_id=item.vehicle_id,
            vehicle_name=record.vehicle_name,
            earnings=record.earnings,
            notes=record.notes,
            source_row=record.row_number,
            created_at=now,
            updated_at=now,
            import_id=self._import_id,
        )

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def _summary(
        self,
        created: dict[EntityKind, int] | None = None,
        skipped_blank_rows: int = 0,
        persisted: list[int] | None = None,
    ) -> ImportSummary:
        issues = sort_issues(self._issues)
        failed = len({i.row_number for i in issues if i.is_error and i.row_number != FILE_LEVEL_ROW})
        return ImportSummary(
            import_id=self._import_id,
            final_state=self._state,
            total_rows=self._total_rows,
            succeeded_rows=len(persisted or ()),
            failed_rows=failed,
            issues=issues,
            created_entity_counts=created or {kind: 0 for kind in EntityKind},
            skipped_blank_rows=skipped_blank_rows,
            persisted_rows=frozenset(persisted or ()),
        )
