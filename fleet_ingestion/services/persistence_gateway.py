"""
Persistence gateway: the storage contract the import pipeline writes through.

``PersistenceGateway`` is the minimal read/write protocol the orchestrator and
entity resolver depend on. ``SqlAlchemyPersistenceGateway`` implements it over
a SQLAlchemy session, running every write inside its own SAVEPOINT so that one
failed row rolls back alone. The outer transaction belongs to the caller.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_ingestion.domain.types import DailyEntryDraft, EntityKind
from fleet_ingestion.promoters.base import EntityPromoter, NamedEntityPromoter, PromoteResult
from fleet_ingestion.promoters.daily_entry import DailyEntryPromoter, draft_to_mapped
from fleet_ingestion.promoters.driver import DriverPromoter
from fleet_ingestion.promoters.vehicle import VehiclePromoter
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.exceptions import EntityCreationError
from fleet_kernel.logging_config import get_logger

logger = get_logger("ingestion.persistence_gateway")


@runtime_checkable
class PersistenceGateway(Protocol):
    """What the import needs from storage."""

    def find_entity_by_name(self, kind: EntityKind, name: str) -> UUID | None:
        """Case-insensitive exact-name lookup; None when no such entity exists."""
        ...

    def create_entity(self, kind: EntityKind, name: str) -> UUID:
        """Create an entity and return its id. Raises on failure."""
        ...

    def save_entry(self, entry: DailyEntryDraft) -> PromoteResult:
        """Persist one daily entry. Failures are returned, not raised."""
        ...


class SqlAlchemyPersistenceGateway:
    """PersistenceGateway over a SQLAlchemy session, SAVEPOINT per write."""

    def __init__(
        self,
        session: Session,
        actor_id: UUID,
        clock: Clock | None = None,
        driver_promoter: NamedEntityPromoter | None = None,
        vehicle_promoter: NamedEntityPromoter | None = None,
        entry_promoter: EntityPromoter | None = None,
    ):
        self._session = session
        self._actor_id = actor_id
        self._clock = clock or SystemClock()
        self._entity_promoters: dict[EntityKind, NamedEntityPromoter] = {
            EntityKind.DRIVER: driver_promoter or DriverPromoter(),
            EntityKind.VEHICLE: vehicle_promoter or VehiclePromoter(),
        }
        self._entry_promoter: EntityPromoter = entry_promoter or DailyEntryPromoter()

    def find_entity_by_name(self, kind: EntityKind, name: str) -> UUID | None:
        return self._entity_promoters[kind].find_existing(name, self._session)

    def create_entity(self, kind: EntityKind, name: str) -> UUID:
        promoter = self._entity_promoters[kind]
        savepoint = self._session.begin_nested()
        try:
            result = promoter.promote({"name": name}, self._session, self._actor_id, self._clock)
        except Exception as exc:
            savepoint.rollback()
            raise EntityCreationError(kind.value, name, str(exc)) from exc
        if not result.success or result.entity_id is None:
            savepoint.rollback()
            raise EntityCreationError(kind.value, name, result.error or "Unknown error")
        savepoint.commit()
        return result.entity_id

    def save_entry(self, entry: DailyEntryDraft) -> PromoteResult:
        savepoint = self._session.begin_nested()
        try:
            result = self._entry_promoter.promote(
                draft_to_mapped(entry), self._session, self._actor_id, self._clock
            )
        except Exception as exc:
            savepoint.rollback()
            logger.warning(
                "entry_save_failed",
                extra={"source_row": entry.source_row, "error_type": type(exc).__name__, "error": str(exc)},
            )
            return PromoteResult(success=False, error=f"{type(exc).__name__}: {exc}")
        if not result.success:
            savepoint.rollback()
            logger.warning(
                "entry_save_failed",
                extra={"source_row": entry.source_row, "error_type": "rejected", "error": result.error},
            )
            return result
        savepoint.commit()
        return result
