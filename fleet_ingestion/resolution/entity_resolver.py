"""
Entity resolver: RowRecords -> driver and vehicle ids.

Needs the complete set of distinct names before it creates anything, so it
runs once over all parsed records. Names are keyed case-insensitively
(``name_key``); each unmatched key is created exactly once, using the first
spelling seen. A failed creation only rejects the rows that reference it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Mapping
from uuid import UUID

from fleet_ingestion.domain.types import (
    DRIVER,
    VEHICLE,
    EntityKind,
    EntityStub,
    ImportIssue,
    RowRecord,
)
from fleet_kernel.domain.names import name_key
from fleet_kernel.exceptions import EntityCreationError
from fleet_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from fleet_ingestion.services.persistence_gateway import PersistenceGateway

logger = get_logger("ingestion.entity_resolver")

ENTITY_CREATION_FAILED = "ENTITY_CREATION_FAILED"

ExistingEntities = Mapping[EntityKind, Mapping[str, UUID]]

_FIELD_OF = {EntityKind.DRIVER: DRIVER.key, EntityKind.VEHICLE: VEHICLE.key}


@dataclass(frozen=True)
class ResolvedRecord:
    """A RowRecord with both of its entity references resolved."""

    record: RowRecord
    driver_id: UUID
    vehicle_id: UUID


def _names_of(record: RowRecord) -> tuple[tuple[EntityKind, str], ...]:
    return ((EntityKind.DRIVER, record.driver_name), (EntityKind.VEHICLE, record.vehicle_name))


def collect_stubs(records: Iterable[RowRecord]) -> dict[tuple[EntityKind, str], EntityStub]:
    """Distinct referenced names, in first-seen order."""
    stubs: dict[tuple[EntityKind, str], EntityStub] = {}
    for record in records:
        for kind, name in _names_of(record):
            key = name_key(name)
            if (kind, key) not in stubs:
                stubs[(kind, key)] = EntityStub(kind=kind, name=" ".join(name.split()), key=key)
    return stubs


@dataclass
class EntityResolutionPlan:
    """Outcome of resolution: one stub per distinct (kind, key)."""

    stubs: dict[tuple[EntityKind, str], EntityStub] = field(default_factory=dict)

    @property
    def created_counts(self) -> dict[EntityKind, int]:
        counts = {kind: 0 for kind in EntityKind}
        for stub in self.stubs.values():
            if stub.created:
                counts[stub.kind] += 1
        return counts

    @property
    def failed(self) -> tuple[EntityStub, ...]:
        return tuple(s for s in self.stubs.values() if s.error is not None)

    def id_for(self, kind: EntityKind, name: str) -> UUID | None:
        stub = self.stubs.get((kind, name_key(name)))
        return stub.resolved_id if stub else None

    def apply(
        self, records: Iterable[RowRecord]
    ) -> tuple[list[ResolvedRecord], list[ImportIssue]]:
        """Attach ids to records; rows naming a failed entity become ERROR issues."""
        resolved: list[ResolvedRecord] = []
        issues: list[ImportIssue] = []
        for record in records:
            ids: dict[EntityKind, UUID] = {}
            for kind, name in _names_of(record):
                stub = self.stubs[(kind, name_key(name))]
                if not stub.is_resolved:
                    issues.append(ImportIssue.error(
                        record.row_number,
                        f"could not create {kind.value} {name!r}: {stub.error}",
                        ENTITY_CREATION_FAILED,
                        _FIELD_OF[kind],
                    ))
                else:
                    ids[kind] = stub.resolved_id
            if len(ids) == len(EntityKind):
                resolved.append(ResolvedRecord(
                    record=record,
                    driver_id=ids[EntityKind.DRIVER],
                    vehicle_id=ids[EntityKind.VEHICLE],
                ))
        return resolved, issues


class EntityResolver:
    """Looks up or creates the drivers and vehicles a set of records references."""

    def __init__(self, gateway: PersistenceGateway):
        self._gateway = gateway

    def snapshot_existing(self, records: Iterable[RowRecord]) -> dict[EntityKind, dict[str, UUID]]:
        """Read once which referenced names already exist, keyed by ``name_key``."""
        existing: dict[EntityKind, dict[str, UUID]] = {kind: {} for kind in EntityKind}
        for (kind, key), stub in collect_stubs(records).items():
            entity_id = self._gateway.find_entity_by_name(kind, stub.name)
            if entity_id is not None:
                existing[kind][key] = entity_id
        return existing

    def resolve(
        self, records: Iterable[RowRecord], existing: ExistingEntities
    ) -> EntityResolutionPlan:
        plan = EntityResolutionPlan(stubs=collect_stubs(records))
        known = {
            kind: {name_key(k): v for k, v in existing.get(kind, {}).items()}
            for kind in EntityKind
        }
        for (kind, key), stub in plan.stubs.items():
            if key in known[kind]:
                stub.resolved_id = known[kind][key]
                continue
            try:
                stub.resolved_id = self._gateway.create_entity(kind, stub.name)
                stub.created = True
            except Exception as exc:
                if isinstance(exc, EntityCreationError):
                    stub.error = exc.reason
                else:
                    stub.error = str(exc) or type(exc).__name__
                logger.warning(
                    "entity_creation_failed",
                    extra={"entity_kind": kind.value, "entity_name": stub.name, "error": stub.error},
                )
                continue
            logger.info(
                "entity_created",
                extra={"entity_kind": kind.value, "entity_name": stub.name, "entity_id": str(stub.resolved_id)},
            )
        return plan
