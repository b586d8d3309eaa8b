"""
EntityPromoter protocol and PromoteResult.

Promoters build live ORM rows from mapped data. Each promotion runs inside a
SAVEPOINT managed by SqlAlchemyPersistenceGateway, so a failed row rolls back
alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_kernel.domain.clock import Clock


@dataclass(frozen=True)
class PromoteResult:
    """Result of a single promotion attempt."""

    success: bool
    entity_id: UUID | None = None
    error: str | None = None


class EntityPromoter(Protocol):
    """Protocol for turning mapped data into a live ORM row."""

    entity_type: str

    def promote(
        self,
        mapped_data: dict[str, Any],
        session: Session,
        actor_id: UUID,
        clock: Clock,
    ) -> PromoteResult:
        """Create the row from mapped data. Runs inside SAVEPOINT."""
        ...


def clean_str(d: dict[str, Any], key: str, default: str = "") -> str:
    """Whitespace-collapsed string value of ``key``; ``default`` when absent."""
    v = d.get(key)
    return " ".join(str(v).split()) if v is not None else default


class NamedEntityPromoter(EntityPromoter, Protocol):
    """A promoter for entities imports look up by name (drivers, vehicles)."""

    def find_existing(self, name: str, session: Session) -> UUID | None:
        """Id of the entity whose name matches ``name`` ignoring case, if any."""
        ...
