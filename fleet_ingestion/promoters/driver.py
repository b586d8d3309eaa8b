"""
Driver promoter: imported driver name -> Driver row.

Drivers created by an import are active and flagged ``created_from_import``.
Lookup is by ``name_key``, so spelling and case variants find the same row.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fleet_ingestion.promoters.base import PromoteResult, clean_str
from fleet_kernel.domain.clock import Clock
from fleet_kernel.domain.names import name_key
from fleet_kernel.models.driver import Driver


class DriverPromoter:
    """Promotes a driver name to a Driver row. Entity type: driver."""

    entity_type: str = "driver"

    def promote(
        self,
        mapped_data: dict[str, Any],
        session: Session,
        actor_id: UUID,
        clock: Clock,
        **kwargs: Any,
    ) -> PromoteResult:
        name = clean_str(mapped_data, "name")
        if not name:
            return PromoteResult(success=False, error="Missing driver name")

        now = clock.now_utc()
        driver = Driver(
            name=name,
            name_key=name_key(name),
            is_active=True,
            created_from_import=True,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
            updated_by_id=None,
        )
        session.add(driver)
        session.flush()
        return PromoteResult(success=True, entity_id=driver.id)

    def find_existing(self, name: str, session: Session) -> UUID | None:
        stmt = select(Driver.id).where(Driver.name_key == name_key(name)).order_by(Driver.created_at)
        return session.scalars(stmt).first()
