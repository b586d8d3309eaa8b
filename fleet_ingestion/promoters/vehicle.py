"""
Vehicle promoter: imported vehicle name -> Vehicle row.

The name is split on its first space into make and model ("Toyota Camry").
A one-word name keeps the whole word as make and model "Unknown". New
vehicles get model year 2020 and a unique ``IMPORT-xxxxxxxx`` plate until an
administrator fills in the real values.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from fleet_ingestion.promoters.base import PromoteResult, clean_str
from fleet_kernel.domain.clock import Clock
from fleet_kernel.domain.names import name_key
from fleet_kernel.models.vehicle import Vehicle

DEFAULT_MODEL_YEAR = 2020
UNKNOWN_MODEL = "Unknown"
PLATE_PREFIX = "IMPORT-"


def split_make_model(name: str) -> tuple[str, str]:
    parts = name.split(maxsplit=1)
    if len(parts) == 2:
        return parts[0], parts[1]
    return name, UNKNOWN_MODEL


def placeholder_plate() -> str:
    return PLATE_PREFIX + str(uuid4())[:8]


class VehiclePromoter:
    """Promotes a vehicle name to a Vehicle row. Entity type: vehicle."""

    entity_type: str = "vehicle"

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
            return PromoteResult(success=False, error="Missing vehicle name")

        make, model = split_make_model(name)
        now = clock.now_utc()
        vehicle = Vehicle(
            name=name,
            name_key=name_key(name),
            make=make[:100],
            model=model[:100],
            year=DEFAULT_MODEL_YEAR,
            license_plate=clean_str(mapped_data, "license_plate") or placeholder_plate(),
            is_active=True,
            created_from_import=True,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
            updated_by_id=None,
        )
        session.add(vehicle)
        session.flush()
        return PromoteResult(success=True, entity_id=vehicle.id)

    def find_existing(self, name: str, session: Session) -> UUID | None:
        stmt = select(Vehicle.id).where(Vehicle.name_key == name_key(name)).order_by(Vehicle.created_at)
        return session.scalars(stmt).first()
