"""
Daily entry promoter: DailyEntryDraft -> DailyEntry row.

Earnings are stored as decimal strings per provider; the total is
denormalized. ``business_date`` comes from the file, ``created_at`` and
``updated_at`` from the draft (the import's wall-clock time).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_ingestion.domain.types import DailyEntryDraft
from fleet_ingestion.promoters.base import PromoteResult
from fleet_kernel.domain.clock import Clock
from fleet_kernel.models.daily_entry import DailyEntry


def draft_to_mapped(draft: DailyEntryDraft) -> dict[str, Any]:
    return {
        "entry_id": draft.entry_id,
        "business_date": draft.business_date,
        "driver_id": draft.driver_id,
        "driver_name": draft.driver_name,
        "vehicle_id": draft.vehicle_id,
        "vehicle_name": draft.vehicle_name,
        "earnings": dict(draft.earnings),
        "notes": draft.notes,
        "source_row": draft.source_row,
        "import_id": draft.import_id,
        "created_at": draft.created_at,
        "updated_at": draft.updated_at,
    }


class DailyEntryPromoter:
    """Promotes a resolved row to a DailyEntry. Entity type: daily_entry."""

    entity_type: str = "daily_entry"

    def promote(
        self,
        mapped_data: dict[str, Any],
        session: Session,
        actor_id: UUID,
        clock: Clock,
        **kwargs: Any,
    ) -> PromoteResult:
        for key in ("business_date", "driver_id", "vehicle_id"):
            if mapped_data.get(key) is None:
                return PromoteResult(success=False, error=f"Missing {key}")

        earnings = mapped_data.get("earnings") or {}
        now = clock.now_utc()
        entry = DailyEntry(
            business_date=mapped_data["business_date"],
            driver_id=mapped_data["driver_id"],
            driver_name=mapped_data.get("driver_name") or "",
            vehicle_id=mapped_data["vehicle_id"],
            vehicle_name=mapped_data.get("vehicle_name") or "",
            earnings={provider: str(amount) for provider, amount in earnings.items()},
            total_earnings=sum(earnings.values(), Decimal("0")),
            notes=mapped_data.get("notes") or "",
            import_id=mapped_data.get("import_id"),
            source_row=mapped_data.get("source_row"),
            created_at=mapped_data.get("created_at") or now,
            updated_at=mapped_data.get("updated_at") or now,
            created_by_id=actor_id,
            updated_by_id=None,
        )
        if mapped_data.get("entry_id") is not None:
            entry.id = mapped_data["entry_id"]
        session.add(entry)
        session.flush()
        return PromoteResult(success=True, entity_id=entry.id)
