"""
Module: fleet_kernel.models.daily_entry
Responsibility: ORM persistence for daily earning entries, one per driver,
    vehicle and business day.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - business_date is midnight UTC of the calendar day the entry covers.
      It is independent of created_at / updated_at, which record when the
      row was written.
    - earnings maps provider name -> amount as a decimal string; the sum is
      denormalized into total_earnings.

Failure modes:
    - IntegrityError if driver_id or vehicle_id do not reference existing rows
      (on backends that enforce foreign keys).
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase, UUIDString


class DailyEntry(TrackedBase):
    """A day of earnings for one driver in one vehicle."""

    __tablename__ = "daily_entries"

    __table_args__ = (
        Index("idx_daily_entry_date", "business_date"),
        Index("idx_daily_entry_driver", "driver_id"),
        Index("idx_daily_entry_import", "import_id"),
    )

    business_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    driver_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("drivers.id"),
        nullable=False,
    )

    vehicle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("vehicles.id"),
        nullable=False,
    )

    # Names as written in the source, kept for display without a join
    driver_name: Mapped[str] = mapped_column(String(255), nullable=False)
    vehicle_name: Mapped[str] = mapped_column(String(255), nullable=False)

    earnings: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    total_earnings: Mapped[Decimal] = mapped_column(nullable=False)

    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Traceability back to the import that produced the row
    import_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    source_row: Mapped[int | None] = mapped_column(Integer, nullable=True)

    def __repr__(self) -> str:
        return f"<DailyEntry {self.business_date.date()} {self.driver_name!r} total={self.total_earnings}>"
