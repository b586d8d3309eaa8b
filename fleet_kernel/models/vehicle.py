"""
Module: fleet_kernel.models.vehicle
Responsibility: ORM persistence for fleet vehicles.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - license_plate is unique (uq_vehicle_license_plate).
    - name is the display name ("Toyota Camry"); name_key is its case-folded
      form used for import matching.

Failure modes:
    - IntegrityError on duplicate license_plate.
"""

from sqlalchemy import Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase


class Vehicle(TrackedBase):
    """
    A vehicle in the fleet.

    Vehicles auto-provisioned by an import carry a placeholder
    ``IMPORT-xxxxxxxx`` plate and a default model year until an
    administrator fills in the real values.
    """

    __tablename__ = "vehicles"

    __table_args__ = (
        UniqueConstraint("license_plate", name="uq_vehicle_license_plate"),
        Index("idx_vehicle_name_key", "name_key"),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    name_key: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    make: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    model: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    license_plate: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    created_from_import: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    def __repr__(self) -> str:
        return f"<Vehicle {self.name!r} plate={self.license_plate!r}>"
