"""
Module: fleet_kernel.models.driver
Responsibility: ORM persistence for drivers, the people daily earning entries
    are recorded against.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - name_key is the case-folded, whitespace-collapsed name and is what
      importers match on, so "maria", "Maria" and " MARIA " are one driver.

Failure modes:
    - IntegrityError if name is NULL.
"""

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fleet_kernel.db.base import TrackedBase


class Driver(TrackedBase):
    """
    A driver in the fleet.

    Drivers auto-provisioned by a bulk import have ``created_from_import``
    set so that an administrator can later link them to real user accounts.
    """

    __tablename__ = "drivers"

    __table_args__ = (
        Index("idx_driver_name_key", "name_key"),
        Index("idx_driver_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    name_key: Mapped[str] = mapped_column(
        String(255),
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
        return f"<Driver {self.name!r}>"
