"""
Module: fleet_kernel.db.base
Responsibility: Declarative base for the fleet ORM models: uuid4 primary
    keys, the column type for each Python annotation, and audit columns.
Architecture position: Kernel > DB.  MUST NOT import from models/ or from
    fleet_ingestion.

Invariants enforced:
    - Money (``Decimal``) is Numeric(14, 2): two decimal places, never float.
      The largest importable amount, 999999.99 per provider, summed over any
      realistic provider count, fits.
    - Every timestamp column is timezone-aware.
    - UUIDs are stored as 36-character strings so SQLite and PostgreSQL
      share one schema.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID <-> String(36)."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """Declarative base; every model gets a uuid4 ``id``."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(14, 2),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Abstract base adding who wrote a row and when.

    created_at / updated_at fall back to the database clock. Importers set
    them from an injected Clock instead, so all rows of one import carry the
    same wall-clock UTC instant.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())
    created_by_id: Mapped[UUID] = mapped_column()
    updated_by_id: Mapped[UUID | None] = mapped_column()
