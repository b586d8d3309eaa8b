"""SqlAlchemyPersistenceGateway: SAVEPOINT per write, failures isolated."""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from fleet_ingestion.domain.types import DailyEntryDraft, EntityKind
from fleet_ingestion.promoters import PromoteResult
from fleet_ingestion.services import PersistenceGateway, SqlAlchemyPersistenceGateway
from fleet_kernel.exceptions import EntityCreationError
from fleet_kernel.models import DailyEntry, Driver, Vehicle


@pytest.fixture
def gateway(session, test_actor_id, deterministic_clock):
    return SqlAlchemyPersistenceGateway(session, actor_id=test_actor_id, clock=deterministic_clock)


def _draft(driver_id, vehicle_id, source_row=1, clock_now=None):
    now = clock_now or datetime(2024, 1, 1, 12, tzinfo=timezone.utc)
    return DailyEntryDraft(
        entry_id=uuid4(),
        business_date=datetime(2023, 12, 25, tzinfo=timezone.utc),
        driver_id=driver_id,
        driver_name="John",
        vehicle_id=vehicle_id,
        vehicle_name="Camry",
        earnings={"uber": Decimal("10")},
        notes="",
        source_row=source_row,
        created_at=now,
        updated_at=now,
    )


def _count(session, model):
    return session.scalar(select(func.count()).select_from(model))


class TestEntities:
    def test_satisfies_protocol(self, gateway):
        assert isinstance(gateway, PersistenceGateway)

    def test_create_then_find(self, gateway):
        driver_id = gateway.create_entity(EntityKind.DRIVER, "Maria")
        assert gateway.find_entity_by_name(EntityKind.DRIVER, "maria") == driver_id
        assert gateway.find_entity_by_name(EntityKind.VEHICLE, "Maria") is None

    def test_create_vehicle(self, gateway, session):
        vehicle_id = gateway.create_entity(EntityKind.VEHICLE, "Toyota Camry")
        assert session.get(Vehicle, vehicle_id).make == "Toyota"

    def test_failed_create_raises_and_rolls_back(self, gateway, session):
        with pytest.raises(EntityCreationError) as exc_info:
            gateway.create_entity(EntityKind.DRIVER, "   ")
        assert exc_info.value.code == "ENTITY_CREATION_FAILED"
        assert exc_info.value.kind == "driver"
        assert _count(session, Driver) == 0

    def test_promoter_exception_wrapped(self, session, test_actor_id, deterministic_clock):
        class BrokenPromoter:
            entity_type = "driver"

            def promote(self, mapped_data, session, actor_id, clock):
                raise RuntimeError("constraint violated")

        gateway = SqlAlchemyPersistenceGateway(
            session, actor_id=test_actor_id, clock=deterministic_clock, driver_promoter=BrokenPromoter()
        )
        with pytest.raises(EntityCreationError, match="constraint violated"):
            gateway.create_entity(EntityKind.DRIVER, "Maria")


class TestSaveEntry:
    def test_save_entry(self, gateway, session):
        driver_id = gateway.create_entity(EntityKind.DRIVER, "John")
        vehicle_id = gateway.create_entity(EntityKind.VEHICLE, "Camry")
        result = gateway.save_entry(_draft(driver_id, vehicle_id))
        assert isinstance(result, PromoteResult)
        assert result.success is True
        assert _count(session, DailyEntry) == 1

    def test_failed_save_rolls_back_its_savepoint_only(self, session, test_actor_id, deterministic_clock):
        from fleet_ingestion.promoters import DailyEntryPromoter
        from fleet_kernel.domain.names import name_key

        class HalfWritePromoter(DailyEntryPromoter):
            """Writes a stray driver row, then fails on row 2."""

            def promote(self, mapped_data, session, actor_id, clock, **kwargs):
                if mapped_data["source_row"] == 2:
                    now = clock.now_utc()
                    session.add(Driver(
                        name="stray", name_key=name_key("stray"), created_at=now,
                        updated_at=now, created_by_id=actor_id,
                    ))
                    session.flush()
                    raise RuntimeError("disk full")
                return super().promote(mapped_data, session, actor_id, clock)

        gateway = SqlAlchemyPersistenceGateway(
            session, actor_id=test_actor_id, clock=deterministic_clock, entry_promoter=HalfWritePromoter()
        )
        driver_id = gateway.create_entity(EntityKind.DRIVER, "John")
        vehicle_id = gateway.create_entity(EntityKind.VEHICLE, "Camry")

        assert gateway.save_entry(_draft(driver_id, vehicle_id, source_row=1)).success is True
        result = gateway.save_entry(_draft(driver_id, vehicle_id, source_row=2))
        assert result.success is False
        assert result.error == "RuntimeError: disk full"
        assert gateway.save_entry(_draft(driver_id, vehicle_id, source_row=3)).success is True

        assert _count(session, DailyEntry) == 2
        assert _count(session, Driver) == 1  # the stray row was rolled back

    def test_failed_save_logged(self, gateway, captured_logs):
        driver_id = gateway.create_entity(EntityKind.DRIVER, "John")
        vehicle_id = gateway.create_entity(EntityKind.VEHICLE, "Camry")
        draft = _draft(driver_id, vehicle_id)
        draft = replace(draft, driver_id=None)
        gateway.save_entry(draft)
        failed = [r for r in captured_logs() if r["message"] == "entry_save_failed"]
        assert failed and failed[0]["source_row"] == 1
