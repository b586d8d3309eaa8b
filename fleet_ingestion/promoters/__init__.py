"""Promoters: mapped data -> live ORM rows (run inside a SAVEPOINT)."""

from fleet_ingestion.promoters.base import EntityPromoter, NamedEntityPromoter, PromoteResult
from fleet_ingestion.promoters.daily_entry import DailyEntryPromoter, draft_to_mapped
from fleet_ingestion.promoters.driver import DriverPromoter
from fleet_ingestion.promoters.vehicle import VehiclePromoter, split_make_model

__all__ = [
    "DailyEntryPromoter",
    "DriverPromoter",
    "EntityPromoter",
    "NamedEntityPromoter",
    "PromoteResult",
    "VehiclePromoter",
    "draft_to_mapped",
    "split_make_model",
]
