"""Domain models for the fleet kernel."""

from fleet_kernel.models.daily_entry import DailyEntry
from fleet_kernel.models.driver import Driver
from fleet_kernel.models.vehicle import Vehicle

__all__ = [
    "DailyEntry",
    "Driver",
    "Vehicle",
]
