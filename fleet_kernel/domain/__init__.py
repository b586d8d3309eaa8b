"""
fleet_kernel.domain -- Pure domain helpers shared by the import pipeline.

ZERO I/O (SystemClock aside).
"""

from fleet_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fleet_kernel.domain.names import name_key

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "name_key",
]
