"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, ScheduleStoreProtocol
from .cache import ScheduleCache

__all__ = ["AvailabilityService", "ScheduleStoreProtocol", "ScheduleCache"]
