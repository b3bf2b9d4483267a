"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .availability_resolver import AvailabilityResolver, resolve_window
from .models import (
    CLOSED,
    BookedInterval,
    ClosedWindow,
    EffectiveWindow,
    MinuteRange,
    OpenWindow,
    ScheduleException,
    Slot,
    WeeklyAvailability,
)
from .slot_generator import SLOT_INTERVAL_MINUTES, SlotGenerator, exclude_past, generate_slots

__all__ = [
    "AvailabilityResolver",
    "resolve_window",
    "CLOSED",
    "BookedInterval",
    "ClosedWindow",
    "EffectiveWindow",
    "MinuteRange",
    "OpenWindow",
    "ScheduleException",
    "Slot",
    "WeeklyAvailability",
    "SLOT_INTERVAL_MINUTES",
    "SlotGenerator",
    "exclude_past",
    "generate_slots",
]
