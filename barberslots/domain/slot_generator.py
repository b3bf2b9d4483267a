"""
Core business logic for generating bookable appointment slots.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O).
"""

from typing import List, Sequence

from .exceptions import InvalidDurationError
from .models import BookedInterval, EffectiveWindow, MinuteRange, OpenWindow, Slot

# Booking UI offers starts on :00 and :30 only, whatever the service length.
SLOT_INTERVAL_MINUTES = 30

DEFAULT_BOOKING_LEAD_MINUTES = 5


def validate_duration(duration_minutes: int) -> int:
    """Reject durations that are not a positive whole number of minutes."""
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise InvalidDurationError(
            f"Duration must be a whole number of minutes, got {duration_minutes!r}"
        )
    if duration_minutes <= 0:
        raise InvalidDurationError(f"Duration must be greater than zero, got {duration_minutes}")
    return duration_minutes


class SlotGenerator:
    """
    Generates the ordered list of valid start times inside a working window.

    Algorithm:
    1. Walk the window on a fixed 30-minute grid starting at the window start
    2. Keep candidates whose full service fits before the window end
    3. Drop candidates that overlap any booked interval
    """

    def __init__(self, interval_minutes: int = SLOT_INTERVAL_MINUTES):
        self.interval_minutes = interval_minutes

    def generate_slots(
        self,
        window: EffectiveWindow,
        duration_minutes: int,
        booked_intervals: Sequence[BookedInterval],
    ) -> List[Slot]:
        """
        Compute all bookable slots for a service.

        Args:
            window: Effective working window (open or closed)
            duration_minutes: Length of the requested service
            booked_intervals: Time already taken by active appointments

        Returns:
            Slots in ascending start order; empty for a closed window

        Raises:
            InvalidDurationError: If duration is not positive
        """
        validate_duration(duration_minutes)

        if not isinstance(window, OpenWindow):
            return []

        blocked = sorted(
            (interval.as_range() for interval in booked_intervals),
            key=lambda r: r.start,
        )

        slots: List[Slot] = []
        for candidate in self._candidate_starts(window, duration_minutes):
            slot_range = MinuteRange(start=candidate, end=candidate + duration_minutes)
            if self._is_blocked(slot_range, blocked):
                continue
            slots.append(Slot(start=candidate, duration_minutes=duration_minutes))

        return slots

    def count_capacity(self, window: EffectiveWindow, duration_minutes: int = SLOT_INTERVAL_MINUTES) -> int:
        """Number of slots the window offers with nothing booked."""
        return len(self.generate_slots(window, duration_minutes, []))

    def _candidate_starts(self, window: OpenWindow, duration_minutes: int) -> List[int]:
        last_start = window.end - duration_minutes
        return list(range(window.start, last_start + 1, self.interval_minutes))

    @staticmethod
    def _is_blocked(slot_range: MinuteRange, blocked: List[MinuteRange]) -> bool:
        for busy in blocked:
            if busy.start >= slot_range.end:
                # Sorted by start; nothing later can overlap
                return False
            if slot_range.overlaps(busy):
                return True
        return False


def exclude_past(
    slots: Sequence[Slot],
    now_minute: int,
    lead_minutes: int = DEFAULT_BOOKING_LEAD_MINUTES,
) -> List[Slot]:
    """
    Keep only slots that start strictly after ``now_minute + lead_minutes``.

    Applied to today's slots so a client cannot book a time that has
    already started or is about to.
    """
    cutoff = now_minute + lead_minutes
    return [slot for slot in slots if slot.start > cutoff]


def generate_slots(
    window: EffectiveWindow,
    duration_minutes: int,
    booked_intervals: Sequence[BookedInterval],
) -> List[Slot]:
    """Module-level shortcut for ``SlotGenerator().generate_slots``."""
    return SlotGenerator().generate_slots(window, duration_minutes, booked_intervals)
