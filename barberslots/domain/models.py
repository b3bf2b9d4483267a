"""
Domain models for availability windows, bookings and slots.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

import pendulum
from pendulum import DateTime

from .timeutils import format_minutes


@dataclass(frozen=True)
class MinuteRange:
    """
    Half-open range ``[start, end)`` of minutes since midnight.

    Invariant: start must be before end.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(
                f"Start minute {self.start} must be before end minute {self.end}"
            )

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    def overlaps(self, other: "MinuteRange") -> bool:
        """Check if this range overlaps with another."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "MinuteRange") -> bool:
        """Check if another range lies entirely inside this one."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_minutes(self.start)} - {format_minutes(self.end)}"


@dataclass(frozen=True)
class WeeklyAvailability:
    """Recurring working hours for one day of the week (0 = Sunday)."""
    day_of_week: int
    start: int
    end: int
    is_available: bool = True

    def __post_init__(self):
        if self.day_of_week not in range(7):
            raise ValueError(f"day_of_week must be between 0 and 6, got {self.day_of_week}")


@dataclass(frozen=True)
class ScheduleException:
    """
    Date-specific override of the weekly schedule.

    Missing ``start``/``end`` fall back to the weekly hours for that day.
    """
    date: date
    is_available: bool
    start: Optional[int] = None
    end: Optional[int] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class OpenWindow:
    """The barber works ``[start, end)`` on the resolved date."""
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(
                f"Window start {format_minutes(self.start)} must be before "
                f"end {format_minutes(self.end)}"
            )

    @property
    def is_open(self) -> bool:
        return True

    def as_range(self) -> MinuteRange:
        return MinuteRange(start=self.start, end=self.end)

    def duration_minutes(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"{format_minutes(self.start)} - {format_minutes(self.end)}"


@dataclass(frozen=True)
class ClosedWindow:
    """The barber does not take bookings on the resolved date."""

    @property
    def is_open(self) -> bool:
        return False

    def __str__(self) -> str:
        return "Closed"


CLOSED = ClosedWindow()

EffectiveWindow = Union[OpenWindow, ClosedWindow]


@dataclass(frozen=True)
class BookedInterval:
    """Time occupied by an active (scheduled or confirmed) appointment."""
    start: int
    duration_minutes: int

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError(
                f"Booked duration must be positive, got {self.duration_minutes}"
            )

    @property
    def end(self) -> int:
        return self.start + self.duration_minutes

    def as_range(self) -> MinuteRange:
        return MinuteRange(start=self.start, end=self.end)


@dataclass(frozen=True)
class Slot:
    """
    A bookable appointment start time.

    ``start`` is expressed in minutes since midnight of the target date.
    """
    start: int
    duration_minutes: int

    @property
    def end(self) -> int:
        return self.start + self.duration_minutes

    def as_range(self) -> MinuteRange:
        return MinuteRange(start=self.start, end=self.end)

    def time_label(self) -> str:
        """Start time as ``HH:MM``, the format the booking UI submits."""
        return format_minutes(self.start)

    def starts_at(self, on_date: date, timezone: str = "UTC") -> DateTime:
        """Anchor the slot to a calendar date in the given timezone."""
        return pendulum.datetime(
            on_date.year,
            on_date.month,
            on_date.day,
            self.start // 60,
            self.start % 60,
            tz=timezone,
        )

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: HH:MM - HH:MM (N min)
        """
        end_label = f"{self.end // 60:02d}:{self.end % 60:02d}"
        return f"{self.time_label()} - {end_label} ({self.duration_minutes} min)"
