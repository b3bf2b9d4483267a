"""
Week-level views over a barber's schedule.

Builds the weekly overview shown on the schedule screen (hours, working
days, capacity, utilisation) and plans copying a week's exceptions onto
other weeks.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Sequence

from .models import BookedInterval, EffectiveWindow, OpenWindow
from .slot_generator import SLOT_INTERVAL_MINUTES, SlotGenerator
from .timeutils import parse_date

DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class DaySummary:
    """Resolved schedule for one day of the week."""
    date: date
    window: EffectiveWindow
    open_minutes: int
    capacity: int
    booked: int

    @property
    def is_working_day(self) -> bool:
        return isinstance(self.window, OpenWindow)


@dataclass(frozen=True)
class WeekSummary:
    """Totals for a Monday-to-Sunday week."""
    week_start: date
    days: List[DaySummary] = field(default_factory=list)

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=DAYS_PER_WEEK - 1)

    @property
    def total_minutes(self) -> int:
        return sum(day.open_minutes for day in self.days)

    @property
    def total_hours(self) -> float:
        return round(self.total_minutes / 60, 1)

    @property
    def working_days(self) -> int:
        return sum(1 for day in self.days if day.is_working_day)

    @property
    def average_hours_per_day(self) -> float:
        if not self.working_days:
            return 0.0
        return round(self.total_minutes / 60 / self.working_days, 1)

    @property
    def available_slots(self) -> int:
        return sum(day.capacity for day in self.days)

    @property
    def booked(self) -> int:
        return sum(day.booked for day in self.days)

    @property
    def utilization_pct(self) -> int:
        if not self.available_slots:
            return 0
        return round(self.booked / self.available_slots * 100)


@dataclass(frozen=True)
class ExceptionDraft:
    """An exception to create when copying a week."""
    date: date
    is_available: bool
    start_time: "str | None" = None
    end_time: "str | None" = None
    reason: "str | None" = None


def week_dates(week_start: date) -> List[date]:
    """The seven dates of the week starting at ``week_start``."""
    start = parse_date(week_start)
    return [start.add(days=offset) for offset in range(DAYS_PER_WEEK)]


def summarize_week(
    week_start: date,
    windows: Mapping[date, EffectiveWindow],
    booked_by_date: Mapping[date, Sequence[BookedInterval]],
    generator: "SlotGenerator | None" = None,
) -> WeekSummary:
    """
    Summarise a week from per-date windows and bookings.

    Capacity counts 30-minute appointments each open window could hold
    with nothing booked.
    """
    generator = generator or SlotGenerator()
    windows = {parse_date(day): window for day, window in windows.items()}
    booked_by_date = {parse_date(day): list(items) for day, items in booked_by_date.items()}
    days: List[DaySummary] = []

    for day in week_dates(week_start):
        window = windows[day]
        open_minutes = window.duration_minutes() if isinstance(window, OpenWindow) else 0
        days.append(
            DaySummary(
                date=day,
                window=window,
                open_minutes=open_minutes,
                capacity=generator.count_capacity(window, SLOT_INTERVAL_MINUTES),
                booked=len(booked_by_date.get(day, ())),
            )
        )

    return WeekSummary(week_start=parse_date(week_start), days=days)


def plan_week_copy(
    source_exceptions: Iterable[ExceptionDraft],
    source_week_start: date,
    target_week_starts: Sequence[date],
    existing_dates: Iterable[date],
) -> List[ExceptionDraft]:
    """
    Shift a week's exceptions onto each target week.

    Dates that already carry an exception are skipped, so at most one
    exception exists per date after the copy.
    """
    source_start = parse_date(source_week_start)
    source_end = source_start.add(days=DAYS_PER_WEEK - 1)
    taken = {parse_date(d) for d in existing_dates}
    in_week = [
        draft for draft in source_exceptions
        if source_start <= draft.date <= source_end
    ]

    planned: List[ExceptionDraft] = []
    for target in target_week_starts:
        offset = parse_date(target).toordinal() - source_start.toordinal()
        for draft in in_week:
            new_date = parse_date(draft.date).add(days=offset)
            if new_date in taken:
                continue
            taken.add(new_date)
            planned.append(
                ExceptionDraft(
                    date=new_date,
                    is_available=draft.is_available,
                    start_time=draft.start_time,
                    end_time=draft.end_time,
                    reason=draft.reason,
                )
            )

    return planned

