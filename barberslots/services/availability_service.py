"""
Application service for barber availability and slot lookup.

The service fetches schedule data through an async store adapter, caches
reads for a few seconds and delegates the actual calculations to the
domain-level resolver and slot generator. Store failures always surface to
the caller; they are never turned into an open or a fully booked day.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence

import pendulum
from pendulum import DateTime

from ..domain.availability_resolver import AvailabilityResolver
from ..domain.exceptions import InvalidTimeError, SchedulingError, StoreError
from ..domain.models import BookedInterval, EffectiveWindow, OpenWindow, Slot
from ..domain.slot_generator import (
    DEFAULT_BOOKING_LEAD_MINUTES,
    SlotGenerator,
    exclude_past,
    validate_duration,
)
from ..domain.timeutils import format_date, parse_date, parse_time, week_start as start_of_week
from ..domain.week_planner import (
    DAYS_PER_WEEK,
    ExceptionDraft,
    WeekSummary,
    plan_week_copy,
    summarize_week,
    week_dates,
)
from ..schemas import BookedAppointmentRecord, ScheduleExceptionRecord, WeeklyAvailabilityRecord
from .cache import ScheduleCache

logger = logging.getLogger(__name__)


class ScheduleStoreProtocol(Protocol):
    """Protocol describing the persistence operations needed by the service."""

    async def get_weekly_availability(self, barber_id: str) -> List[WeeklyAvailabilityRecord]:
        """Return the barber's weekly availability, one record per configured day."""

    async def get_schedule_exceptions(
        self,
        barber_id: str,
        start_date: date,
        end_date: date,
    ) -> List[ScheduleExceptionRecord]:
        """Return exceptions dated within ``[start_date, end_date]``."""

    async def get_booked_intervals(
        self,
        barber_id: str,
        on_date: date,
    ) -> List[BookedAppointmentRecord]:
        """Return scheduled and confirmed appointments on ``on_date``."""

    async def upsert_weekly_availability(
        self,
        barber_id: str,
        day_of_week: int,
        start_time: str,
        end_time: str,
        is_available: bool,
    ) -> WeeklyAvailabilityRecord:
        """Create or replace the record for ``day_of_week``."""

    async def create_schedule_exception(
        self,
        barber_id: str,
        on_date: date,
        is_available: bool,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ScheduleExceptionRecord:
        """Insert a new exception."""

    async def update_schedule_exception(
        self,
        exception_id: Any,
        updates: Dict[str, Any],
    ) -> ScheduleExceptionRecord:
        """Apply a partial update to an exception."""

    async def delete_schedule_exception(self, exception_id: Any) -> None:
        """Remove an exception."""


class AvailabilityService:
    """
    Orchestrates schedule retrieval, caching and slot calculation.

    Dependency inversion toward a protocol makes it easy to plug in the
    hosted database adapter or the in-memory store in tests.
    """

    def __init__(
        self,
        store: ScheduleStoreProtocol,
        cache: Optional[ScheduleCache] = None,
        *,
        timezone: str = "UTC",
        booking_lead_minutes: int = DEFAULT_BOOKING_LEAD_MINUTES,
        clock: Optional[Callable[[], DateTime]] = None,
        resolver: Optional[AvailabilityResolver] = None,
        generator: Optional[SlotGenerator] = None,
    ) -> None:
        self._store = store
        self._cache = cache if cache is not None else ScheduleCache()
        self._timezone = timezone
        self._booking_lead_minutes = booking_lead_minutes
        self._clock = clock or (lambda: pendulum.now(self._timezone))
        self._resolver = resolver or AvailabilityResolver()
        self._generator = generator or SlotGenerator()

    @property
    def cache(self) -> ScheduleCache:
        return self._cache

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_window(self, barber_id: str, on_date: "str | date", *, fresh: bool = False) -> EffectiveWindow:
        """Resolve the effective working window for a date."""
        day = parse_date(on_date)

        weekly = await self.fetch_weekly_availability(barber_id, fresh=fresh)
        exceptions = await self.fetch_schedule_exceptions(barber_id, day, day, fresh=fresh)

        return self._resolver.resolve(day, weekly, exceptions)

    async def get_available_slots(
        self,
        barber_id: str,
        on_date: "str | date",
        duration_minutes: int = 30,
        *,
        fresh: bool = False,
    ) -> List[Slot]:
        """
        Compute bookable slots for a service on a date.

        Past dates have no slots. For today, slots starting within the
        booking lead time are dropped.

        Raises:
            InvalidDurationError: If duration is not positive
            StoreError: If schedule or booking data cannot be fetched
            InvalidTimeError: If a stored appointment time is malformed
        """
        validate_duration(duration_minutes)
        day = parse_date(on_date)

        now = self._clock()
        today = parse_date(now.date())
        if day < today:
            return []

        window = await self.get_window(barber_id, day, fresh=fresh)
        if not isinstance(window, OpenWindow):
            return []

        booked = await self.fetch_booked_intervals(barber_id, day, fresh=fresh)
        slots = self._generator.generate_slots(window, duration_minutes, booked)

        if day == today:
            slots = exclude_past(slots, now.hour * 60 + now.minute, self._booking_lead_minutes)

        return slots

    async def is_bookable(
        self,
        barber_id: str,
        on_date: "str | date",
        start_time: str,
        duration_minutes: int,
    ) -> bool:
        """
        Re-check a requested start against fresh (uncached) data.

        Meant for the appointment write path right before inserting.
        """
        start = parse_time(start_time)
        slots = await self.get_available_slots(barber_id, on_date, duration_minutes, fresh=True)
        return any(slot.start == start for slot in slots)

    async def get_week_summary(self, barber_id: str, week_of: "str | date") -> WeekSummary:
        """Summarise the Monday-to-Sunday week containing ``week_of``."""
        first_day = start_of_week(week_of)
        days = week_dates(first_day)

        weekly = await self.fetch_weekly_availability(barber_id)
        exceptions = await self.fetch_schedule_exceptions(barber_id, days[0], days[-1])
        windows = {day: self._resolver.resolve(day, weekly, exceptions) for day in days}

        booked_lists = await asyncio.gather(
            *(self.fetch_booked_intervals(barber_id, day) for day in days)
        )
        booked_by_date = dict(zip(days, booked_lists))

        return summarize_week(first_day, windows, booked_by_date, generator=self._generator)

    async def fetch_weekly_availability(
        self,
        barber_id: str,
        *,
        fresh: bool = False,
    ) -> List[WeeklyAvailabilityRecord]:
        return await self._cached(
            (barber_id, "weekly"),
            lambda: self._store.get_weekly_availability(barber_id),
            f"weekly availability for barber {barber_id}",
            fresh=fresh,
        )

    async def fetch_schedule_exceptions(
        self,
        barber_id: str,
        start_date: date,
        end_date: date,
        *,
        fresh: bool = False,
    ) -> List[ScheduleExceptionRecord]:
        return await self._cached(
            (barber_id, "exceptions", format_date(start_date), format_date(end_date)),
            lambda: self._store.get_schedule_exceptions(barber_id, start_date, end_date),
            f"schedule exceptions for barber {barber_id}",
            fresh=fresh,
        )

    async def fetch_booked_intervals(
        self,
        barber_id: str,
        on_date: date,
        *,
        fresh: bool = False,
    ) -> List[BookedInterval]:
        """
        Fetch active appointments as booked intervals.

        A malformed appointment time raises ``InvalidTimeError``; guessing
        which time it blocks could double-book the barber.
        """
        records = await self._cached(
            (barber_id, "booked", format_date(on_date)),
            lambda: self._store.get_booked_intervals(barber_id, on_date),
            f"appointments for barber {barber_id} on {format_date(on_date)}",
            fresh=fresh,
        )
        try:
            return [record.to_domain() for record in records]
        except InvalidTimeError:
            logger.error(
                "Malformed appointment time for barber %s on %s",
                barber_id,
                format_date(on_date),
            )
            raise

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_weekly_availability(
        self,
        barber_id: str,
        day_of_week: int,
        start_time: str,
        end_time: str,
        is_available: bool = True,
    ) -> WeeklyAvailabilityRecord:
        """Create or update the weekly hours for one day (0 = Sunday)."""
        if day_of_week not in range(DAYS_PER_WEEK):
            raise ValueError(f"day_of_week must be between 0 and 6, got {day_of_week}")
        self._validate_hours(start_time, end_time)

        record = await self._write(
            lambda: self._store.upsert_weekly_availability(
                barber_id, day_of_week, start_time, end_time, is_available
            ),
            f"weekly availability for barber {barber_id}",
        )
        self.invalidate(barber_id)
        return record

    async def create_schedule_exception(
        self,
        barber_id: str,
        on_date: "str | date",
        is_available: bool,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ScheduleExceptionRecord:
        """Add a date-specific override (holiday closure, modified hours)."""
        self._validate_optional_hours(start_time, end_time)

        record = await self._write(
            lambda: self._store.create_schedule_exception(
                barber_id, parse_date(on_date), is_available, start_time, end_time, reason
            ),
            f"schedule exception for barber {barber_id}",
        )
        self.invalidate(barber_id)
        return record

    async def update_schedule_exception(
        self,
        barber_id: str,
        exception_id: Any,
        *,
        on_date: "str | date | None" = None,
        is_available: Optional[bool] = None,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ScheduleExceptionRecord:
        """Apply the given fields to an exception; ``None`` leaves a field unchanged."""
        self._validate_optional_hours(start_time, end_time)

        updates: Dict[str, Any] = {}
        if on_date is not None:
            updates["date"] = parse_date(on_date)
        if is_available is not None:
            updates["is_available"] = is_available
        if start_time is not None:
            updates["start_time"] = start_time
        if end_time is not None:
            updates["end_time"] = end_time
        if reason is not None:
            updates["reason"] = reason

        record = await self._write(
            lambda: self._store.update_schedule_exception(exception_id, updates),
            f"schedule exception {exception_id}",
        )
        self.invalidate(barber_id)
        return record

    async def delete_schedule_exception(self, barber_id: str, exception_id: Any) -> None:
        await self._write(
            lambda: self._store.delete_schedule_exception(exception_id),
            f"schedule exception {exception_id}",
        )
        self.invalidate(barber_id)

    async def copy_week_schedule(
        self,
        barber_id: str,
        source_week: "str | date",
        target_weeks: Sequence["str | date"],
        include_exceptions: bool = True,
    ) -> List[ScheduleExceptionRecord]:
        """
        Copy a week's exceptions onto other weeks.

        Weekly availability is keyed by day of week and already applies to
        every week, so only exceptions are copied. Any date may be passed for
        a week; it is snapped to that week's Monday. Target dates that
        already have an exception keep it.
        """
        if not include_exceptions or not target_weeks:
            return []

        source_start = start_of_week(source_week)
        source_end = source_start.add(days=DAYS_PER_WEEK - 1)
        source = await self.fetch_schedule_exceptions(barber_id, source_start, source_end, fresh=True)
        if not source:
            return []

        existing_dates = []
        target_starts = [start_of_week(target) for target in target_weeks]
        for target_start in target_starts:
            existing = await self.fetch_schedule_exceptions(
                barber_id, target_start, target_start.add(days=DAYS_PER_WEEK - 1), fresh=True
            )
            existing_dates.extend(record.date for record in existing)

        drafts = plan_week_copy(
            [
                ExceptionDraft(
                    date=record.date,
                    is_available=record.is_available,
                    start_time=record.start_time,
                    end_time=record.end_time,
                    reason=record.reason,
                )
                for record in source
            ],
            source_start,
            target_starts,
            existing_dates,
        )

        created: List[ScheduleExceptionRecord] = []
        try:
            for draft in drafts:
                created.append(
                    await self._write(
                        lambda draft=draft: self._store.create_schedule_exception(
                            barber_id,
                            draft.date,
                            draft.is_available,
                            draft.start_time,
                            draft.end_time,
                            draft.reason,
                        ),
                        f"schedule exception for barber {barber_id}",
                    )
                )
        finally:
            self.invalidate(barber_id)

        logger.info("Copied %d schedule exception(s) for barber %s", len(created), barber_id)
        return created

    def invalidate(self, barber_id: str) -> None:
        """
        Drop cached data for a barber.

        Call whenever an appointment for the barber is created or cancelled.
        """
        self._cache.invalidate(barber_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _cached(
        self,
        key: tuple,
        fetch: Callable[[], Awaitable[Any]],
        description: str,
        *,
        fresh: bool = False,
    ) -> Any:
        if not fresh:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        generation = self._cache.generation(key[0])
        try:
            value = await fetch()
        except SchedulingError:
            raise
        except Exception as exc:
            logger.error("Failed to fetch %s: %s", description, exc)
            raise StoreError(f"Failed to fetch {description}: {exc}") from exc

        value = list(value or [])
        self._cache.set(key, value, generation=generation)
        return value

    @staticmethod
    async def _write(write: Callable[[], Awaitable[Any]], description: str) -> Any:
        try:
            return await write()
        except SchedulingError:
            raise
        except Exception as exc:
            logger.error("Failed to save %s: %s", description, exc)
            raise StoreError(f"Failed to save {description}: {exc}") from exc

    @staticmethod
    def _validate_hours(start_time: str, end_time: str) -> None:
        if parse_time(start_time) >= parse_time(end_time):
            raise InvalidTimeError(f"Start time {start_time} must be before end time {end_time}")

    @classmethod
    def _validate_optional_hours(cls, start_time: Optional[str], end_time: Optional[str]) -> None:
        if start_time is not None and end_time is not None:
            cls._validate_hours(start_time, end_time)
        elif start_time is not None:
            parse_time(start_time)
        elif end_time is not None:
            parse_time(end_time)
