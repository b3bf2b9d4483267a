"""
Resolves the effective working window of a barber for one calendar date.

Three layers are merged:
1. The recurring weekly rule for the date's day of week
2. An optional exception for exactly that date
3. Fail-closed handling for stored values that are not real times
"""

import logging
from datetime import date
from typing import TYPE_CHECKING, Optional, Sequence

from .exceptions import InvalidTimeError
from .models import CLOSED, EffectiveWindow, OpenWindow, ScheduleException, WeeklyAvailability
from .timeutils import day_of_week, format_date

if TYPE_CHECKING:
    from ..schemas import ScheduleExceptionRecord, WeeklyAvailabilityRecord

logger = logging.getLogger(__name__)


def resolve_window(
    weekly: Optional[WeeklyAvailability],
    exception: Optional[ScheduleException],
) -> EffectiveWindow:
    """
    Merge a weekly rule and a date exception into an effective window.

    - An unavailable exception closes the day regardless of the weekly rule.
    - An available exception takes its own times, falling back per bound
      to the weekly times; a bound missing from both closes the day.
    - Without an exception the weekly rule applies as-is.
    """
    weekly_open = weekly is not None and weekly.is_available

    if exception is None:
        if not weekly_open:
            return CLOSED
        return OpenWindow(start=weekly.start, end=weekly.end)

    if not exception.is_available:
        return CLOSED

    # An available exception opens the day even when the weekday is switched off.
    start = exception.start if exception.start is not None else (weekly.start if weekly else None)
    end = exception.end if exception.end is not None else (weekly.end if weekly else None)

    if start is None or end is None:
        return CLOSED

    return OpenWindow(start=start, end=end)


class AvailabilityResolver:
    """
    Selects the records that apply to a date and resolves them.

    Operates on already-fetched store records; it performs no I/O.
    """

    def resolve(
        self,
        on_date: date,
        weekly_records: Sequence["WeeklyAvailabilityRecord"],
        exception_records: Sequence["ScheduleExceptionRecord"],
    ) -> EffectiveWindow:
        """
        Resolve the effective window for ``on_date``.

        Stored times that cannot be parsed, or that describe an empty or
        inverted window, close the date instead of raising. The weekly rule
        is only read when the exception leaves a bound to fall back on.
        """
        weekly_record = self._find_weekly(on_date, weekly_records)
        exception_record = self._find_exception(on_date, exception_records)

        try:
            exception = exception_record.to_domain() if exception_record else None
            if exception is not None and not self._needs_weekly(exception):
                return resolve_window(None, exception)

            weekly = weekly_record.to_domain() if weekly_record else None
            return resolve_window(weekly, exception)
        except InvalidTimeError as exc:
            logger.warning("Closing %s: malformed schedule time (%s)", format_date(on_date), exc)
        except ValueError as exc:
            logger.warning("Closing %s: invalid working window (%s)", format_date(on_date), exc)

        return CLOSED

    @staticmethod
    def _needs_weekly(exception: ScheduleException) -> bool:
        """An available exception missing a bound falls back to the weekly times."""
        return exception.is_available and (exception.start is None or exception.end is None)

    @staticmethod
    def _find_weekly(
        on_date: date,
        records: Sequence["WeeklyAvailabilityRecord"],
    ) -> Optional["WeeklyAvailabilityRecord"]:
        target = day_of_week(on_date)
        for record in records:
            if record.day_of_week == target:
                return record
        return None

    @staticmethod
    def _find_exception(
        on_date: date,
        records: Sequence["ScheduleExceptionRecord"],
    ) -> Optional["ScheduleExceptionRecord"]:
        for record in records:
            if record.date == on_date:
                return record
        return None
