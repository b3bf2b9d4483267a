"""
Helpers for converting between wall-clock strings, minute offsets and civil dates.

All internal arithmetic uses integer minutes since midnight. Strings are
converted at the boundary and rejected with ``InvalidTimeError`` when they
do not describe a real wall-clock time.
"""

import re
from datetime import date

import pendulum
from pendulum import Date

from .exceptions import InvalidTimeError

MINUTES_PER_DAY = 24 * 60

# "HH:MM" as entered in the schedule editor, "HH:MM:SS" as returned by
# Postgres time columns. Seconds are ignored.
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def parse_time(value: str) -> int:
    """
    Convert a wall-clock string to minutes since midnight.

    Args:
        value: Time string in ``HH:MM`` or ``HH:MM:SS`` format

    Returns:
        Minutes since midnight (0-1439)

    Raises:
        InvalidTimeError: If the value is not a valid wall-clock time
    """
    if not isinstance(value, str):
        raise InvalidTimeError(f"Time must be a string, got {type(value).__name__}")

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidTimeError(f"Invalid time '{value}', expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)

    if hours > 23 or minutes > 59 or seconds > 59:
        raise InvalidTimeError(f"Time '{value}' is out of range")

    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as ``HH:MM``."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidTimeError(f"Minute offset {minutes} is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date(value: "str | date") -> Date:
    """
    Parse a ``YYYY-MM-DD`` string (or a date object) into a civil date.

    Raises:
        ValueError: If the string is not a valid calendar date
    """
    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    try:
        return pendulum.from_format(value.strip(), "YYYY-MM-DD").date()
    except (ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc


def format_date(value: date) -> str:
    """Format a civil date as ``YYYY-MM-DD``."""
    return value.strftime("%Y-%m-%d")


def day_of_week(value: date) -> int:
    """
    Day-of-week number as stored with weekly availability.

    0 = Sunday, 1 = Monday, ..., 6 = Saturday.
    """
    return value.isoweekday() % 7


def week_start(value: date) -> Date:
    """Return the Monday of the week containing ``value``."""
    return parse_date(value).start_of("week")
