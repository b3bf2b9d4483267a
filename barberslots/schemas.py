"""
Store records as returned by the hosted database.

Records keep wall-clock values as raw strings. They are converted into the
minute-typed domain models right after fetch via ``to_domain()``, which
raises ``InvalidTimeError`` for values that are not real times.
"""

from datetime import date as Date
from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .domain.models import BookedInterval, ScheduleException, WeeklyAvailability
from .domain.timeutils import parse_time

ACTIVE_APPOINTMENT_STATUSES = ("scheduled", "confirmed")


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class StoreRecord(BaseModel):
    """Base for records; accepts snake_case columns or camelCase keys."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WeeklyAvailabilityRecord(StoreRecord):
    """Row of ``barber_availability``."""
    id: Optional[Union[int, str]] = None
    barber_id: Optional[str] = Field(default=None, validation_alias=_alias("barber_id", "barberId"))
    day_of_week: int = Field(ge=0, le=6, validation_alias=_alias("day_of_week", "dayOfWeek"))
    start_time: str = Field(validation_alias=_alias("start_time", "startTime"))
    end_time: str = Field(validation_alias=_alias("end_time", "endTime"))
    is_available: bool = Field(default=True, validation_alias=_alias("is_available", "isAvailable"))

    def to_domain(self) -> WeeklyAvailability:
        return WeeklyAvailability(
            day_of_week=self.day_of_week,
            start=parse_time(self.start_time),
            end=parse_time(self.end_time),
            is_available=self.is_available,
        )


class ScheduleExceptionRecord(StoreRecord):
    """Row of ``schedule_exceptions``."""
    id: Optional[Union[int, str]] = None
    barber_id: Optional[str] = Field(default=None, validation_alias=_alias("barber_id", "barberId"))
    date: Date
    start_time: Optional[str] = Field(default=None, validation_alias=_alias("start_time", "startTime"))
    end_time: Optional[str] = Field(default=None, validation_alias=_alias("end_time", "endTime"))
    is_available: bool = Field(validation_alias=_alias("is_available", "isAvailable"))
    reason: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def blank_time_is_missing(cls, value):
        """The schedule editor stores an empty string when no override is set."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_domain(self) -> ScheduleException:
        return ScheduleException(
            date=self.date,
            is_available=self.is_available,
            start=parse_time(self.start_time) if self.start_time is not None else None,
            end=parse_time(self.end_time) if self.end_time is not None else None,
            reason=self.reason,
        )


class BookedAppointmentRecord(StoreRecord):
    """Active appointment projected onto the fields that occupy time."""
    appointment_time: str = Field(
        validation_alias=_alias("appointment_time", "appointmentTime", "startTime")
    )
    service_duration: int = Field(
        gt=0,
        validation_alias=_alias("service_duration", "serviceDuration", "durationMinutes"),
    )
    status: str = "scheduled"

    def to_domain(self) -> BookedInterval:
        return BookedInterval(
            start=parse_time(self.appointment_time),
            duration_minutes=self.service_duration,
        )
