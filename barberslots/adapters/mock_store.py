"""
In-memory schedule store for testing without the hosted database.
"""

import itertools
import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..domain.exceptions import StoreError
from ..domain.timeutils import format_date, parse_date
from ..schemas import (
    ACTIVE_APPOINTMENT_STATUSES,
    BookedAppointmentRecord,
    ScheduleExceptionRecord,
    WeeklyAvailabilityRecord,
)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_schedule_data.json"

# The bundled data describes the week of Monday 2025-01-13.
MOCK_TODAY = "2025-01-13"


class MockScheduleStore:
    """
    Store that keeps rows in memory, shaped like the hosted database tables.

    Rows can be seeded from ``mock_schedule_data.json`` for the CLI's
    ``--mock`` mode, or added directly in tests.
    """

    def __init__(self, data: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        """
        Initialize the store.

        Args:
            data: Optional mapping with ``weekly_availability``,
                ``schedule_exceptions`` and ``appointments`` row lists
        """
        data = data or {}
        self.weekly_rows: List[Dict[str, Any]] = [dict(row) for row in data.get("weekly_availability", [])]
        self.exception_rows: List[Dict[str, Any]] = [dict(row) for row in data.get("schedule_exceptions", [])]
        self.appointment_rows: List[Dict[str, Any]] = [dict(row) for row in data.get("appointments", [])]
        self._ids = itertools.count(1)
        self.calls: List[str] = []

    @classmethod
    def from_json(cls, data_file: Optional[Path] = None) -> "MockScheduleStore":
        """Load rows from a JSON file; falls back to an empty store when missing."""
        path = data_file or DEFAULT_DATA_FILE
        if not path.exists():
            return cls()

        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f))

    # Reads

    async def get_weekly_availability(self, barber_id: str) -> List[WeeklyAvailabilityRecord]:
        self.calls.append("get_weekly_availability")
        rows = [row for row in self.weekly_rows if row.get("barber_id") == barber_id]
        rows.sort(key=lambda row: row.get("day_of_week", 0))
        return self._validate(WeeklyAvailabilityRecord, rows)

    async def get_schedule_exceptions(
        self,
        barber_id: str,
        start_date: date,
        end_date: date,
    ) -> List[ScheduleExceptionRecord]:
        self.calls.append("get_schedule_exceptions")
        first, last = format_date(start_date), format_date(end_date)
        rows = [
            row for row in self.exception_rows
            if row.get("barber_id") == barber_id and first <= str(row.get("date")) <= last
        ]
        rows.sort(key=lambda row: str(row.get("date")))
        return self._validate(ScheduleExceptionRecord, rows)

    async def get_booked_intervals(self, barber_id: str, on_date: date) -> List[BookedAppointmentRecord]:
        self.calls.append("get_booked_intervals")
        day = format_date(on_date)
        rows = [
            row for row in self.appointment_rows
            if row.get("barber_id") == barber_id
            and str(row.get("appointment_date")) == day
            and row.get("status") in ACTIVE_APPOINTMENT_STATUSES
        ]
        return self._validate(BookedAppointmentRecord, rows)

    # Writes

    async def upsert_weekly_availability(
        self,
        barber_id: str,
        day_of_week: int,
        start_time: str,
        end_time: str,
        is_available: bool,
    ) -> WeeklyAvailabilityRecord:
        self.calls.append("upsert_weekly_availability")
        for row in self.weekly_rows:
            if row.get("barber_id") == barber_id and row.get("day_of_week") == day_of_week:
                row.update(start_time=start_time, end_time=end_time, is_available=is_available)
                return WeeklyAvailabilityRecord.model_validate(row)

        row = {
            "id": self._next_id(),
            "barber_id": barber_id,
            "day_of_week": day_of_week,
            "start_time": start_time,
            "end_time": end_time,
            "is_available": is_available,
        }
        self.weekly_rows.append(row)
        return WeeklyAvailabilityRecord.model_validate(row)

    async def create_schedule_exception(
        self,
        barber_id: str,
        on_date: date,
        is_available: bool,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ScheduleExceptionRecord:
        self.calls.append("create_schedule_exception")
        day = format_date(on_date)
        if any(r.get("barber_id") == barber_id and str(r.get("date")) == day for r in self.exception_rows):
            raise StoreError(f"An exception already exists for {day}")

        row = {
            "id": self._next_id(),
            "barber_id": barber_id,
            "date": day,
            "start_time": start_time,
            "end_time": end_time,
            "is_available": is_available,
            "reason": reason,
        }
        self.exception_rows.append(row)
        return ScheduleExceptionRecord.model_validate(row)

    async def update_schedule_exception(self, exception_id: Any, updates: Dict[str, Any]) -> ScheduleExceptionRecord:
        self.calls.append("update_schedule_exception")
        row = self._find_exception(exception_id)
        for key, value in updates.items():
            row[key] = format_date(value) if isinstance(value, date) else value
        return ScheduleExceptionRecord.model_validate(row)

    async def delete_schedule_exception(self, exception_id: Any) -> None:
        self.calls.append("delete_schedule_exception")
        row = self._find_exception(exception_id)
        self.exception_rows.remove(row)

    # Appointment helpers (the booking write path lives outside this package)

    def add_appointment(
        self,
        barber_id: str,
        on_date: "str | date",
        appointment_time: str,
        service_duration: int,
        status: str = "scheduled",
    ) -> Dict[str, Any]:
        row = {
            "id": self._next_id(),
            "barber_id": barber_id,
            "appointment_date": format_date(parse_date(on_date)),
            "appointment_time": appointment_time,
            "service_duration": service_duration,
            "status": status,
        }
        self.appointment_rows.append(row)
        return row

    def set_appointment_status(self, appointment_id: Any, status: str) -> None:
        for row in self.appointment_rows:
            if row.get("id") == appointment_id:
                row["status"] = status
                return
        raise StoreError(f"Appointment {appointment_id} not found")

    def _find_exception(self, exception_id: Any) -> Dict[str, Any]:
        for row in self.exception_rows:
            if row.get("id") == exception_id:
                return row
        raise StoreError(f"Schedule exception {exception_id} not found")

    def _next_id(self) -> int:
        taken = {
            row.get("id")
            for rows in (self.weekly_rows, self.exception_rows, self.appointment_rows)
            for row in rows
        }
        candidate = next(self._ids)
        while candidate in taken:
            candidate = next(self._ids)
        return candidate

    @staticmethod
    def _validate(model, rows: List[Dict[str, Any]]) -> list:
        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise StoreError(f"Invalid {model.__name__} row: {exc}") from exc
