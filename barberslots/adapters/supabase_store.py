"""
Schedule store backed by the hosted Supabase database (PostgREST API).
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from ..domain.exceptions import StoreError
from ..domain.timeutils import format_date
from ..schemas import (
    ACTIVE_APPOINTMENT_STATUSES,
    BookedAppointmentRecord,
    ScheduleExceptionRecord,
    WeeklyAvailabilityRecord,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

Params = Sequence[Tuple[str, str]]


class SupabaseScheduleStore:
    """
    Client for the schedule tables exposed through PostgREST.

    Tables: ``barber_availability``, ``schedule_exceptions``, ``appointments``.
    Blocking HTTP calls run in a worker thread so the async service never
    blocks its event loop.
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the store client.

        Args:
            base_url: Project URL, e.g. ``https://xyz.supabase.co``
            api_key: Project anon or service key
            access_token: Optional user JWT; defaults to the API key
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        if not base_url:
            raise ValueError("base_url is required for the Supabase store")

        self.rest_url = base_url.rstrip("/") + self.REST_PATH
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Content-Type": "application/json",
        }

    # Reads

    async def get_weekly_availability(self, barber_id: str) -> List[WeeklyAvailabilityRecord]:
        rows = await self._call(
            "GET",
            "barber_availability",
            params=[
                ("select", "*"),
                ("barber_id", f"eq.{barber_id}"),
                ("order", "day_of_week.asc"),
            ],
        )
        return self._parse_rows(WeeklyAvailabilityRecord, rows)

    async def get_schedule_exceptions(
        self,
        barber_id: str,
        start_date: date,
        end_date: date,
    ) -> List[ScheduleExceptionRecord]:
        rows = await self._call(
            "GET",
            "schedule_exceptions",
            params=[
                ("select", "*"),
                ("barber_id", f"eq.{barber_id}"),
                ("date", f"gte.{format_date(start_date)}"),
                ("date", f"lte.{format_date(end_date)}"),
                ("order", "date.asc"),
            ],
        )
        return self._parse_rows(ScheduleExceptionRecord, rows)

    async def get_booked_intervals(self, barber_id: str, on_date: date) -> List[BookedAppointmentRecord]:
        rows = await self._call(
            "GET",
            "appointments",
            params=[
                ("select", "appointment_time,service_duration,status"),
                ("barber_id", f"eq.{barber_id}"),
                ("appointment_date", f"eq.{format_date(on_date)}"),
                ("status", f"in.({','.join(ACTIVE_APPOINTMENT_STATUSES)})"),
            ],
        )
        return self._parse_rows(BookedAppointmentRecord, rows)

    # Writes

    async def upsert_weekly_availability(
        self,
        barber_id: str,
        day_of_week: int,
        start_time: str,
        end_time: str,
        is_available: bool,
    ) -> WeeklyAvailabilityRecord:
        rows = await self._call(
            "POST",
            "barber_availability",
            params=[("on_conflict", "barber_id,day_of_week")],
            payload={
                "barber_id": barber_id,
                "day_of_week": day_of_week,
                "start_time": start_time,
                "end_time": end_time,
                "is_available": is_available,
            },
            prefer="resolution=merge-duplicates,return=representation",
        )
        return self._parse_single(WeeklyAvailabilityRecord, rows)

    async def create_schedule_exception(
        self,
        barber_id: str,
        on_date: date,
        is_available: bool,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ScheduleExceptionRecord:
        rows = await self._call(
            "POST",
            "schedule_exceptions",
            payload={
                "barber_id": barber_id,
                "date": format_date(on_date),
                "is_available": is_available,
                "start_time": start_time,
                "end_time": end_time,
                "reason": reason,
            },
            prefer="return=representation",
        )
        return self._parse_single(ScheduleExceptionRecord, rows)

    async def update_schedule_exception(self, exception_id: Any, updates: Dict[str, Any]) -> ScheduleExceptionRecord:
        payload = {
            key: format_date(value) if isinstance(value, date) else value
            for key, value in updates.items()
        }
        rows = await self._call(
            "PATCH",
            "schedule_exceptions",
            params=[("id", f"eq.{exception_id}")],
            payload=payload,
            prefer="return=representation",
        )
        return self._parse_single(ScheduleExceptionRecord, rows)

    async def delete_schedule_exception(self, exception_id: Any) -> None:
        await self._call(
            "DELETE",
            "schedule_exceptions",
            params=[("id", f"eq.{exception_id}")],
        )

    # HTTP plumbing

    async def _call(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Params] = None,
        payload: Optional[Dict[str, Any]] = None,
        prefer: Optional[str] = None,
    ) -> Any:
        return await asyncio.to_thread(self._request, method, table, params, payload, prefer)

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[Params],
        payload: Optional[Dict[str, Any]],
        prefer: Optional[str],
    ) -> Any:
        """
        Perform one PostgREST request.

        Raises:
            StoreError: On transport errors, HTTP error statuses or a body
                that is not JSON
        """
        url = f"{self.rest_url}/{table}"
        headers = dict(self.headers)
        if prefer:
            headers["Prefer"] = prefer

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=list(params or []),
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("%s %s failed: %s", method, table, e)
            raise StoreError(f"Request to {table} failed: {e}") from e

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Invalid JSON from {table}: {e}") from e

    @staticmethod
    def _parse_rows(model: Type[RecordT], rows: Any) -> List[RecordT]:
        if rows is None:
            return []
        if not isinstance(rows, list):
            raise StoreError(f"Expected a list of {model.__name__} rows, got {type(rows).__name__}")
        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError as e:
            raise StoreError(f"Invalid {model.__name__} row: {e}") from e

    @classmethod
    def _parse_single(cls, model: Type[RecordT], rows: Any) -> RecordT:
        parsed = cls._parse_rows(model, rows)
        if not parsed:
            raise StoreError(f"No {model.__name__} row returned")
        return parsed[0]
