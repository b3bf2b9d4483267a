"""
Tests for the schedule store adapters.
"""

import asyncio
from datetime import date

import pytest
import requests

from barberslots.adapters.mock_store import MockScheduleStore
from barberslots.adapters.supabase_store import SupabaseScheduleStore
from barberslots.domain.exceptions import StoreError


class TestMockScheduleStore:
    """Tests for the bundled mock data."""

    def test_loads_bundled_data(self):
        store = MockScheduleStore.from_json()

        weekly = asyncio.run(store.get_weekly_availability("b-marcus"))

        assert [record.day_of_week for record in weekly] == list(range(7))

    def test_missing_file_gives_empty_store(self, tmp_path):
        store = MockScheduleStore.from_json(tmp_path / "nothing.json")

        assert asyncio.run(store.get_weekly_availability("b-marcus")) == []

    def test_booked_intervals_only_active(self):
        store = MockScheduleStore.from_json()

        booked = asyncio.run(store.get_booked_intervals("b-marcus", date(2025, 1, 13)))

        assert {record.status for record in booked} == {"scheduled", "confirmed"}
        assert [record.appointment_time for record in booked] == ["10:00:00", "12:00:00"]

    def test_exceptions_filtered_by_range(self):
        store = MockScheduleStore.from_json()

        exceptions = asyncio.run(
            store.get_schedule_exceptions("b-marcus", date(2025, 1, 13), date(2025, 1, 19))
        )

        assert [record.date for record in exceptions] == [date(2025, 1, 14)]
        assert exceptions[0].end_time is None

    def test_one_exception_per_date(self):
        store = MockScheduleStore()
        asyncio.run(store.create_schedule_exception("b1", date(2025, 1, 1), False))

        with pytest.raises(StoreError):
            asyncio.run(store.create_schedule_exception("b1", date(2025, 1, 1), True))

    def test_invalid_row_raises_store_error(self):
        store = MockScheduleStore(
            {"weekly_availability": [{"barber_id": "b1", "day_of_week": 9, "start_time": "09:00", "end_time": "17:00"}]}
        )

        with pytest.raises(StoreError):
            asyncio.run(store.get_weekly_availability("b1"))


class FakeResponse:
    def __init__(self, payload=None, status_code=200, content=b"x"):
        self._payload = payload
        self.status_code = status_code
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Records requests and replays canned responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _store(*responses):
    session = FakeSession(*responses)
    return SupabaseScheduleStore("https://demo.supabase.co/", "anon", session=session), session


class TestSupabaseScheduleStore:
    """Tests for the PostgREST adapter."""

    def test_weekly_availability_request(self):
        store, session = _store(
            FakeResponse([
                {"id": "r1", "barber_id": "b1", "day_of_week": 1, "start_time": "09:00:00",
                 "end_time": "17:00:00", "is_available": True, "created_at": "2024-01-01"},
            ])
        )

        records = asyncio.run(store.get_weekly_availability("b1"))

        assert records[0].day_of_week == 1
        assert records[0].to_domain().start == 540
        sent = session.requests[0]
        assert sent["method"] == "GET"
        assert sent["url"] == "https://demo.supabase.co/rest/v1/barber_availability"
        assert ("barber_id", "eq.b1") in sent["params"]
        assert sent["headers"]["apikey"] == "anon"
        assert sent["headers"]["Authorization"] == "Bearer anon"
        assert sent["timeout"] == 10

    def test_booked_intervals_filter_active_statuses(self):
        store, session = _store(
            FakeResponse([{"appointment_time": "10:00:00", "service_duration": 30, "status": "confirmed"}])
        )

        records = asyncio.run(store.get_booked_intervals("b1", date(2024, 11, 25)))

        assert records[0].to_domain().end == 630
        params = session.requests[0]["params"]
        assert ("appointment_date", "eq.2024-11-25") in params
        assert ("status", "in.(scheduled,confirmed)") in params

    def test_exception_range_uses_both_bounds(self):
        store, session = _store(FakeResponse([]))

        asyncio.run(store.get_schedule_exceptions("b1", date(2024, 11, 25), date(2024, 12, 1)))

        params = session.requests[0]["params"]
        assert ("date", "gte.2024-11-25") in params
        assert ("date", "lte.2024-12-01") in params

    def test_upsert_merges_on_day_of_week(self):
        row = {"barber_id": "b1", "day_of_week": 2, "start_time": "10:00", "end_time": "18:00", "is_available": True}
        store, session = _store(FakeResponse([row]))

        record = asyncio.run(store.upsert_weekly_availability("b1", 2, "10:00", "18:00", True))

        assert record.day_of_week == 2
        sent = session.requests[0]
        assert sent["method"] == "POST"
        assert ("on_conflict", "barber_id,day_of_week") in sent["params"]
        assert "resolution=merge-duplicates" in sent["headers"]["Prefer"]

    def test_update_serializes_dates(self):
        row = {"id": 7, "date": "2024-12-24", "is_available": False}
        store, session = _store(FakeResponse([row]))

        asyncio.run(store.update_schedule_exception(7, {"date": date(2024, 12, 24)}))

        sent = session.requests[0]
        assert sent["method"] == "PATCH"
        assert sent["json"] == {"date": "2024-12-24"}
        assert ("id", "eq.7") in sent["params"]

    def test_delete_with_empty_body(self):
        store, session = _store(FakeResponse(None, status_code=204, content=b""))

        assert asyncio.run(store.delete_schedule_exception(7)) is None
        assert session.requests[0]["method"] == "DELETE"

    def test_transport_error_raises_store_error(self):
        store, _ = _store(requests.exceptions.ConnectionError("refused"))

        with pytest.raises(StoreError, match="refused"):
            asyncio.run(store.get_booked_intervals("b1", date(2024, 11, 25)))

    def test_http_error_raises_store_error(self):
        store, _ = _store(FakeResponse({"message": "denied"}, status_code=401))

        with pytest.raises(StoreError):
            asyncio.run(store.get_weekly_availability("b1"))

    def test_invalid_json_raises_store_error(self):
        store, _ = _store(FakeResponse(ValueError("not json")))

        with pytest.raises(StoreError, match="Invalid JSON"):
            asyncio.run(store.get_weekly_availability("b1"))

    def test_unexpected_payload_raises_store_error(self):
        store, _ = _store(FakeResponse({"not": "a list"}))

        with pytest.raises(StoreError):
            asyncio.run(store.get_weekly_availability("b1"))

    def test_empty_representation_raises_store_error(self):
        store, _ = _store(FakeResponse([]))

        with pytest.raises(StoreError, match="No ScheduleExceptionRecord"):
            asyncio.run(store.create_schedule_exception("b1", date(2024, 12, 24), False))

    def test_requires_base_url(self):
        with pytest.raises(ValueError):
            SupabaseScheduleStore("", "anon")
