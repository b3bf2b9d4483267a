"""
Tests for week summaries and copy-week planning.
"""

from datetime import date

from barberslots.domain.models import CLOSED, BookedInterval, OpenWindow
from barberslots.domain.week_planner import (
    ExceptionDraft,
    plan_week_copy,
    summarize_week,
    week_dates,
)

WEEK = date(2024, 11, 25)


class TestWeekDates:
    def test_seven_consecutive_days(self):
        days = week_dates(WEEK)

        assert len(days) == 7
        assert days[0] == date(2024, 11, 25)
        assert days[-1] == date(2024, 12, 1)


class TestSummarizeWeek:
    """Tests for summarize_week."""

    def test_totals(self):
        windows = {day: CLOSED for day in week_dates(WEEK)}
        windows[date(2024, 11, 25)] = OpenWindow(start=540, end=1080)  # 9h
        windows[date(2024, 11, 30)] = OpenWindow(start=600, end=960)   # 6h
        booked = {date(2024, 11, 25): [BookedInterval(start=600, duration_minutes=30)] * 3}

        summary = summarize_week(WEEK, windows, booked)

        assert summary.working_days == 2
        assert summary.total_minutes == 900
        assert summary.total_hours == 15
        assert summary.average_hours_per_day == 7.5
        assert summary.available_slots == 18 + 12
        assert summary.booked == 3
        assert summary.utilization_pct == 10
        assert summary.days[0].capacity == 18
        assert not summary.days[1].is_working_day

    def test_closed_week(self):
        windows = {day: CLOSED for day in week_dates(WEEK)}

        summary = summarize_week(WEEK, windows, {})

        assert summary.working_days == 0
        assert summary.average_hours_per_day == 0
        assert summary.utilization_pct == 0


class TestPlanWeekCopy:
    """Tests for plan_week_copy."""

    def test_shifts_by_whole_weeks(self):
        holiday = ExceptionDraft(date=date(2024, 11, 28), is_available=False, reason="Thanksgiving")

        planned = plan_week_copy([holiday], WEEK, [date(2024, 12, 2)], [])

        assert planned == [
            ExceptionDraft(date=date(2024, 12, 5), is_available=False, reason="Thanksgiving")
        ]

    def test_skips_existing_dates(self):
        drafts = [
            ExceptionDraft(date=date(2024, 11, 26), is_available=True, start_time="11:00"),
            ExceptionDraft(date=date(2024, 11, 27), is_available=False),
        ]

        planned = plan_week_copy(drafts, WEEK, [date(2024, 12, 2)], [date(2024, 12, 3)])

        assert [draft.date for draft in planned] == [date(2024, 12, 4)]

    def test_ignores_exceptions_outside_source_week(self):
        drafts = [ExceptionDraft(date=date(2024, 12, 2), is_available=False)]

        assert plan_week_copy(drafts, WEEK, [date(2024, 12, 9)], []) == []

    def test_same_target_twice_creates_once(self):
        drafts = [ExceptionDraft(date=date(2024, 11, 26), is_available=False)]

        planned = plan_week_copy(drafts, WEEK, [date(2024, 12, 2), date(2024, 12, 2)], [])

        assert len(planned) == 1
