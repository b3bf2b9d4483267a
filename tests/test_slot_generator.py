"""
Tests for slot generator.
"""

import pytest

from barberslots.domain.exceptions import InvalidDurationError
from barberslots.domain.models import CLOSED, BookedInterval, OpenWindow
from barberslots.domain.slot_generator import SlotGenerator, exclude_past, generate_slots
from barberslots.domain.timeutils import parse_time


def labels(slots):
    return [slot.time_label() for slot in slots]


def booked(start, duration):
    return BookedInterval(start=parse_time(start), duration_minutes=duration)


NINE_TO_FIVE = OpenWindow(start=parse_time("09:00"), end=parse_time("17:00"))


class TestSlotGenerator:
    """Tests for SlotGenerator."""

    def setup_method(self):
        self.generator = SlotGenerator()

    def test_open_day_without_bookings(self):
        """A 9-17 day offers sixteen 30-minute slots, 09:00 through 16:30."""
        slots = self.generator.generate_slots(NINE_TO_FIVE, 30, [])

        assert len(slots) == 16
        assert labels(slots)[0] == "09:00"
        assert labels(slots)[1] == "09:30"
        assert labels(slots)[-1] == "16:30"

    def test_booking_removes_its_slot(self):
        slots = self.generator.generate_slots(NINE_TO_FIVE, 30, [booked("10:00", 30)])

        assert "10:00" not in labels(slots)
        assert "09:30" in labels(slots)
        assert "10:30" in labels(slots)
        assert len(slots) == 15

    def test_closed_window_has_no_slots(self):
        assert self.generator.generate_slots(CLOSED, 30, [booked("10:00", 30)]) == []

    def test_longer_service_stays_on_half_hour_grid(self):
        """A 45-minute service still starts on :00 and :30 only."""
        slots = self.generator.generate_slots(NINE_TO_FIVE, 45, [])

        assert labels(slots)[:2] == ["09:00", "09:30"]
        assert labels(slots)[-1] == "16:00"
        assert "16:30" not in labels(slots)
        assert all(slot.start % 30 == 0 for slot in slots)

    def test_last_slot_ends_exactly_at_close(self):
        window = OpenWindow(start=parse_time("09:00"), end=parse_time("17:15"))

        slots = self.generator.generate_slots(window, 45, [])

        assert labels(slots)[-1] == "16:30"
        assert slots[-1].end == window.end

    def test_booking_spanning_two_grid_marks_blocks_both(self):
        slots = self.generator.generate_slots(NINE_TO_FIVE, 30, [booked("12:00", 45)])

        assert "12:00" not in labels(slots)
        assert "12:30" not in labels(slots)
        assert "11:30" in labels(slots)
        assert "13:00" in labels(slots)

    def test_longer_service_blocked_by_later_booking(self):
        """An 11:30 start for 60 minutes would run into a 12:00 booking."""
        slots = self.generator.generate_slots(NINE_TO_FIVE, 60, [booked("12:00", 30)])

        assert "11:00" in labels(slots)
        assert "11:30" not in labels(slots)
        assert "12:00" not in labels(slots)
        assert "12:30" in labels(slots)

    def test_off_grid_booking(self):
        slots = self.generator.generate_slots(NINE_TO_FIVE, 30, [booked("10:15", 15)])

        assert "10:00" not in labels(slots)
        assert "10:30" in labels(slots)

    def test_booking_outside_window_has_no_effect(self):
        slots = self.generator.generate_slots(NINE_TO_FIVE, 30, [booked("18:00", 60)])

        assert len(slots) == 16

    def test_window_shorter_than_service_has_no_slots(self):
        window = OpenWindow(start=parse_time("09:00"), end=parse_time("09:20"))

        assert self.generator.generate_slots(window, 30, []) == []

    def test_window_starting_off_grid(self):
        """The grid is anchored at the window start."""
        window = OpenWindow(start=parse_time("09:15"), end=parse_time("11:00"))

        slots = self.generator.generate_slots(window, 30, [])

        assert labels(slots) == ["09:15", "09:45", "10:15"]

    @pytest.mark.parametrize("duration", [0, -30])
    def test_rejects_non_positive_duration(self, duration):
        with pytest.raises(InvalidDurationError):
            self.generator.generate_slots(NINE_TO_FIVE, duration, [])

    def test_rejects_invalid_duration_even_for_closed_window(self):
        with pytest.raises(InvalidDurationError):
            self.generator.generate_slots(CLOSED, 0, [])

    @pytest.mark.parametrize("duration", [30.5, "30", True])
    def test_rejects_non_integer_duration(self, duration):
        with pytest.raises(InvalidDurationError):
            self.generator.generate_slots(NINE_TO_FIVE, duration, [])

    def test_generated_slots_fit_window_and_avoid_bookings(self):
        bookings = [booked("09:30", 30), booked("11:00", 90), booked("15:40", 25)]

        for duration in (15, 30, 45, 60, 90):
            slots = self.generator.generate_slots(NINE_TO_FIVE, duration, bookings)

            for slot in slots:
                assert slot.start >= NINE_TO_FIVE.start
                assert slot.start + duration <= NINE_TO_FIVE.end
                for busy in bookings:
                    assert not (slot.start < busy.end and slot.start + duration > busy.start)

    def test_output_is_ordered_and_repeatable(self):
        bookings = [booked("14:00", 30), booked("10:00", 45)]

        first = self.generator.generate_slots(NINE_TO_FIVE, 30, bookings)
        second = self.generator.generate_slots(NINE_TO_FIVE, 30, list(reversed(bookings)))

        assert first == second
        assert [slot.start for slot in first] == sorted(slot.start for slot in first)

    def test_count_capacity(self):
        assert self.generator.count_capacity(NINE_TO_FIVE) == 16
        assert self.generator.count_capacity(CLOSED) == 0

    def test_module_shortcut(self):
        assert generate_slots(NINE_TO_FIVE, 30, []) == self.generator.generate_slots(NINE_TO_FIVE, 30, [])


class TestExcludePast:
    """Tests for dropping slots that already started."""

    def test_keeps_slots_after_lead_time(self):
        slots = generate_slots(NINE_TO_FIVE, 30, [])

        remaining = exclude_past(slots, now_minute=parse_time("10:20"), lead_minutes=5)

        assert labels(remaining)[0] == "10:30"

    def test_slot_inside_lead_time_is_dropped(self):
        slots = generate_slots(NINE_TO_FIVE, 30, [])

        remaining = exclude_past(slots, now_minute=parse_time("10:25"), lead_minutes=5)

        assert "10:30" not in labels(remaining)
        assert labels(remaining)[0] == "11:00"

    def test_before_opening_keeps_everything(self):
        slots = generate_slots(NINE_TO_FIVE, 30, [])

        assert exclude_past(slots, now_minute=parse_time("07:00")) == slots
