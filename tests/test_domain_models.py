"""
Tests for domain models.
"""

from datetime import time

import pendulum
import pytest
from pendulum import DateTime

from meetingresolver.domain.exceptions import InvalidInterval
from meetingresolver.domain.models import (
    AttendeeAvailability,
    BusinessCalendarPolicy,
    BusySlot,
    CandidateSlot,
    TimeInterval,
)

TZ = "Asia/Tokyo"


def at(value: str) -> DateTime:
    return pendulum.parse(value, tz=TZ)


class TestTimeInterval:
    """Tests for TimeInterval model."""

    def test_create_valid_interval(self):
        """Test creating a valid interval."""
        interval = TimeInterval(start=at("2024-02-12 09:00"), end=at("2024-02-12 18:00"))

        assert interval.start == at("2024-02-12 09:00")
        assert interval.end == at("2024-02-12 18:00")
        assert interval.duration_minutes() == 540

    def test_invalid_interval_raises_error(self):
        """Test that an interval ending before it starts is rejected."""
        with pytest.raises(InvalidInterval, match="Start time .* must be before end time"):
            TimeInterval(start=at("2024-02-12 17:00"), end=at("2024-02-12 09:00"))

    def test_zero_length_interval_raises_error(self):
        """An empty interval is malformed as well."""
        with pytest.raises(InvalidInterval):
            TimeInterval(start=at("2024-02-12 09:00"), end=at("2024-02-12 09:00"))

    def test_invalid_interval_is_a_value_error(self):
        """Callers catching ValueError also see malformed intervals."""
        with pytest.raises(ValueError):
            TimeInterval(start=at("2024-02-12 10:00"), end=at("2024-02-12 09:00"))

    def test_overlaps(self):
        """Test overlap detection; touching intervals do not overlap."""
        morning = TimeInterval(start=at("2024-02-12 09:00"), end=at("2024-02-12 12:00"))
        midday = TimeInterval(start=at("2024-02-12 11:00"), end=at("2024-02-12 14:00"))
        afternoon = TimeInterval(start=at("2024-02-12 14:00"), end=at("2024-02-12 17:00"))

        assert morning.overlaps(midday)
        assert midday.overlaps(morning)
        assert not morning.overlaps(afternoon)
        assert not midday.overlaps(afternoon)

    def test_intersect(self):
        """Test intersection calculation."""
        first = TimeInterval(start=at("2024-02-12 09:00"), end=at("2024-02-12 12:00"))
        second = TimeInterval(start=at("2024-02-12 11:00"), end=at("2024-02-12 14:00"))

        intersection = first.intersect(second)

        assert intersection == TimeInterval(start=at("2024-02-12 11:00"), end=at("2024-02-12 12:00"))

    def test_intersect_no_overlap(self):
        """Test intersection with no overlap returns None."""
        first = TimeInterval(start=at("2024-02-12 09:00"), end=at("2024-02-12 12:00"))
        second = TimeInterval(start=at("2024-02-12 14:00"), end=at("2024-02-12 17:00"))

        assert first.intersect(second) is None

    def test_interval_is_immutable(self):
        interval = TimeInterval(start=at("2024-02-12 09:00"), end=at("2024-02-12 10:00"))

        with pytest.raises(AttributeError):
            interval.start = at("2024-02-12 08:00")


class TestBusySlot:
    """Tests for BusySlot model."""

    def test_busy_slot_carries_label_and_attendee(self):
        busy = BusySlot(
            start=at("2024-02-12 10:00"),
            end=at("2024-02-12 11:00"),
            label="Technical review",
            attendee_id="sato@company.com",
        )

        assert busy.label == "Technical review"
        assert busy.attendee_id == "sato@company.com"
        assert busy.duration_minutes() == 60

    def test_malformed_busy_slot_is_rejected(self):
        with pytest.raises(InvalidInterval):
            BusySlot(start=at("2024-02-12 11:00"), end=at("2024-02-12 10:00"), label="Broken")


class TestCandidateSlot:
    """Tests for CandidateSlot model."""

    def test_confidence_out_of_range_is_rejected(self):
        with pytest.raises(ValueError, match="Confidence"):
            CandidateSlot(start=at("2024-02-12 10:00"), end=at("2024-02-12 10:30"), confidence=1.5)

    def test_overlap_between_candidates(self):
        first = CandidateSlot(start=at("2024-02-12 10:00"), end=at("2024-02-12 10:30"), confidence=1.0)
        shifted = CandidateSlot(start=at("2024-02-12 10:15"), end=at("2024-02-12 10:45"), confidence=1.0)
        adjacent = CandidateSlot(start=at("2024-02-12 10:30"), end=at("2024-02-12 11:00"), confidence=1.0)

        assert first.overlaps(shifted)
        assert not first.overlaps(adjacent)

    def test_format_display(self):
        slot = CandidateSlot(start=at("2024-02-12 14:30"), end=at("2024-02-12 15:00"), confidence=1.0)

        assert slot.format_display() == "Monday, 2024-02-12 | 14:30 - 15:00 (30 min)"


class TestAttendeeAvailability:
    """Tests for AttendeeAvailability model."""

    def test_free_minutes(self):
        availability = AttendeeAvailability(
            attendee_id="tanaka@company.com",
            free_slots=(
                TimeInterval(start=at("2024-02-12 09:00"), end=at("2024-02-12 10:00")),
                TimeInterval(start=at("2024-02-12 15:00"), end=at("2024-02-12 15:30")),
            ),
        )

        assert availability.free_minutes() == 90


class TestBusinessCalendarPolicy:
    """Tests for BusinessCalendarPolicy model."""

    def test_default_policy(self):
        policy = BusinessCalendarPolicy()

        assert policy.business_days == (0, 1, 2, 3, 4)
        assert policy.open_time == time(9, 0)
        assert policy.close_time == time(18, 0)

    def test_is_business_day(self):
        """Test business day detection."""
        policy = BusinessCalendarPolicy()

        assert policy.is_business_day(at("2024-02-12 00:00"))  # Monday
        assert not policy.is_business_day(at("2024-02-10 00:00"))  # Saturday
        assert not policy.is_business_day(at("2024-02-11 00:00"))  # Sunday

    def test_business_window(self):
        """Test getting business hours for a specific day."""
        policy = BusinessCalendarPolicy(open_time=time(9, 30), close_time=time(17, 0))

        window = policy.business_window(at("2024-02-12 00:00"))

        assert window == TimeInterval(start=at("2024-02-12 09:30"), end=at("2024-02-12 17:00"))

    def test_business_window_for_weekend(self):
        """Test getting business hours for a weekend returns None."""
        policy = BusinessCalendarPolicy()

        assert policy.business_window(at("2024-02-10 00:00")) is None

    def test_custom_business_days(self):
        policy = BusinessCalendarPolicy(business_days=(6,))

        assert policy.business_window(at("2024-02-11 00:00")) is not None
        assert policy.business_window(at("2024-02-12 00:00")) is None

    def test_closing_before_opening_is_rejected(self):
        with pytest.raises(ValueError, match="Opening time"):
            BusinessCalendarPolicy(open_time=time(18, 0), close_time=time(9, 0))

    def test_unknown_timezone_is_rejected(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            BusinessCalendarPolicy(timezone="Mars/Olympus_Mons")
