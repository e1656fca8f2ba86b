"""
Domain models for intervals, availability and candidate meeting slots.

All instants are timezone-aware pendulum DateTimes.
"""

from dataclasses import dataclass, field
from datetime import time
from typing import FrozenSet, Tuple

import pendulum
from pendulum import DateTime
from pendulum.tz.exceptions import InvalidTimezone

from .exceptions import InvalidInterval


@dataclass(frozen=True)
class TimeInterval:
    """
    Represents an immutable half-open interval ``[start, end)``.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidInterval(f"Start time {self.start} must be before end time {self.end}")

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return int((self.end - self.start).total_seconds() / 60)

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval intersects another. Touching ends do not count."""
        return self.start < other.end and self.end > other.start

    def intersect(self, other: "TimeInterval") -> "TimeInterval | None":
        """
        Calculate the intersection of two intervals.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return TimeInterval(start=max(self.start, other.start), end=min(self.end, other.end))

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class BusySlot(TimeInterval):
    """
    A committed interval on one attendee's calendar.
    """
    label: str = ""
    attendee_id: str = ""


@dataclass(frozen=True)
class AttendeeAvailability:
    """
    Free and busy time of a single attendee for one resolution call.
    """
    attendee_id: str
    free_slots: Tuple[TimeInterval, ...] = ()
    busy_slots: Tuple[BusySlot, ...] = ()

    def free_minutes(self) -> int:
        """Total free business time in minutes."""
        return sum(slot.duration_minutes() for slot in self.free_slots)


@dataclass(frozen=True)
class CandidateSlot:
    """
    A meeting window together with the attendees who can make it.
    """
    start: DateTime
    end: DateTime
    confidence: float
    available_attendees: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidInterval(f"Start time {self.start} must be before end time {self.end}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence must be between 0 and 1, got {self.confidence}")

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

    def overlaps(self, other: "CandidateSlot") -> bool:
        return self.start < other.end and self.end > other.start

    def duration_minutes(self) -> int:
        return self.interval.duration_minutes()

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, YYYY-MM-DD | HH:MM - HH:MM (N min)
        """
        return (
            f"{self.start.format('dddd, YYYY-MM-DD')} | "
            f"{self.start.format('HH:mm')} - {self.end.format('HH:mm')} "
            f"({self.duration_minutes()} min)"
        )


@dataclass(frozen=True)
class BusinessCalendarPolicy:
    """
    Business days and business hours used to derive free time.

    Weekdays follow ``DateTime.day_of_week``: 0=Monday, 6=Sunday. Business
    hours are wall-clock times in ``timezone``.
    """
    business_days: Tuple[int, ...] = (0, 1, 2, 3, 4)
    open_time: time = time(9, 0)
    close_time: time = time(18, 0)
    timezone: str = "Asia/Tokyo"

    def __post_init__(self):
        if self.open_time >= self.close_time:
            raise ValueError(
                f"Opening time {self.open_time} must be before closing time {self.close_time}"
            )
        try:
            pendulum.timezone(self.timezone)
        except (InvalidTimezone, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone}") from exc

    def is_business_day(self, day: DateTime) -> bool:
        """Check if a given day, taken in the policy timezone, is a business day."""
        return day.in_timezone(self.timezone).day_of_week in self.business_days

    def business_window(self, day: DateTime) -> TimeInterval | None:
        """
        Get the business-hours window for a specific day.
        Returns None if it's not a business day.
        """
        if not self.is_business_day(day):
            return None

        local_day = day.in_timezone(self.timezone)
        return TimeInterval(
            start=local_day.set(
                hour=self.open_time.hour,
                minute=self.open_time.minute,
                second=0,
                microsecond=0
            ),
            end=local_day.set(
                hour=self.close_time.hour,
                minute=self.close_time.minute,
                second=0,
                microsecond=0
            ),
        )
