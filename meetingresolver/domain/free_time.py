"""
Derive an attendee's free time from their busy slots.

Free time only exists inside business hours on business days; everything
outside those windows is neither free nor busy and never shows up here.
"""

from typing import Iterator, List, Sequence

import pendulum
from pendulum import DateTime

from .models import BusinessCalendarPolicy, BusySlot, TimeInterval


def business_windows(
    range_start: DateTime,
    range_end: DateTime,
    policy: BusinessCalendarPolicy
) -> Iterator[TimeInterval]:
    """
    Yield the business-hours window of every business day in the range.

    Both boundary days are included. Days are taken in the policy timezone.
    """
    current = pendulum.instance(range_start).in_timezone(policy.timezone).start_of("day")
    last_day = pendulum.instance(range_end).in_timezone(policy.timezone).start_of("day")

    while current <= last_day:
        window = policy.business_window(current)
        if window:
            yield window
        current = current.add(days=1)


def derive_free(
    busy_slots: Sequence[BusySlot],
    range_start: DateTime,
    range_end: DateTime,
    policy: BusinessCalendarPolicy
) -> List[TimeInterval]:
    """
    Convert busy slots into chronological, non-overlapping free intervals.

    Busy slots may arrive in any order; each window's slots are sorted here.

    Example:
    Business hours: 09:00 - 18:00
    Busy: [10:00-11:00, 10:30-12:00, 14:00-15:00]
    Result: [09:00-10:00, 12:00-14:00, 15:00-18:00]
    """
    free: List[TimeInterval] = []

    for window in business_windows(range_start, range_end, policy):
        day_busy = sorted(
            (busy for busy in busy_slots if window.overlaps(busy)),
            key=lambda busy: (busy.start, busy.end)
        )
        free.extend(_subtract_busy_from_window(window, day_busy, policy.timezone))

    return free


def _subtract_busy_from_window(
    window: TimeInterval,
    sorted_busy: Sequence[BusySlot],
    timezone: str
) -> List[TimeInterval]:
    free: List[TimeInterval] = []
    cursor = window.start

    for busy in sorted_busy:
        busy_start = pendulum.instance(busy.start).in_timezone(timezone)
        busy_end = pendulum.instance(busy.end).in_timezone(timezone)

        if cursor < busy_start:
            free.append(TimeInterval(start=cursor, end=busy_start))

        # Overlapping busy slots never move the cursor backwards
        cursor = max(cursor, busy_end)

    if cursor < window.end:
        free.append(TimeInterval(start=cursor, end=window.end))

    return free
