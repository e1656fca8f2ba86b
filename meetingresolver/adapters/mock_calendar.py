"""
Mock calendar source for running without Microsoft Graph access.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain.exceptions import SourceUnavailable, UnknownAttendee
from ..domain.models import BusySlot

if TYPE_CHECKING:
    from ..config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarSource:
    """
    Calendar source that places recurring demo meetings on weekdays.

    Users and their daily meeting patterns come from ``mock_calendar_data.json``.
    Every pattern is placed on each matching weekday of the queried range, so
    the same query always yields the same busy slots. Users marked
    ``accessible: false`` behave like calendars that are not shared.
    """

    def __init__(
        self,
        data_file: Path | None = None,
        timezone: str = "Asia/Tokyo",
        config: Optional["AppConfig"] = None,
        latency_seconds: float = 0.0,
    ):
        """
        Initialize the mock source.

        Args:
            data_file: Optional path to an alternative data file
            timezone: IANA timezone the meeting times are expressed in
            config: Optional AppConfig for calendar_id mapping
            latency_seconds: Artificial delay per fetch
        """
        self.timezone = timezone
        self.config = config
        self.latency_seconds = latency_seconds
        self.users = self._load_users(data_file or DEFAULT_DATA_FILE)

    @staticmethod
    def _load_users(data_file: Path) -> List[Dict[str, Any]]:
        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise SourceUnavailable(f"Could not load mock calendar data from {data_file}: {e}") from e

        return data.get("users", [])

    def find_user(self, attendee_id: str) -> Dict[str, Any] | None:
        """Look a user up by email, id or configured calendar_id."""
        keys = {attendee_id.lower()}

        if self.config:
            colleague = self.config.find_colleague_by_email(attendee_id)
            if colleague and colleague.calendar_id:
                keys.add(colleague.calendar_id.lower())

        for user in self.users:
            if user.get("email", "").lower() in keys or user.get("id", "").lower() in keys:
                return user
        return None

    async def fetch_busy_slots(
        self,
        attendee_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BusySlot]:
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)
        return self.get_busy_slots(attendee_id, range_start, range_end)

    def get_busy_slots(
        self,
        attendee_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[BusySlot]:
        """
        Build busy slots for one user from their meeting patterns.

        Raises:
            UnknownAttendee: If the user is unknown or not accessible
        """
        user = self.find_user(attendee_id)
        if user is None:
            raise UnknownAttendee(attendee_id, "no such user in mock data")
        if not user.get("accessible", True):
            raise UnknownAttendee(attendee_id, "calendar not shared")

        busy_slots: List[BusySlot] = []
        day = pendulum.instance(range_start).in_timezone(self.timezone).start_of("day")
        last_day = pendulum.instance(range_end).in_timezone(self.timezone).start_of("day")

        while day <= last_day:
            for meeting in user.get("meetings", []):
                if day.day_of_week not in meeting.get("weekdays", [0, 1, 2, 3, 4]):
                    continue

                hour, minute = (int(part) for part in meeting["time"].split(":"))
                start = day.set(hour=hour, minute=minute)
                end = start.add(minutes=int(meeting["duration"]))

                if start < range_end and end > range_start:
                    busy_slots.append(
                        BusySlot(
                            start=start,
                            end=end,
                            label=meeting.get("title", ""),
                            attendee_id=attendee_id,
                        )
                    )

            day = day.add(days=1)

        logger.debug("Generated %d mock busy slot(s) for %s", len(busy_slots), attendee_id)
        return sorted(busy_slots, key=lambda busy: (busy.start, busy.end))
