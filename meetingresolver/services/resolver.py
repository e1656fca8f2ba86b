"""
Application services for resolving meeting times.

The aggregator fetches busy slots through a calendar source adapter and turns
them into per-attendee availability; the resolver feeds that availability to
the domain-level ``CommonSlotFinder`` and ``rank``. Depending on a protocol
keeps the CLI thin and lets tests plug in a stub source.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from pendulum import DateTime

from ..domain.exceptions import UnknownAttendee
from ..domain.free_time import derive_free
from ..domain.models import (
    AttendeeAvailability,
    BusinessCalendarPolicy,
    BusySlot,
    CandidateSlot,
)
from ..domain.ranking import DEFAULT_MAX_RESULTS, rank
from ..domain.slot_finder import CommonSlotFinder

logger = logging.getLogger(__name__)


class CalendarSourceProtocol(Protocol):
    """Protocol describing the calendar source behaviour needed by the services."""

    async def fetch_busy_slots(
        self,
        attendee_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> Sequence[BusySlot]:
        """Return the attendee's busy slots, or raise SourceUnavailable/UnknownAttendee."""


class AvailabilityAggregator:
    """
    Builds one ``AttendeeAvailability`` per requested attendee.

    Fetches run concurrently; an attendee whose calendar is unknown or whose
    fetch times out is left out of the result with a warning. Only an
    unreachable source fails the whole batch.
    """

    def __init__(
        self,
        calendar_source: CalendarSourceProtocol,
        policy: BusinessCalendarPolicy,
        fetch_timeout: Optional[float] = None,
    ) -> None:
        self._calendar_source = calendar_source
        self._policy = policy
        self._fetch_timeout = fetch_timeout

    async def aggregate(
        self,
        attendee_ids: Iterable[str],
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[AttendeeAvailability]:
        """Fetch and derive availability for every unique attendee, in input order."""
        unique_ids = _dedupe(attendee_ids)
        if not unique_ids:
            return []

        results = await asyncio.gather(
            *(self._fetch(attendee_id, range_start, range_end) for attendee_id in unique_ids),
            return_exceptions=True,
        )

        availabilities: List[AttendeeAvailability] = []

        for attendee_id, result in zip(unique_ids, results):
            if isinstance(result, UnknownAttendee):
                logger.warning("Skipping attendee %s: %s", attendee_id, result)
                continue
            if isinstance(result, asyncio.TimeoutError):
                logger.warning(
                    "Skipping attendee %s: calendar fetch exceeded %ss",
                    attendee_id,
                    self._fetch_timeout,
                )
                continue
            if isinstance(result, BaseException):
                raise result

            availabilities.append(
                self._build_availability(attendee_id, result, range_start, range_end)
            )

        logger.debug(
            "Aggregated availability for %d of %d attendees",
            len(availabilities),
            len(unique_ids),
        )
        return availabilities

    async def _fetch(
        self,
        attendee_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> Sequence[BusySlot]:
        fetch = self._calendar_source.fetch_busy_slots(attendee_id, range_start, range_end)
        if self._fetch_timeout is None:
            return await fetch
        return await asyncio.wait_for(fetch, timeout=self._fetch_timeout)

    def _build_availability(
        self,
        attendee_id: str,
        busy_slots: Sequence[BusySlot],
        range_start: DateTime,
        range_end: DateTime,
    ) -> AttendeeAvailability:
        # derive_free orders each window's slots itself
        free_slots = derive_free(busy_slots, range_start, range_end, self._policy)
        return AttendeeAvailability(
            attendee_id=attendee_id,
            free_slots=tuple(free_slots),
            busy_slots=tuple(busy_slots),
        )


class MeetingTimeResolver:
    """
    Orchestrates availability aggregation, the common-slot sweep and ranking.
    """

    def __init__(
        self,
        calendar_source: CalendarSourceProtocol,
        policy: Optional[BusinessCalendarPolicy] = None,
        slot_finder: Optional[CommonSlotFinder] = None,
        fetch_timeout: Optional[float] = None,
    ) -> None:
        self._calendar_source = calendar_source
        self._policy = policy or BusinessCalendarPolicy()
        self._slot_finder = slot_finder or CommonSlotFinder()
        self._fetch_timeout = fetch_timeout

    def aggregator(self, policy: Optional[BusinessCalendarPolicy] = None) -> AvailabilityAggregator:
        return AvailabilityAggregator(
            calendar_source=self._calendar_source,
            policy=policy or self._policy,
            fetch_timeout=self._fetch_timeout,
        )

    async def resolve(
        self,
        *,
        attendee_ids: Iterable[str],
        duration_minutes: int,
        range_start: DateTime,
        range_end: DateTime,
        policy: Optional[BusinessCalendarPolicy] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> List[CandidateSlot]:
        """
        Return up to ``max_results`` ranked, non-overlapping meeting slots.

        An empty list means no slot was found; an unreachable calendar source
        raises ``SourceUnavailable`` instead.
        """
        if duration_minutes <= 0:
            raise ValueError(f"Duration must be positive, got {duration_minutes}")

        availabilities = await self.aggregator(policy).aggregate(
            attendee_ids, range_start, range_end
        )
        if not availabilities:
            return []

        candidates = self._slot_finder.find_common(availabilities, duration_minutes)
        ranked = rank(candidates, max_results=max_results)

        logger.info(
            "Found %d candidate(s), returning %d for %d attendee(s)",
            len(candidates),
            len(ranked),
            len(availabilities),
        )
        return ranked

    def resolve_meeting_times(
        self,
        attendee_ids: Iterable[str],
        duration_minutes: int,
        range_start: DateTime,
        range_end: DateTime,
        policy: Optional[BusinessCalendarPolicy] = None,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> List[CandidateSlot]:
        """Synchronous entry point; must not be called from a running event loop."""
        return asyncio.run(
            self.resolve(
                attendee_ids=attendee_ids,
                duration_minutes=duration_minutes,
                range_start=range_start,
                range_end=range_end,
                policy=policy,
                max_results=max_results,
            )
        )


def _dedupe(attendee_ids: Iterable[str]) -> List[str]:
    """Drop repeated IDs, keeping the first occurrence."""
    seen: set[str] = set()
    unique: List[str] = []
    for attendee_id in attendee_ids:
        if attendee_id not in seen:
            unique.append(attendee_id)
            seen.add(attendee_id)
    return unique
