"""
Core business logic for finding windows a quorum of attendees can make.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

import math
from typing import FrozenSet, List, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .models import AttendeeAvailability, CandidateSlot

DEFAULT_RESOLUTION_MINUTES = 15


class CommonSlotFinder:
    """
    Finds candidate meeting windows by sweeping a fixed time grid.

    Algorithm:
    1. Flatten every attendee's free intervals into (start, end, attendee) triples
    2. Lay a grid over [earliest start, latest end) in resolution steps
    3. Record which attendees are free at each grid point
    4. From every grid point with someone free, intersect the free attendees
       over all grid points covered by the requested duration
    5. Emit a candidate for every start point whose intersection stays non-empty
    """

    def __init__(self, resolution_minutes: int = DEFAULT_RESOLUTION_MINUTES):
        if resolution_minutes <= 0:
            raise ValueError(f"Resolution must be positive, got {resolution_minutes}")
        self.resolution_minutes = resolution_minutes

    def find_common(
        self,
        availabilities: Sequence[AttendeeAvailability],
        duration_minutes: int
    ) -> List[CandidateSlot]:
        """
        Find every grid-aligned window of the requested duration.

        Args:
            availabilities: One availability record per attendee
            duration_minutes: Required meeting length

        Returns:
            Candidates in chronological order of their start, neither ranked
            nor deduplicated
        """
        if duration_minutes <= 0:
            raise ValueError(f"Duration must be positive, got {duration_minutes}")

        triples = [
            (slot.start, slot.end, availability.attendee_id)
            for availability in availabilities
            for slot in availability.free_slots
        ]

        if not triples:
            return []

        scan_start, coverage = self._sweep(triples)
        steps = math.ceil(duration_minutes / self.resolution_minutes)
        attendee_count = len(availabilities)

        candidates: List[CandidateSlot] = []

        for index, available in enumerate(coverage):
            if not available:
                continue

            still_available = self._walk(coverage, index, steps)
            if not still_available:
                continue

            start = scan_start.add(minutes=index * self.resolution_minutes)
            candidates.append(
                CandidateSlot(
                    start=start,
                    end=start.add(minutes=duration_minutes),
                    confidence=len(still_available) / attendee_count,
                    available_attendees=still_available,
                )
            )

        return candidates

    def _sweep(
        self,
        triples: Sequence[Tuple[DateTime, DateTime, str]]
    ) -> Tuple[DateTime, List[FrozenSet[str]]]:
        """
        Compute the set of free attendees at every grid point.

        A grid point t is covered by an interval when start <= t < end.
        """
        scan_start = pendulum.instance(min(start for start, _, _ in triples))
        scan_end = max(end for _, end, _ in triples)

        origin = scan_start.timestamp()
        step = self.resolution_minutes * 60
        point_count = math.ceil((scan_end.timestamp() - origin) / step)

        grid: List[set] = [set() for _ in range(point_count)]

        for start, end, attendee_id in triples:
            first = math.ceil((start.timestamp() - origin) / step)
            stop = math.ceil((end.timestamp() - origin) / step)
            for index in range(first, stop):
                grid[index].add(attendee_id)

        return scan_start, [frozenset(attendees) for attendees in grid]

    @staticmethod
    def _walk(
        coverage: Sequence[FrozenSet[str]],
        index: int,
        steps: int
    ) -> FrozenSet[str]:
        """Intersect the free attendees over ``steps`` grid points from ``index``."""
        still_available = coverage[index]

        for offset in range(1, steps):
            position = index + offset
            if position >= len(coverage):
                return frozenset()

            still_available = still_available & coverage[position]
            if not still_available:
                return frozenset()

        return still_available

