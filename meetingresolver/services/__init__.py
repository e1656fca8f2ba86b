"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .resolver import AvailabilityAggregator, CalendarSourceProtocol, MeetingTimeResolver

__all__ = ["AvailabilityAggregator", "CalendarSourceProtocol", "MeetingTimeResolver"]
