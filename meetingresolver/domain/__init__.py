"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import (
    ConfigError,
    InvalidInterval,
    ResolverError,
    SourceUnavailable,
    UnknownAttendee,
)
from .free_time import business_windows, derive_free
from .models import (
    AttendeeAvailability,
    BusinessCalendarPolicy,
    BusySlot,
    CandidateSlot,
    TimeInterval,
)
from .ranking import rank
from .slot_finder import CommonSlotFinder

__all__ = [
    "AttendeeAvailability",
    "BusinessCalendarPolicy",
    "BusySlot",
    "CandidateSlot",
    "CommonSlotFinder",
    "ConfigError",
    "InvalidInterval",
    "ResolverError",
    "SourceUnavailable",
    "TimeInterval",
    "UnknownAttendee",
    "business_windows",
    "derive_free",
    "rank",
]
