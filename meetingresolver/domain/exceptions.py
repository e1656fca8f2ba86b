"""
Domain-specific exception hierarchy for the meeting resolver.
"""


class ResolverError(Exception):
    """Base class for all application-level errors."""


class SourceUnavailable(ResolverError):
    """Raised when the calendar source cannot be reached or fails."""


class UnknownAttendee(ResolverError):
    """Raised when an attendee cannot be resolved against the calendar source."""

    def __init__(self, attendee_id: str, reason: str = "unknown attendee"):
        super().__init__(f"{attendee_id}: {reason}")
        self.attendee_id = attendee_id


class InvalidInterval(ResolverError, ValueError):
    """Raised when an interval does not start strictly before it ends."""


class ConfigError(ResolverError, ValueError):
    """Raised when the configuration file is missing or malformed."""
