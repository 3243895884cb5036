"""
Domain-specific exception hierarchy for the slot resolution engine.
"""


class SlotResolverError(Exception):
    """Base class for all engine-level errors."""


class PreconditionError(SlotResolverError, ValueError):
    """Raised when a caller violates an input precondition (ordering, durations, formats)."""


class InvalidTimeZoneError(SlotResolverError):
    """Raised when a time zone name is not a recognised IANA key."""

    def __init__(self, name: object):
        super().__init__(f"Given time zone key ({name!r}) is not a valid IANA time zone.")
        self.name = name


class AvailabilitySourceError(SlotResolverError):
    """Raised when availability data cannot be read or parsed by an input adapter."""
