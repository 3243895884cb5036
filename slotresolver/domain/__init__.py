"""
Domain layer - Pure availability and booking time logic without I/O.
"""

from .availability import AvailabilityResolver, availability_per_date
from .booking_window import BookingWindowCalculator
from .exception_ranges import available_ranges, exception_free_slots_per_date, normalize_exceptions
from .exceptions import AvailabilitySourceError, InvalidTimeZoneError, PreconditionError, SlotResolverError
from .models import (
    AvailabilityException,
    AvailabilityPlan,
    BookingTimeOption,
    BookingTimeValues,
    DateId,
    DateTimeSlotBucket,
    DayAvailability,
    PlanEntry,
    Range,
    TimeRange,
    TimeSlot,
)
from .timeslots import MergedRun, time_slots_per_date

__all__ = [
    "AvailabilityException",
    "AvailabilityPlan",
    "AvailabilityResolver",
    "AvailabilitySourceError",
    "BookingTimeOption",
    "BookingTimeValues",
    "BookingWindowCalculator",
    "DateId",
    "DateTimeSlotBucket",
    "DayAvailability",
    "InvalidTimeZoneError",
    "MergedRun",
    "PlanEntry",
    "PreconditionError",
    "Range",
    "SlotResolverError",
    "TimeRange",
    "TimeSlot",
    "availability_per_date",
    "available_ranges",
    "exception_free_slots_per_date",
    "normalize_exceptions",
    "time_slots_per_date",
]
