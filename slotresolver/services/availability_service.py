"""
Application services for resolving availability and booking times.

The service coordinates fetching the plan, exceptions and time slots via a source
adapter and delegates the actual resolution to the domain layer. Exceptions are
normalised here, at ingestion, so the engine only has to validate them.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol

from pendulum import DateTime

from ..domain import clock
from ..domain.availability import AvailabilityResolver
from ..domain.booking_window import BookingWindowCalculator
from ..domain.exception_ranges import normalize_exceptions
from ..domain.models import (
    AvailabilityException,
    AvailabilityPlan,
    BookingTimeValues,
    DateId,
    DateTimeSlotBucket,
    DayAvailability,
    TimeSlot,
)
from ..domain.timeslots import remove_unnecessary_boundaries, time_slots_on_date, time_slots_per_date

logger = logging.getLogger(__name__)


class AvailabilitySourceProtocol(Protocol):
    """Protocol describing the data source behaviour needed by the service."""

    async def fetch_plan(self) -> AvailabilityPlan:
        """Return the listing's availability plan."""

    async def fetch_exceptions(self, start: DateTime, end: DateTime) -> List[AvailabilityException]:
        """Return availability exceptions touching ``[start, end)``."""

    async def fetch_time_slots(self, start: DateTime, end: DateTime) -> List[TimeSlot]:
        """Return bookable time slots touching ``[start, end)``."""


class AvailabilityService:
    """
    Orchestrates data retrieval and availability resolution.

    Dependency inversion toward a protocol makes it easy to plug in the file-backed
    source or a stub implementation in tests.
    """

    def __init__(self, source: AvailabilitySourceProtocol) -> None:
        self._source = source

    async def fetch_plan(self) -> AvailabilityPlan:
        """Fetch the availability plan."""
        return await self._source.fetch_plan()

    async def availability_for_range(
        self,
        *,
        start: DateTime,
        end: DateTime,
    ) -> Dict[DateId, DayAvailability]:
        """Fetch the plan and exceptions, then resolve seat ranges per day."""
        plan = await self.fetch_plan()
        exceptions = await self.fetch_exceptions(start=start, end=end)

        result = AvailabilityResolver(plan).resolve(start, end, exceptions)
        logger.info(
            "Resolved availability for %d days (%d with availability)",
            len(result), sum(1 for day in result.values() if day.has_availability)
        )
        return result

    async def fetch_exceptions(self, *, start: DateTime, end: DateTime) -> List[AvailabilityException]:
        """Fetch exceptions and sort them; overlapping exceptions are rejected."""
        raw = await self._source.fetch_exceptions(start, end)
        exceptions = normalize_exceptions(raw)
        logger.debug("Fetched %d exceptions between %s and %s", len(exceptions), start, end)
        return exceptions

    async def time_slots_for_range(
        self,
        *,
        start: DateTime,
        end: DateTime,
        timezone: Optional[str] = None,
        min_seats: int = 1,
    ) -> Dict[DateId, DateTimeSlotBucket]:
        """
        Bucket time slots per day.

        Defaults to the plan's time zone when ``timezone`` is not given.
        """
        tz = timezone or (await self.fetch_plan()).timezone
        time_slots = await self.fetch_time_slots(start=start, end=end)
        return time_slots_per_date(start, end, time_slots, tz, min_seats=min_seats)

    async def fetch_time_slots(self, *, start: DateTime, end: DateTime) -> List[TimeSlot]:
        """Fetch time slots sorted by start."""
        time_slots = sorted(await self._source.fetch_time_slots(start, end), key=lambda ts: ts.start)
        logger.debug("Fetched %d time slots between %s and %s", len(time_slots), start, end)
        return time_slots

    async def booking_values_for_date(
        self,
        *,
        date: DateTime,
        calculator: BookingWindowCalculator,
        selected_start_time: Optional[DateTime] = None,
        selected_end_date: Optional[DateTime] = None,
    ) -> BookingTimeValues:
        """
        Compute booking form values for the day of ``date``.

        Slots are fetched for the selected day and the following one so that bookings
        running past midnight can be offered.
        """
        tz = calculator.timezone
        day_start = clock.start_of(date, "day", tz)
        fetch_end = clock.start_of(date, "day", tz, 2, "days")
        time_slots = remove_unnecessary_boundaries(
            await self.fetch_time_slots(start=day_start, end=fetch_end),
            calculator.seats_enabled,
        )

        if calculator.booking_length_minutes is not None:
            return calculator.fixed_duration_values(
                day_start, time_slots, selected_start_time=selected_start_time
            )

        slots_on_date = time_slots_on_date(time_slots, day_start, tz)
        return calculator.time_range_values(
            day_start,
            slots_on_date,
            selected_start_time=selected_start_time,
            selected_end_date=selected_end_date,
        )
