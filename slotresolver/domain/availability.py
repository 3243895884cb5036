"""
Resolve a weekly availability plan and its exceptions into seat ranges per day.

This is the heart of the engine: pure domain logic without any I/O. For every day
in the requested range, a cursor walks from the start of the day to its end and emits
contiguous ranges. Exceptions always take precedence over plan entries.
"""

import logging
from typing import Dict, List, Optional, Sequence

from pendulum import DateTime

from . import clock
from .buckets import generate_dates
from .exception_ranges import require_sorted_disjoint
from .exceptions import PreconditionError, SlotResolverError
from .models import (
    SOURCE_EXCEPTION,
    SOURCE_PLAN,
    AvailabilityException,
    AvailabilityPlan,
    DateId,
    DayAvailability,
    PlanEntry,
    PlanWindow,
    Range,
)

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """
    Partitions each day into seat-count ranges from a plan and its exceptions.

    Algorithm per day:
    1. Pick the plan entries of the day's weekday and the exceptions touching the day
    2. Resolve plan entries into concrete windows (``"00:00"`` end = next day start)
    3. Walk a cursor over the day:
       - inside an exception: the exception's seats until its end
       - inside a plan window: the entry's seats until the next exception or the entry end
       - otherwise: a zero-seat gap until whichever starts first
    """

    def __init__(self, plan: AvailabilityPlan):
        self.plan = plan
        self.timezone = plan.timezone

    def resolve(
        self,
        start: DateTime,
        end: DateTime,
        exceptions: Sequence[AvailabilityException],
    ) -> Dict[DateId, DayAvailability]:
        """
        Resolve every day between ``start`` and ``end``.

        Both bounds are truncated to the start of their day in the plan's time zone;
        ``end`` is exclusive.

        Raises:
            PreconditionError: If end is before start or exceptions are unsorted/overlapping
        """
        start = clock.to_instant(start)
        end = clock.to_instant(end)
        if end < start:
            raise PreconditionError(f"Range end {end} cannot be before range start {start}")
        require_sorted_disjoint(exceptions)
        range_start = clock.start_of(start, "day", self.timezone)
        range_end = clock.start_of(end, "day", self.timezone)

        result: Dict[DateId, DayAvailability] = {}
        for day in generate_dates(range_start, range_end, self.timezone):
            day_availability = self.resolve_day(day, exceptions)
            result[day_availability.id] = day_availability

        logger.debug(
            "Resolved %d days in %s with %d exceptions",
            len(result), self.timezone, len(exceptions)
        )
        return result

    def resolve_day(
        self,
        day: DateTime,
        exceptions: Sequence[AvailabilityException],
    ) -> DayAvailability:
        """Resolve a single day. ``exceptions`` may include ones that do not touch the day."""
        tz = self.timezone
        day_start = clock.start_of(day, "day", tz)
        day_end = clock.start_of(day, "day", tz, 1, "days")

        weekday = clock.WEEKDAYS[clock.day_of_week_index(day_start, tz)]
        entries = self.plan.entries_for(weekday)
        exceptions_on_date = [
            x for x in exceptions if clock.touches_range(x.start, x.end, day_start, day_end)
        ]
        windows = self._plan_windows(day_start, entries)

        ranges: List[Range] = []
        cursor = day_start
        while cursor < day_end:
            next_exception = _find_active_or_next(cursor, exceptions_on_date)
            next_window = _find_active_or_next(cursor, windows)

            if next_exception is not None and next_exception.contains(cursor):
                end = min(next_exception.end, day_end)
                ranges.append(Range(
                    start=cursor, end=end, seats=next_exception.seats,
                    source=SOURCE_EXCEPTION, exception=next_exception,
                ))
            elif next_window is not None and next_window.contains(cursor):
                if next_exception is not None and next_exception.start <= next_window.end:
                    end = next_exception.start
                else:
                    end = next_window.end
                end = min(end, day_end)
                ranges.append(Range(
                    start=cursor, end=end, seats=next_window.seats,
                    source=SOURCE_PLAN, plan=next_window,
                ))
            else:
                candidates = [day_end]
                if next_exception is not None:
                    candidates.append(next_exception.start)
                if next_window is not None:
                    candidates.append(next_window.start)
                end = min(candidates)
                ranges.append(Range(start=cursor, end=end, seats=0))

            if end <= cursor:
                raise SlotResolverError(f"Availability walk did not advance past {cursor}")
            cursor = end

        return DayAvailability(
            id=DateId.of(day_start, tz),
            plan_entries=tuple(entries),
            exceptions=tuple(exceptions_on_date),
            ranges=tuple(ranges),
            has_availability=any(r.seats > 0 for r in ranges),
        )

    def _plan_windows(self, day_start: DateTime, entries: Sequence[PlanEntry]) -> List[PlanWindow]:
        tz = self.timezone
        date_string = clock.stringify_date_to_iso8601(day_start, tz)
        windows = []
        for entry in entries:
            start = max(
                clock.parse_date_time_string(f"{date_string} {entry.start_time}", tz), day_start
            )
            if entry.runs_through_midnight:
                end = clock.start_of(day_start, "day", tz, 1, "days")
            else:
                end = clock.parse_date_time_string(f"{date_string} {entry.end_time}", tz)
            if start < end:
                windows.append(PlanWindow(start=start, end=end, seats=entry.seats, entry=entry))
        return sorted(windows, key=lambda w: w.start)


def _find_active_or_next(cursor: DateTime, intervals) -> Optional[object]:
    """First interval that contains ``cursor`` or starts after it."""
    for interval in intervals:
        if interval.contains(cursor) or interval.start > cursor:
            return interval
    return None


def availability_per_date(
    start: DateTime,
    end: DateTime,
    plan: Optional[AvailabilityPlan],
    exceptions: Sequence[AvailabilityException],
    timezone: Optional[str] = None,
) -> Dict[DateId, DayAvailability]:
    """
    Map each day of ``[start, end)`` to its resolved availability.

    Without a plan every day is a single zero-seat range (or whatever the exceptions
    say); ``timezone`` is then required.
    """
    if plan is None:
        if timezone is None:
            raise SlotResolverError("A time zone is required when no availability plan is given")
        plan = AvailabilityPlan(timezone=timezone)
    return AvailabilityResolver(plan).resolve(start, end, exceptions)
