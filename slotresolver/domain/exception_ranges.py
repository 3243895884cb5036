"""
Gaps between availability exceptions.

All functions here expect exceptions sorted by start and pairwise disjoint. The
precondition is checked upfront; nothing is re-sorted mid-algorithm.
"""

from typing import Dict, List, Sequence

from pendulum import DateTime

from . import clock
from .buckets import generate_dates, to_hash_map
from .exceptions import PreconditionError
from .models import AvailabilityException, DateId, TimeRange


def require_sorted_disjoint(exceptions: Sequence[AvailabilityException]) -> None:
    """
    Check that exceptions are sorted ascending by start and do not overlap.

    Raises:
        PreconditionError: Naming the first offending pair
    """
    for previous, current in zip(exceptions, exceptions[1:]):
        if current.start < previous.start:
            raise PreconditionError(
                f"Exceptions must be sorted by start: {current.start} comes after {previous.start}"
            )
        if current.start < previous.end:
            raise PreconditionError(
                f"Exceptions must not overlap: [{previous.start}, {previous.end}) "
                f"and [{current.start}, {current.end})"
            )


def normalize_exceptions(exceptions: Sequence[AvailabilityException]) -> List[AvailabilityException]:
    """
    Sort exceptions by start and reject overlapping ones.

    Meant for ingestion boundaries (fetched or user-supplied lists). The engine entry
    points only validate.
    """
    ordered = sorted(exceptions, key=lambda x: (x.start, x.end))
    require_sorted_disjoint(ordered)
    return ordered


def available_ranges(
    start: DateTime,
    end: DateTime,
    exceptions: Sequence[AvailabilityException],
) -> List[TimeRange]:
    """
    Sub-ranges of ``[start, end)`` not covered by any exception.

    Walks a cursor over the exceptions:
    - an exception starting at or before the cursor moves the cursor to its end
    - an exception fully inside the window yields the gap before it
    - an exception reaching the window end yields the last gap and stops processing

    Together with the exceptions' own intervals, the result tiles the window.

    Raises:
        PreconditionError: If end is before start or exceptions are unsorted/overlapping
    """
    start = clock.to_instant(start)
    end = clock.to_instant(end)
    if end < start:
        raise PreconditionError(f"Range end {end} cannot be before range start {start}")
    require_sorted_disjoint(exceptions)

    ranges: List[TimeRange] = []
    cursor = start
    for exception in exceptions:
        if exception.start <= cursor and exception.end < end:
            # Past exception, or the window starts inside one
            cursor = max(cursor, exception.end)
        elif cursor < exception.start and exception.end < end:
            ranges.append(TimeRange(start=cursor, end=exception.start))
            cursor = exception.end
        else:
            gap_end = min(exception.start, end)
            if cursor < gap_end:
                ranges.append(TimeRange(start=cursor, end=gap_end))
            return ranges

    if cursor < end:
        ranges.append(TimeRange(start=cursor, end=end))
    return ranges


def exception_free_slots_per_date(
    start: DateTime,
    end: DateTime,
    exceptions: Sequence[AvailabilityException],
    tz: clock.TimeZoneLike,
) -> Dict[DateId, List[TimeRange]]:
    """
    Exception-free ranges touching each day between ``start`` and ``end``.

    Both bounds are truncated to the start of their day in ``tz``, so the day that
    contains ``end`` is not included.
    """
    day_start = clock.start_of(start, "day", tz)
    range_end = clock.start_of(end, "day", tz)
    free = available_ranges(day_start, range_end, exceptions)

    def free_on(day: DateTime) -> List[TimeRange]:
        next_day = clock.start_of(day, "day", tz, 1, "days")
        return [slot for slot in free if clock.touches_range(slot.start, slot.end, day, next_day)]

    return to_hash_map(
        generate_dates(day_start, range_end, tz),
        lambda day: DateId.of(day, tz),
        free_on,
    )
