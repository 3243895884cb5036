"""
Bucket externally fetched time slots per calendar day and merge adjacent slots.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence

from pendulum import DateTime

from . import clock
from .buckets import generate_dates
from .calendar_range import monthly_fetch_range
from .models import DateId, DateTimeSlotBucket, TimeSlot


@dataclass(frozen=True)
class MergedRun:
    """A contiguous run of back-to-back time slots."""
    first_index: int
    last_index: int
    start: DateTime
    end: DateTime
    min_seats: int

    @classmethod
    def around(cls, index: int, time_slots: Sequence[TimeSlot], match_seats: bool = False) -> "MergedRun":
        """The run that contains ``time_slots[index]``."""
        first = find_first_adjacent(index, time_slots, match_seats)
        last = find_last_adjacent(index, time_slots, match_seats)
        run = time_slots[first:last + 1]
        return cls(
            first_index=first,
            last_index=last,
            start=run[0].start,
            end=run[-1].end,
            min_seats=min(ts.seats for ts in run),
        )

    def as_time_slot(self, seats: Optional[int] = None) -> TimeSlot:
        return TimeSlot(start=self.start, end=self.end, seats=self.min_seats if seats is None else seats)


def _mergeable(first: TimeSlot, second: TimeSlot, match_seats: bool) -> bool:
    return first.end == second.start and (not match_seats or first.seats == second.seats)


def find_last_adjacent(index: int, time_slots: Sequence[TimeSlot], match_seats: bool = False) -> int:
    """Index of the last slot in the back-to-back run that starts scanning at ``index``."""
    last = index
    while last + 1 < len(time_slots) and _mergeable(time_slots[last], time_slots[last + 1], match_seats):
        last += 1
    return last


def find_first_adjacent(index: int, time_slots: Sequence[TimeSlot], match_seats: bool = False) -> int:
    """Index of the first slot in the back-to-back run that ends scanning at ``index``."""
    first = index
    while first > 0 and _mergeable(time_slots[first - 1], time_slots[first], match_seats):
        first -= 1
    return first


def remove_unnecessary_boundaries(time_slots: Sequence[TimeSlot], seats_enabled: bool) -> List[TimeSlot]:
    """
    Join back-to-back slots.

    Without seat tracking every back-to-back pair is joined and the joined slot has one
    seat. With seat tracking only slots with equal seat counts are joined.
    """
    picked: List[TimeSlot] = []
    for ts in time_slots:
        if picked and _mergeable(picked[-1], ts, match_seats=seats_enabled):
            seats = ts.seats if seats_enabled else 1
            picked[-1] = picked[-1].with_bounds(picked[-1].start, ts.end, seats)
        else:
            picked.append(ts)
    return picked


def time_slots_per_date(
    start: DateTime,
    end: DateTime,
    time_slots: Sequence[TimeSlot],
    tz: clock.TimeZoneLike,
    min_seats: int = 1,
) -> Dict[DateId, DateTimeSlotBucket]:
    """
    Map each day of ``[start, end)`` to the slots touching it.

    Slots with fewer than ``min_seats`` seats are dropped before bucketing.
    """
    day_start = clock.start_of(start, "day", tz)
    range_end = clock.start_of(end, "day", tz)
    entries = [ts for ts in time_slots if ts.seats >= min_seats]

    buckets: Dict[DateId, DateTimeSlotBucket] = {}
    for day in generate_dates(day_start, range_end, tz):
        next_day = clock.start_of(day, "day", tz, 1, "days")
        on_date = tuple(
            ts for ts in entries if clock.touches_range(ts.start, ts.end, day, next_day)
        )
        date_id = DateId.of(day, tz)
        buckets[date_id] = DateTimeSlotBucket(id=date_id, time_slots=on_date)
    return buckets


def time_slots_on_date(time_slots: Sequence[TimeSlot], date: DateTime, tz: clock.TimeZoneLike) -> List[TimeSlot]:
    """Slots whose span of calendar days (in ``tz``) includes ``date``."""
    return [ts for ts in time_slots if clock.is_in_range(date, ts.start, ts.end, "day", tz)]


def get_all_time_slots(
    monthly_time_slots: Mapping[str, Optional[Sequence[TimeSlot]]],
    seats_enabled: bool,
) -> List[TimeSlot]:
    """
    Join per-month slot lists (keyed by ``"YYYY-MM"``) into one list.

    Boundaries created by month changes are removed. Months that have not been fetched
    (``None``) are skipped.
    """
    raw: List[TimeSlot] = []
    for slots in monthly_time_slots.values():
        raw.extend(slots or [])
    return remove_unnecessary_boundaries(raw, seats_enabled)


def time_slots_on_selected_date(
    slots_on_date: Sequence[TimeSlot],
    monthly_time_slots: Mapping[str, Optional[Sequence[TimeSlot]]],
    booking_start_date: Optional[DateTime],
    tz: clock.TimeZoneLike,
    seats_enabled: bool,
) -> List[TimeSlot]:
    """
    Slots for the selected booking date.

    Day-level slots win when they have been fetched; otherwise the date is looked up
    from the combined monthly slots.
    """
    if booking_start_date is None:
        return []
    if slots_on_date:
        return remove_unnecessary_boundaries(slots_on_date, seats_enabled)

    fetch_range = monthly_fetch_range(monthly_time_slots, tz)
    if fetch_range is None:
        return []

    start_month, end_month = fetch_range
    all_slots = get_all_time_slots(monthly_time_slots, seats_enabled)
    per_date = time_slots_per_date(start_month, end_month, all_slots, tz)
    bucket = per_date.get(DateId.of(booking_start_date, tz))
    return list(bucket.time_slots) if bucket else []
