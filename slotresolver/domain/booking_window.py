"""
Selectable booking start and end times derived from time slots.
"""

import logging
from typing import List, Optional, Sequence

from pendulum import DateTime

from . import clock
from .boundaries import find_next_boundary, get_boundaries, get_end_hours, get_start_hours, time_unit_config
from .buckets import unique_by
from .exceptions import PreconditionError
from .models import BookingTimeOption, BookingTimeValues, TimeSlot
from .timeslots import MergedRun, find_last_adjacent, time_slots_on_date

logger = logging.getLogger(__name__)


class BookingWindowCalculator:
    """
    Computes booking time candidates for a selected date.

    Two booking styles are supported:
    - fixed duration: every booking lasts ``booking_length_minutes`` and starts on
      a boundary of ``start_time_interval``
    - time range: bookings start and end on sharp hours and may span several days

    Back-to-back time slots form one run for bookings, whatever their seat counts. With
    seat tracking enabled, the seats guaranteed for a booking are the minimum across the
    slots it spans.
    """

    def __init__(
        self,
        timezone: str,
        booking_length_minutes: Optional[int] = None,
        start_time_interval: str = "hour",
        seats_enabled: bool = False,
    ):
        clock.resolve_timezone(timezone)
        if booking_length_minutes is not None and booking_length_minutes <= 0:
            raise PreconditionError(
                f"Booking length must be positive, got {booking_length_minutes} minutes"
            )
        self.unit = time_unit_config(start_time_interval)
        self.timezone = timezone
        self.booking_length_minutes = booking_length_minutes
        self.start_time_interval = start_time_interval
        self.seats_enabled = seats_enabled

    def _require_booking_length(self) -> int:
        if self.booking_length_minutes is None:
            raise PreconditionError("Fixed-duration bookings require booking_length_minutes")
        return self.booking_length_minutes

    def available_start_times(
        self,
        booking_start: Optional[DateTime],
        time_slots: Sequence[TimeSlot],
    ) -> List[BookingTimeOption]:
        """
        Start times on the day of ``booking_start`` for fixed-duration bookings.

        A start time is offered when the whole booking fits inside the back-to-back run
        of slots it begins in. Bookings may run past midnight by up to one booking length
        minus one time unit.

        Args:
            booking_start: Any instant on the selected day
            time_slots: Slots touching the selected day, sorted by start

        Returns:
            Unique options in slot order; empty when no slot touches the day
        """
        if not time_slots or booking_start is None:
            return []
        length = self._require_booking_length()
        tz = self.timezone
        time_unit = str(self.unit["time_unit"])

        day_start = clock.start_of(booking_start, "day", tz)
        next_day = clock.start_of(day_start, "day", tz, 1, "days")
        overlap_with_next_day = length - int(self.unit["time_unit_in_minutes"])
        next_day_plus_booking_length = clock.start_of(
            next_day, "minute", tz, overlap_with_next_day, "minutes"
        )

        start_times: List[BookingTimeOption] = []
        for index, slot in enumerate(time_slots):
            run_end = time_slots[find_last_adjacent(index, time_slots)].end
            start_limit = max(day_start, slot.start)
            end_of_run_or_day = min(run_end, next_day_plus_booking_length)
            end_limit = clock.start_of(end_of_run_or_day, "minute", tz, -length, "minutes")
            start_times.extend(get_boundaries(start_limit, end_limit, 1, time_unit, tz))

        return unique_by(start_times, lambda option: option.timestamp_ms)

    def available_start_hours(
        self,
        booking_start: Optional[DateTime],
        time_slots: Sequence[TimeSlot],
    ) -> List[BookingTimeOption]:
        """Sharp start hours on the day of ``booking_start`` for time-range bookings."""
        if not time_slots or booking_start is None:
            return []
        tz = self.timezone
        day_start = clock.start_of(booking_start, "day", tz)
        next_day = clock.start_of(day_start, "day", tz, 1, "days")

        hours: List[BookingTimeOption] = []
        for slot in time_slots:
            start_limit = max(day_start, slot.start)
            end_limit = min(slot.end, next_day)
            hours.extend(get_start_hours(start_limit, end_limit, tz))
        return unique_by(hours, lambda option: option.timestamp_ms)

    def available_end_times(
        self,
        booking_start_time: Optional[DateTime],
        booking_end_date: Optional[DateTime],
        selected_time_slot: Optional[TimeSlot],
    ) -> List[BookingTimeOption]:
        """
        Sharp end hours for a time-range booking that starts at ``booking_start_time``
        and ends on the day of ``booking_end_date``.

        When the end date is the start day (or earlier), end hours run until the end of
        the slot or the start of the next day, whichever comes first. Otherwise they cover
        the end date, limited by the slot end when the slot ends on that date.
        """
        if selected_time_slot is None or booking_end_date is None or booking_start_time is None:
            return []
        tz = self.timezone
        start_time = clock.to_instant(booking_start_time)
        slot_end = selected_time_slot.end

        day_after_booking_end = clock.start_of(booking_end_date, "day", tz, 1, "days")
        day_after_booking_start = clock.start_of(start_time, "day", tz, 1, "days")
        start_of_end_day = clock.start_of(booking_end_date, "day", tz)

        if start_of_end_day < start_time:
            start_limit = start_time
            end_limit = min(slot_end, day_after_booking_start)
        else:
            start_limit = max(start_time, start_of_end_day)
            if clock.start_of(slot_end, "day", tz) == start_of_end_day:
                end_limit = slot_end
            else:
                end_limit = day_after_booking_end

        return get_end_hours(start_limit, end_limit, tz)

    def booking_end_time(self, start_time: DateTime) -> DateTime:
        """End of a fixed-duration booking starting at ``start_time``."""
        return clock.to_instant(start_time).add(minutes=self._require_booking_length())

    def minimum_seats(
        self,
        end_time: DateTime,
        time_slots: Sequence[TimeSlot],
        selected_index: int,
    ) -> Optional[int]:
        """
        Seats guaranteed for a booking that starts in ``time_slots[selected_index]`` and
        ends at ``end_time``.

        The minimum over the back-to-back slots from the selected one up to the slot that
        contains the booking end. Returns None for an invalid index.
        """
        if not 0 <= selected_index < len(time_slots):
            return None
        selected = time_slots[selected_index]
        last_instant = clock.millisecond_before(end_time)
        if clock.is_in_range(last_instant, selected.start, selected.end):
            return selected.seats

        last_index = find_last_adjacent(selected_index, time_slots)
        seats = selected.seats
        for slot in time_slots[selected_index + 1:last_index + 1]:
            seats = min(seats, slot.seats)
            if slot.contains(last_instant):
                break
        return seats

    def combine_time_slots(
        self,
        index: int,
        time_slots: Sequence[TimeSlot],
        end_time: Optional[DateTime] = None,
    ) -> Optional[TimeSlot]:
        """
        The slot a booking starting in ``time_slots[index]`` is made against.

        With seat tracking the whole back-to-back run is combined into one slot carrying
        the seats guaranteed up to ``end_time``.
        """
        if not time_slots or not 0 <= index < len(time_slots):
            return None
        if len(time_slots) == 1 or not self.seats_enabled:
            return time_slots[index]

        run = MergedRun.around(index, time_slots)
        if end_time is None:
            return run.as_time_slot()
        return run.as_time_slot(self.minimum_seats(end_time, time_slots, index))

    def fixed_duration_values(
        self,
        start_date: DateTime,
        time_slots: Sequence[TimeSlot],
        selected_start_time: Optional[DateTime] = None,
    ) -> BookingTimeValues:
        """
        Form values for a fixed-duration booking on ``start_date``.

        The first available start time is picked unless ``selected_start_time`` is given.
        """
        tz = self.timezone
        start_times = (
            []
            if selected_start_time is not None
            else self.available_start_times(start_date, time_slots_on_date(time_slots, start_date, tz))
        )
        start_time = selected_start_time
        if start_time is None and start_times:
            start_time = start_times[0].timestamp
        if start_time is None:
            return BookingTimeValues(start_times=tuple(start_times))

        end_time = self.booking_end_time(start_time)
        index = _index_of_slot_containing(start_time, time_slots)
        if self.seats_enabled:
            selected_slot = self.combine_time_slots(index, time_slots, end_time)
        else:
            selected_slot = time_slots[index] if index >= 0 else None

        logger.debug("Fixed-duration booking %s - %s in %s", start_time, end_time, tz)
        return BookingTimeValues(
            start_time=start_time,
            end_time=end_time,
            end_date=clock.start_of(clock.millisecond_before(end_time), "day", tz),
            selected_time_slot=selected_slot,
            start_times=tuple(start_times),
            end_times=(BookingTimeOption(end_time, clock.format_time_of_day(end_time, tz)),),
        )

    def time_range_values(
        self,
        start_date: DateTime,
        time_slots: Sequence[TimeSlot],
        selected_start_time: Optional[DateTime] = None,
        selected_end_date: Optional[DateTime] = None,
    ) -> BookingTimeValues:
        """
        Form values for a time-range booking on ``start_date``.

        Without a selected end date the booking ends on the day of the first sharp hour
        after the start time.
        """
        tz = self.timezone
        start_times = (
            []
            if selected_start_time is not None
            else self.available_start_hours(start_date, time_slots_on_date(time_slots, start_date, tz))
        )
        start_time = selected_start_time
        if start_time is None and start_times:
            start_time = start_times[0].timestamp
        if start_time is None:
            return BookingTimeValues(start_times=tuple(start_times))

        # One millisecond back keeps a 00:00 boundary on the previous day
        end_date = selected_end_date or clock.millisecond_before(
            find_next_boundary(start_time, 1, "hour", tz)
        )
        index = _index_of_slot_containing(start_time, time_slots)
        selected_slot = time_slots[index] if index >= 0 else None
        end_times = self.available_end_times(start_time, end_date, selected_slot)

        return BookingTimeValues(
            start_time=start_time,
            end_time=end_times[0].timestamp if end_times else None,
            end_date=end_date,
            selected_time_slot=selected_slot,
            start_times=tuple(start_times),
            end_times=tuple(end_times),
        )


def _index_of_slot_containing(instant: DateTime, time_slots: Sequence[TimeSlot]) -> int:
    for index, slot in enumerate(time_slots):
        if clock.is_in_range(instant, slot.start, slot.end):
            return index
    return -1
