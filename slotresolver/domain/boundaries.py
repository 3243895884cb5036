"""
Booking time unit boundaries.

Boundaries are the selectable start and end times of a booking: sharp hours, quarter
hours, whole days and so on, localized to the listing's time zone.
"""

from typing import Dict, List

from pendulum import DateTime

from . import clock
from .exceptions import PreconditionError
from .models import BookingTimeOption

# Booking start time interval -> (time unit, unit length in minutes)
BOOKING_TIME_UNITS: Dict[str, Dict[str, object]] = {
    "hour": {"time_unit": "hour", "time_unit_in_minutes": 60},
    "30min": {"time_unit": "30min", "time_unit_in_minutes": 30},
    "15min": {"time_unit": "15min", "time_unit_in_minutes": 15},
    "10min": {"time_unit": "10min", "time_unit_in_minutes": 10},
    "5min": {"time_unit": "5min", "time_unit_in_minutes": 5},
    "day": {"time_unit": "day", "time_unit_in_minutes": 1440},
}


def time_unit_config(start_time_interval: str) -> Dict[str, object]:
    """Look up a booking time unit by its interval key."""
    try:
        return BOOKING_TIME_UNITS[start_time_interval]
    except KeyError as exc:
        raise PreconditionError(
            f"Unknown booking time unit {start_time_interval!r}; "
            f"expected one of {tuple(BOOKING_TIME_UNITS)}"
        ) from exc


def find_next_boundary(
    instant: DateTime,
    interval_in_units: int,
    time_unit: str,
    tz: clock.TimeZoneLike,
) -> DateTime:
    """
    The first boundary of ``time_unit`` strictly after ``instant``, advanced by
    ``interval_in_units - 1`` further units.

    Minute-based units snap to multiples of their length within the hour
    (e.g. 15min -> :00, :15, :30, :45).
    """
    if interval_in_units < 1:
        raise PreconditionError(f"Boundary interval must be positive, got {interval_in_units}")
    minutes = int(time_unit_config(time_unit)["time_unit_in_minutes"])

    if time_unit == "hour":
        return clock.start_of(instant, "hour", tz, interval_in_units, "hours")
    if time_unit == "day":
        return clock.start_of(instant, "day", tz, interval_in_units, "days")

    minute_start = clock.start_of(instant, "minute", tz)
    past_boundary = minute_start.minute % minutes
    return minute_start.add(minutes=(interval_in_units * minutes) - past_boundary)


def get_boundaries(
    start: DateTime,
    end: DateTime,
    interval_in_units: int,
    time_unit: str,
    tz: clock.TimeZoneLike,
) -> List[BookingTimeOption]:
    """
    All boundaries inside ``[start, end]`` (both inclusive).

    When a DST change makes the same wall-clock label appear twice, only the first
    occurrence is kept.
    """
    start = clock.to_instant(start)
    end = clock.to_instant(end)

    results: List[BookingTimeOption] = []
    boundary = find_next_boundary(clock.millisecond_before(start), interval_in_units, time_unit, tz)
    while start <= boundary <= end:
        time_of_day = clock.format_time_of_day(boundary, tz)
        if not results or results[-1].time_of_day != time_of_day:
            results.append(BookingTimeOption(timestamp=boundary, time_of_day=time_of_day))
        boundary = find_next_boundary(boundary, interval_in_units, time_unit, tz)
    return results


def get_sharp_hours(start: DateTime, end: DateTime, tz: clock.TimeZoneLike) -> List[BookingTimeOption]:
    """
    Sharp hours inside ``[start, end]``.

    get_sharp_hours(2019-09-18T08:00Z, 2019-09-18T11:00Z, "Europe/Helsinki")
    -> 11:00, 12:00, 13:00, 14:00
    """
    return get_boundaries(start, end, 1, "hour", tz)


def get_start_hours(start: DateTime, end: DateTime, tz: clock.TimeZoneLike) -> List[BookingTimeOption]:
    """Sharp hours that can start a booking: all but the last one."""
    hours = get_sharp_hours(start, end, tz)
    return hours if len(hours) < 2 else hours[:-1]


def get_end_hours(start: DateTime, end: DateTime, tz: clock.TimeZoneLike) -> List[BookingTimeOption]:
    """Sharp hours that can end a booking: all but the first one."""
    hours = get_sharp_hours(start, end, tz)
    return [] if len(hours) < 2 else hours[1:]
