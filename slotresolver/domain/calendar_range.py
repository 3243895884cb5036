"""
Calendar navigation and fetch windows.

Every helper that depends on "today" takes an explicit ``now`` instant.
"""

from typing import Mapping, Optional, Tuple

from pendulum import DateTime

from . import clock
from .boundaries import find_next_boundary

# Availability exceptions can be queried at most this many days into the future.
MAX_AVAILABILITY_EXCEPTIONS_RANGE = 366

Window = Tuple[DateTime, DateTime]


def start_of_month(date: DateTime, tz: clock.TimeZoneLike, offset: int = 0) -> DateTime:
    return clock.start_of(date, "month", tz, offset, "months")


def start_of_next_month(date: DateTime, tz: clock.TimeZoneLike, offset: int = 1) -> DateTime:
    return start_of_month(date, tz, offset)


def start_of_prev_month(date: DateTime, tz: clock.TimeZoneLike, offset: int = 1) -> DateTime:
    return start_of_month(date, tz, -offset)


def start_of_week_fn(
    date: DateTime,
    tz: clock.TimeZoneLike,
    first_day_of_week: int,
    offset: int = 0,
) -> DateTime:
    """Start of the week containing ``date``, shifted by ``offset`` days."""
    week_start = clock.start_of_week(date, tz, first_day_of_week)
    return clock.start_of(week_start, "day", tz, offset, "days")


def start_of_next_week(
    date: DateTime, tz: clock.TimeZoneLike, first_day_of_week: int, offset: int = 7
) -> DateTime:
    return start_of_week_fn(date, tz, first_day_of_week, offset)


def start_of_prev_week(
    date: DateTime, tz: clock.TimeZoneLike, first_day_of_week: int, offset: int = 7
) -> DateTime:
    return start_of_week_fn(date, tz, first_day_of_week, -offset)


def exclusive_end_date(date: DateTime, tz: clock.TimeZoneLike) -> DateTime:
    """Start of the day after ``date``; the exclusive end of a range ending on ``date``."""
    return clock.start_of(date, "day", tz, 1, "days")


def inclusive_end_date(date: DateTime, tz: clock.TimeZoneLike) -> DateTime:
    """Start of the day before an exclusive end ``date``."""
    return clock.start_of(date, "day", tz, -1, "days")


def end_of_range(date: DateTime, day_count: int, tz: clock.TimeZoneLike) -> DateTime:
    """Start of the last day of a ``day_count`` days long range starting on ``date``."""
    return clock.start_of(date, "day", tz, day_count - 1, "days")


def end_of_availability_exception_range(tz: clock.TimeZoneLike, date: DateTime) -> DateTime:
    return end_of_range(date, MAX_AVAILABILITY_EXCEPTIONS_RANGE, tz)


def is_today(date: Optional[DateTime], tz: clock.TimeZoneLike, now: DateTime) -> bool:
    if date is None:
        return False
    today = clock.start_of(now, "day", tz)
    tomorrow = clock.start_of(now, "day", tz, 1, "days")
    return clock.is_in_range(date, today, tomorrow, "day", tz)


def show_next_month_stepper(
    current_month: DateTime,
    day_count: int,
    tz: clock.TimeZoneLike,
    now: DateTime,
) -> bool:
    """Whether the next month still starts inside the bookable range."""
    next_month = start_of_next_month(current_month, tz)
    return next_month < end_of_range(now, day_count, tz)


def show_previous_month_stepper(current_month: DateTime, tz: clock.TimeZoneLike, now: DateTime) -> bool:
    """Whether the previous month is not in the past."""
    prev_month = start_of_prev_month(current_month, tz)
    return prev_month >= start_of_month(now, tz)


def month_start_in_timezone(month_id: str, tz: clock.TimeZoneLike) -> DateTime:
    """Start of the month identified by ``"YYYY-MM"`` in ``tz``."""
    return start_of_month(clock.parse_date_from_iso8601(f"{month_id}-01", tz), tz)


def monthly_fetch_range(
    monthly_data: Mapping[str, Optional[object]],
    tz: clock.TimeZoneLike,
) -> Optional[Window]:
    """
    The start of the first fetched month and the exclusive end of the last one.

    ``monthly_data`` is keyed by ``"YYYY-MM"``; months whose value is ``None`` have not
    been fetched yet and are ignored. Returns ``None`` when nothing has been fetched.
    """
    month_ids = sorted(month_id for month_id, data in monthly_data.items() if data is not None)
    if not month_ids:
        return None
    first_month = month_start_in_timezone(month_ids[0], tz)
    last_month = month_start_in_timezone(month_ids[-1], tz)
    return first_month, start_of_next_month(last_month, tz)


def exception_fetch_window(
    date: DateTime,
    tz: clock.TimeZoneLike,
    now: DateTime,
    first_day_of_week: int = 0,
    weekly: bool = True,
) -> Optional[Window]:
    """
    The ``(start, end)`` window to query availability exceptions for the week or month
    starting at ``date``.

    Returns ``None`` when the period is already over or starts beyond the exception
    query range. A period in progress is fetched from ``now`` on.
    """
    range_end = end_of_range(now, MAX_AVAILABILITY_EXCEPTIONS_RANGE, tz)
    next_range = (
        start_of_next_week(date, tz, first_day_of_week)
        if weekly
        else start_of_next_month(date, tz)
    )
    if next_range <= now or date >= range_end:
        return None

    start = clock.to_instant(now) if now >= date else clock.to_instant(date)
    end = clock.start_of(range_end, "day", tz) if next_range >= range_end else next_range
    return start, end


def time_slot_fetch_window(
    date: DateTime,
    day_count: int,
    tz: clock.TimeZoneLike,
    now: DateTime,
    min_duration_minutes: int = 0,
) -> Optional[Window]:
    """
    The ``(start, end)`` window to query time slots for the month starting at ``date``.

    The end reaches ``min_duration_minutes`` into the next month so slots starting on
    the last day of the month can still be long enough. Returns ``None`` when the month
    is already over or starts beyond the bookable range.
    """
    range_end = end_of_range(now, day_count, tz)
    next_month = start_of_next_month(date, tz)
    if next_month <= now or date >= range_end:
        return None

    start = clock.to_instant(now) if now >= date else clock.to_instant(date)
    end = clock.start_of(next_month, "minute", tz, min_duration_minutes, "minutes")
    return start, end


def placeholder_time(tz: clock.TimeZoneLike, now: DateTime) -> str:
    """
    Label of the next sharp hour after ``now``.

    Raises:
        InvalidTimeZoneError: If ``tz`` is not a known IANA time zone
    """
    boundary = find_next_boundary(now, 1, "hour", tz)
    return clock.format_time_of_day(boundary, tz)
