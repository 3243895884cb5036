"""
Zoned date and time helpers.

Every calculation in the engine goes through these functions so that truncation,
offsets and weekday lookups happen on the wall clock of an explicit IANA time zone
rather than on a fixed UTC offset. Skipped wall-clock times (DST gaps) resolve
forward, so the start of a day is always the first instant that belongs to it.
"""

from __future__ import annotations

import calendar
import zoneinfo
from datetime import date as date_type
from datetime import datetime
from typing import Optional, Union

import pendulum
from pendulum import DateTime
from pendulum.tz.exceptions import InvalidTimezone
from pendulum.tz.timezone import FixedTimezone, Timezone

from .exceptions import InvalidTimeZoneError, PreconditionError

TimeZoneLike = Union[str, Timezone, FixedTimezone]

UNITS = ("minute", "hour", "day", "week", "month")
OFFSET_UNITS = ("minutes", "hours", "days", "weeks", "months")

# The 0..6 order used by plan entries and weekday lookups (Sunday first).
WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat")


def resolve_timezone(tz: TimeZoneLike) -> Union[Timezone, FixedTimezone]:
    """
    Resolve an IANA time zone name.

    Raises:
        InvalidTimeZoneError: If the name is empty or not in the tz database
    """
    if isinstance(tz, (Timezone, FixedTimezone)):
        return tz
    if not isinstance(tz, str) or not tz.strip():
        raise InvalidTimeZoneError(tz)

    try:
        return pendulum.timezone(tz)
    except (InvalidTimezone, zoneinfo.ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidTimeZoneError(tz) from exc


def is_valid_timezone(tz: object) -> bool:
    """Check if the given value names a known IANA time zone."""
    try:
        resolve_timezone(tz)  # type: ignore[arg-type]
    except InvalidTimeZoneError:
        return False
    return True


def timezone_name(tz: TimeZoneLike) -> str:
    """Return the canonical name of a time zone."""
    return resolve_timezone(tz).name


def to_instant(value: datetime) -> DateTime:
    """
    Convert an aware datetime into a pendulum DateTime.

    Raises:
        PreconditionError: If the value is not a datetime or carries no UTC offset
    """
    if not isinstance(value, datetime):
        raise PreconditionError(f"Expected an aware datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise PreconditionError(f"Datetime {value} is naive; instants must carry a time zone")
    if isinstance(value, DateTime):
        return value
    return pendulum.instance(value)


def in_zone(instant: datetime, tz: TimeZoneLike) -> DateTime:
    """Express an instant on the wall clock of the given zone."""
    return to_instant(instant).in_timezone(resolve_timezone(tz))


def millisecond_before(instant: datetime) -> DateTime:
    """Return the instant one millisecond earlier (turns exclusive ends into inclusive ones)."""
    return to_instant(instant).subtract(microseconds=1000)


def to_timestamp_ms(instant: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    dt = to_instant(instant)
    return calendar.timegm(dt.utctimetuple()) * 1000 + dt.microsecond // 1000


def timestamp_to_date(timestamp: Union[int, str]) -> DateTime:
    """Convert a millisecond timestamp (number or numeric string) to a UTC instant."""
    try:
        millis = int(timestamp)
    except (TypeError, ValueError) as exc:
        raise PreconditionError(f"Timestamp {timestamp!r} is not an integer") from exc
    return pendulum.from_timestamp(millis / 1000, tz="UTC")


def _midnight(zone, year: int, month: int, day: int) -> DateTime:
    # pendulum shifts non-existent wall times forward
    return pendulum.datetime(year, month, day, tz=zone)


def _weekday_index(value) -> int:
    return value.isoweekday() % 7


def _truncate(local: DateTime, unit: str, zone, first_day_of_week: int) -> DateTime:
    if unit == "minute":
        return local.subtract(seconds=local.second, microseconds=local.microsecond)
    if unit == "hour":
        return local.subtract(
            minutes=local.minute, seconds=local.second, microseconds=local.microsecond
        )

    day = local.date()
    if unit == "month":
        return _midnight(zone, day.year, day.month, 1)
    if unit == "week":
        day = day.subtract(days=(_weekday_index(day) - first_day_of_week) % 7)
    return _midnight(zone, day.year, day.month, day.day)


def start_of(
    instant: datetime,
    unit: str,
    tz: TimeZoneLike,
    offset: int = 0,
    offset_unit: str = "days",
    first_day_of_week: int = 0,
) -> DateTime:
    """
    Truncate an instant to the start of a unit in a time zone and shift it.

    Calendar units (day, week, month) are shifted on the wall clock and truncated again
    after a ten hour nudge, so the result is the real start of the target unit even when
    midnight does not exist on that day.

    Args:
        instant: Aware datetime
        unit: One of minute, hour, day, week, month
        tz: IANA time zone
        offset: Number of offset units to shift (may be negative)
        offset_unit: One of minutes, hours, days, weeks, months
        first_day_of_week: Week start for the week unit (0=Sunday..6=Saturday)

    Returns:
        Shifted start of the unit, expressed in ``tz``
    """
    if unit not in UNITS:
        raise PreconditionError(f"Unknown time unit {unit!r}; expected one of {UNITS}")
    if offset_unit not in OFFSET_UNITS:
        raise PreconditionError(
            f"Unknown offset unit {offset_unit!r}; expected one of {OFFSET_UNITS}"
        )
    if first_day_of_week not in range(7):
        raise PreconditionError(f"first_day_of_week must be between 0 and 6, got {first_day_of_week}")

    zone = resolve_timezone(tz)
    local = in_zone(instant, zone)
    truncated = _truncate(local, unit, zone, first_day_of_week)
    if offset == 0:
        return truncated

    shifted = truncated.add(**{offset_unit: offset})
    if unit in ("day", "week", "month"):
        return _truncate(shifted.add(hours=10).in_timezone(zone), unit, zone, first_day_of_week)
    return shifted


def add_time(instant: datetime, offset: int, unit: str, tz: TimeZoneLike) -> DateTime:
    """Add ``offset`` units (e.g. ``3, "days"``) on the wall clock of ``tz``."""
    if unit not in OFFSET_UNITS:
        raise PreconditionError(f"Unknown offset unit {unit!r}; expected one of {OFFSET_UNITS}")
    return in_zone(instant, tz).add(**{unit: offset})


def subtract_time(instant: datetime, offset: int, unit: str, tz: TimeZoneLike) -> DateTime:
    """Subtract ``offset`` units on the wall clock of ``tz``."""
    return add_time(instant, -offset, unit, tz)


def day_of_week_index(instant: datetime, tz: TimeZoneLike) -> int:
    """Day of week in ``tz``: 0=Sunday .. 6=Saturday."""
    return _weekday_index(in_zone(instant, tz))


def start_of_week(instant: datetime, tz: TimeZoneLike, first_day_of_week: int = 0) -> DateTime:
    """First moment of the week that contains ``instant``."""
    return start_of(instant, "week", tz, first_day_of_week=first_day_of_week)


def end_of_week(instant: datetime, tz: TimeZoneLike, first_day_of_week: int = 0) -> DateTime:
    """Start of the last day of the week that contains ``instant``."""
    week_start = start_of_week(instant, tz, first_day_of_week)
    return start_of(week_start, "day", tz, 6, "days")


def zoned_wall_clock(
    value: Union[datetime, date_type],
    tz: TimeZoneLike,
    local_tz: Optional[TimeZoneLike] = None,
) -> DateTime:
    """
    Reinterpret a local wall-clock value as the same wall-clock time in ``tz``.

    Date pickers hand over values on the local clock; this moves them into the
    listing's time zone. Naive datetimes are read as-is, aware ones are first
    expressed in ``local_tz`` (the process' local zone by default), and plain dates
    become the start of that day in ``tz``.
    """
    zone = resolve_timezone(tz)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            local_zone = resolve_timezone(local_tz) if local_tz else pendulum.local_timezone()
            value = in_zone(value, local_zone)
        return pendulum.datetime(
            value.year, value.month, value.day,
            value.hour, value.minute, value.second,
            tz=zone,
        )
    if isinstance(value, date_type):
        return _midnight(zone, value.year, value.month, value.day)
    raise PreconditionError(f"Expected a date or datetime, got {type(value).__name__}")


def local_wall_clock(
    instant: datetime,
    tz: TimeZoneLike,
    local_tz: Optional[TimeZoneLike] = None,
) -> DateTime:
    """
    Inverse of ``zoned_wall_clock``: an instant on the local clock showing the same
    wall-clock time that ``instant`` shows in ``tz``.
    """
    zoned = in_zone(instant, tz)
    local_zone = resolve_timezone(local_tz) if local_tz else pendulum.local_timezone()
    return pendulum.datetime(
        zoned.year, zoned.month, zoned.day,
        zoned.hour, zoned.minute, zoned.second,
        tz=local_zone,
    )


def is_in_range(
    instant: datetime,
    start: datetime,
    end: datetime,
    unit: Optional[str] = None,
    tz: Optional[TimeZoneLike] = None,
) -> bool:
    """
    Check if ``instant`` falls inside ``[start, end)``.

    The exclusive end is handled by moving it one millisecond back and testing
    inclusively. With a ``unit`` the comparison happens on whole units of ``tz``
    (e.g. calendar days).
    """
    inclusive_end = millisecond_before(end)
    if unit is None:
        return to_instant(start) <= to_instant(instant) <= inclusive_end

    if tz is None:
        raise PreconditionError("A time zone is required for unit-based range checks")
    if unit not in ("minute", "hour", "day"):
        raise PreconditionError(f"Unsupported range unit {unit!r}")
    floor = start_of(start, unit, tz)
    return floor <= start_of(instant, unit, tz) <= start_of(inclusive_end, unit, tz)


def is_same_day(first: datetime, second: datetime, tz: TimeZoneLike) -> bool:
    """Check that two instants fall on the same calendar day in ``tz``."""
    return in_zone(first, tz).date() == in_zone(second, tz).date()


def days_between(start: datetime, end: datetime, tz: Optional[TimeZoneLike] = None) -> int:
    """
    Number of whole calendar days between two instants.

    Days are counted on the wall clock of ``tz`` (the start's own zone by default), so a
    23-hour DST day still counts as one day. With daily bookings ``end`` is the
    exclusive end date.

    Raises:
        PreconditionError: If end is before start
    """
    start_dt = to_instant(start)
    end_dt = to_instant(end)
    if end_dt < start_dt:
        raise PreconditionError(f"End date {end_dt} cannot be before start date {start_dt}")

    zone = resolve_timezone(tz) if tz else start_dt.tz
    start_local = start_dt.in_timezone(zone)
    end_local = end_dt.in_timezone(zone)

    days = end_local.date().toordinal() - start_local.date().toordinal()
    if end_local.time() < start_local.time():
        days -= 1
    return days


def minutes_between(start: datetime, end: datetime) -> int:
    """
    Number of whole minutes between two instants.

    Raises:
        PreconditionError: If end is before start
    """
    start_dt = to_instant(start)
    end_dt = to_instant(end)
    if end_dt < start_dt:
        raise PreconditionError(f"End time {end_dt} cannot be before start time {start_dt}")
    return int((end_dt - start_dt).total_seconds() // 60)


def parse_date_from_iso8601(date_string: str, tz: TimeZoneLike) -> DateTime:
    """
    Parse ``"YYYY-MM-DD"`` into the start of that day in ``tz``.

    ('2020-04-15', 'Europe/Helsinki') -> 2020-04-14T21:00:00+00:00
    """
    if not isinstance(date_string, str):
        raise PreconditionError(f"Date id must be a string, got {type(date_string).__name__}")
    try:
        parsed = pendulum.from_format(date_string, "YYYY-MM-DD")
    except ValueError as exc:
        raise PreconditionError(f"Date string {date_string!r} is not in YYYY-MM-DD format") from exc
    return _midnight(resolve_timezone(tz), parsed.year, parsed.month, parsed.day)


def parse_date_time_string(date_time_string: str, tz: TimeZoneLike) -> DateTime:
    """Parse ``"YYYY-MM-DD HH:mm"`` as a wall-clock time in ``tz``."""
    try:
        parsed = pendulum.from_format(date_time_string, "YYYY-MM-DD HH:mm")
    except (TypeError, ValueError) as exc:
        raise PreconditionError(
            f"Date time string {date_time_string!r} is not in 'YYYY-MM-DD HH:mm' format"
        ) from exc
    return pendulum.datetime(
        parsed.year, parsed.month, parsed.day, parsed.hour, parsed.minute,
        tz=resolve_timezone(tz),
    )


def stringify_date_to_iso8601(instant: datetime, tz: TimeZoneLike) -> str:
    """Format the calendar date of ``instant`` in ``tz`` as ``"YYYY-MM-DD"``."""
    return in_zone(instant, tz).format("YYYY-MM-DD")


def month_id_string(instant: datetime, tz: TimeZoneLike) -> str:
    """Format the month of ``instant`` in ``tz`` as ``"YYYY-MM"``."""
    return in_zone(instant, tz).format("YYYY-MM")


def format_time_of_day(instant: datetime, tz: TimeZoneLike) -> str:
    """Wall-clock label (``"HH:mm"``) of ``instant`` in ``tz``."""
    return in_zone(instant, tz).format("HH:mm")


def touches_range(start: datetime, end: datetime, range_start: datetime, range_end: datetime) -> bool:
    """
    Check if the interval ``[start, end)`` shares any instant with ``[range_start, range_end)``.

    Either the range sits inside the interval, or the interval starts or (inclusively)
    ends inside the range. Both ends are treated as exclusive.
    """
    range_inside = is_in_range(range_start, start, end) and is_in_range(
        millisecond_before(range_end), start, end
    )
    starts_inside = is_in_range(start, range_start, range_end)
    ends_inside = is_in_range(millisecond_before(end), range_start, range_end)
    return range_inside or starts_inside or ends_inside
