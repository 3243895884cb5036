"""
Domain models for availability plans, exceptions, time slots and resolved ranges.
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

import pendulum
from pendulum import DateTime

from . import clock
from .exceptions import PreconditionError

_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

SOURCE_PLAN = "plan"
SOURCE_EXCEPTION = "exception"


def _require_seats(seats: int) -> None:
    if isinstance(seats, bool) or not isinstance(seats, int) or seats < 0:
        raise PreconditionError(f"Seats must be a non-negative integer, got {seats!r}")


def _require_interval(owner: object, start: DateTime, end: DateTime) -> None:
    if start >= end:
        raise PreconditionError(
            f"{type(owner).__name__} start {start} must be before end {end}"
        )


@dataclass(frozen=True)
class PlanEntry:
    """
    One weekly window of an availability plan.

    ``end_time == "00:00"`` means the window runs through midnight into the next day.
    """
    day_of_week: str
    start_time: str
    end_time: str
    seats: int = 1

    def __post_init__(self):
        if self.day_of_week not in clock.WEEKDAYS:
            raise PreconditionError(
                f"Unknown day of week {self.day_of_week!r}; expected one of {clock.WEEKDAYS}"
            )
        for value in (self.start_time, self.end_time):
            if not isinstance(value, str) or not _TIME_OF_DAY.match(value):
                raise PreconditionError(f"Time of day {value!r} is not in HH:MM format")
        if self.end_time != "00:00" and self.end_time <= self.start_time:
            raise PreconditionError(
                f"Plan entry end time {self.end_time} must be after start time {self.start_time}"
            )
        _require_seats(self.seats)

    @property
    def runs_through_midnight(self) -> bool:
        return self.end_time == "00:00"


@dataclass(frozen=True)
class AvailabilityPlan:
    """A provider's recurring weekly availability in a fixed IANA time zone."""
    timezone: str
    entries: Tuple[PlanEntry, ...] = ()

    def __post_init__(self):
        clock.resolve_timezone(self.timezone)
        object.__setattr__(self, "entries", tuple(self.entries))

    def entries_for(self, day_of_week: str):
        """Entries that apply to the given weekday key (``"mon"``, ``"tue"``...)."""
        return [entry for entry in self.entries if entry.day_of_week == day_of_week]


@dataclass(frozen=True)
class AvailabilityException:
    """A date-ranged override of the plan. ``end`` is exclusive."""
    start: DateTime
    end: DateTime
    seats: int = 0

    def __post_init__(self):
        object.__setattr__(self, "start", clock.to_instant(self.start))
        object.__setattr__(self, "end", clock.to_instant(self.end))
        _require_interval(self, self.start, self.end)
        _require_seats(self.seats)

    def contains(self, instant: DateTime) -> bool:
        return self.start <= instant < self.end


@dataclass(frozen=True)
class TimeSlot:
    """A server-computed interval of bookable availability. ``end`` is exclusive."""
    start: DateTime
    end: DateTime
    seats: int = 1

    def __post_init__(self):
        object.__setattr__(self, "start", clock.to_instant(self.start))
        object.__setattr__(self, "end", clock.to_instant(self.end))
        _require_interval(self, self.start, self.end)
        _require_seats(self.seats)

    def contains(self, instant: DateTime) -> bool:
        return self.start <= instant < self.end

    def with_bounds(self, start: DateTime, end: DateTime, seats: Optional[int] = None) -> "TimeSlot":
        """Copy of this slot with new boundaries (and optionally seats)."""
        return TimeSlot(start=start, end=end, seats=self.seats if seats is None else seats)


@dataclass(frozen=True)
class TimeRange:
    """
    Represents an immutable time range with start and end datetime.

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        _require_interval(self, self.start, self.end)


@dataclass(frozen=True)
class PlanWindow:
    """A plan entry resolved to concrete instants on one day."""
    start: DateTime
    end: DateTime
    seats: int
    entry: PlanEntry

    def contains(self, instant: DateTime) -> bool:
        return self.start <= instant < self.end


@dataclass(frozen=True)
class Range:
    """
    A seat-count range inside a day.

    ``source`` tells which input decided the seats: ``"plan"``, ``"exception"`` or
    ``None`` for gaps that nothing covers.
    """
    start: DateTime
    end: DateTime
    seats: int
    source: Optional[str] = None
    exception: Optional[AvailabilityException] = None
    plan: Optional[PlanWindow] = None

    def __post_init__(self):
        _require_interval(self, self.start, self.end)
        _require_seats(self.seats)
        if self.source not in (None, SOURCE_PLAN, SOURCE_EXCEPTION):
            raise PreconditionError(f"Unknown range source {self.source!r}")


@dataclass(frozen=True, order=True)
class DateId:
    """
    A calendar date in a specific time zone.

    Used as the key of every per-date mapping. ``str(date_id)`` is the ISO-8601
    ``"YYYY-MM-DD"`` representation; two ids are equal only when both the date and the
    time zone match.
    """
    date: pendulum.Date
    timezone: str

    @classmethod
    def of(cls, instant, tz) -> "DateId":
        """The calendar date of ``instant`` in ``tz``."""
        local = clock.in_zone(instant, tz)
        return cls(date=local.date(), timezone=clock.timezone_name(tz))

    @classmethod
    def parse(cls, date_string: str, tz) -> "DateId":
        """Parse ``"YYYY-MM-DD"``."""
        return cls.of(clock.parse_date_from_iso8601(date_string, tz), tz)

    @property
    def start(self) -> DateTime:
        """First instant of the day."""
        return clock.parse_date_from_iso8601(str(self), self.timezone)

    @property
    def end(self) -> DateTime:
        """Exclusive end of the day (start of the next day)."""
        return clock.start_of(self.start, "day", self.timezone, 1, "days")

    def __str__(self) -> str:
        return self.date.isoformat()


@dataclass(frozen=True)
class DayAvailability:
    """Plan entries, exceptions and resolved seat ranges for one day."""
    id: DateId
    plan_entries: Tuple[PlanEntry, ...]
    exceptions: Tuple[AvailabilityException, ...]
    ranges: Tuple[Range, ...]
    has_availability: bool


@dataclass(frozen=True)
class DateTimeSlotBucket:
    """Time slots touching one day."""
    id: DateId
    time_slots: Tuple[TimeSlot, ...]

    @property
    def has_availability(self) -> bool:
        return len(self.time_slots) > 0


@dataclass(frozen=True)
class BookingTimeOption:
    """A selectable booking time: the instant and its ``"HH:mm"`` label in the listing's zone."""
    timestamp: DateTime
    time_of_day: str

    @property
    def timestamp_ms(self) -> int:
        return clock.to_timestamp_ms(self.timestamp)


@dataclass(frozen=True)
class BookingTimeValues:
    """Default booking form values derived from a selected start date."""
    start_time: Optional[DateTime] = None
    end_time: Optional[DateTime] = None
    end_date: Optional[DateTime] = None
    selected_time_slot: Optional[TimeSlot] = None
    start_times: Tuple[BookingTimeOption, ...] = field(default_factory=tuple)
    end_times: Tuple[BookingTimeOption, ...] = field(default_factory=tuple)
