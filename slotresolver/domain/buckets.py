"""
Enumerate calendar days and months of a half-open range in a time zone.
"""

from typing import Callable, Dict, Hashable, Iterable, Iterator, List, Optional, TypeVar

from pendulum import DateTime

from . import clock
from .exceptions import PreconditionError

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def _time_unit_generator(
    start: DateTime,
    end: DateTime,
    unit: str,
    tz: clock.TimeZoneLike,
    step_unit: str,
) -> Iterator[DateTime]:
    start_dt = clock.to_instant(start)
    end_dt = clock.to_instant(end)
    if end_dt < start_dt:
        raise PreconditionError(f"Range end {end_dt} cannot be before range start {start_dt}")

    current = clock.start_of(start_dt, unit, tz)
    while end_dt > current:
        yield current
        current = clock.start_of(current, unit, tz, 1, step_unit)


def generate_dates(start: DateTime, end: DateTime, tz: clock.TimeZoneLike) -> List[DateTime]:
    """
    Start-of-day instants for every calendar day in ``[start, end)``.

    ``end`` is exclusive: to include a day, pass the start of the following day.
    """
    return list(_time_unit_generator(start, end, "day", tz, "days"))


def generate_months(start: DateTime, end: DateTime, tz: clock.TimeZoneLike) -> List[DateTime]:
    """Start-of-month instants for every month that starts before ``end``."""
    return list(_time_unit_generator(start, end, "month", tz, "months"))


def to_hash_map(
    items: Iterable[T],
    key_fn: Callable[[T], K],
    value_fn: Optional[Callable[[T], V]] = None,
) -> Dict[K, V]:
    """
    Fold items into an insertion-ordered dict.

    When ``key_fn`` returns the same key twice, the later item overwrites the earlier one.
    """
    result: Dict[K, V] = {}
    for item in items:
        result[key_fn(item)] = value_fn(item) if value_fn else item
    return result


def unique_by(items: Iterable[T], key_fn: Callable[[T], Optional[Hashable]]) -> List[T]:
    """Keep the first item for each key. Items whose key is ``None`` are dropped."""
    seen = set()
    unique: List[T] = []
    for item in items:
        key = key_fn(item)
        if key is not None and key not in seen:
            seen.add(key)
            unique.append(item)
    return unique
