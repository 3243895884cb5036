"""
Tests for gaps between availability exceptions.
"""

import pendulum
import pytest

from slotresolver.domain.exception_ranges import (
    available_ranges,
    exception_free_slots_per_date,
    normalize_exceptions,
    require_sorted_disjoint,
)
from slotresolver.domain.exceptions import PreconditionError
from slotresolver.domain.models import AvailabilityException, DateId, TimeRange


def utc(*args):
    return pendulum.datetime(*args, tz="UTC")


def exception(start, end, seats=0):
    return AvailabilityException(start=start, end=end, seats=seats)


@pytest.fixture
def january_exceptions():
    return [
        exception(utc(2023, 1, 1), utc(2023, 1, 3)),
        exception(utc(2023, 1, 10, 8), utc(2023, 1, 10, 17)),
        exception(utc(2023, 1, 15), utc(2023, 1, 17)),
    ]


class TestAvailableRanges:
    """Tests for available_ranges."""

    def test_gaps_between_exceptions(self, january_exceptions):
        """Ranges not covered by exceptions are returned in order."""
        ranges = available_ranges(utc(2022, 12, 24), utc(2023, 1, 30), january_exceptions)

        assert ranges == [
            TimeRange(start=utc(2022, 12, 24), end=utc(2023, 1, 1)),
            TimeRange(start=utc(2023, 1, 3), end=utc(2023, 1, 10, 8)),
            TimeRange(start=utc(2023, 1, 10, 17), end=utc(2023, 1, 15)),
            TimeRange(start=utc(2023, 1, 17), end=utc(2023, 1, 30)),
        ]

    def test_gaps_and_exceptions_tile_the_window(self, january_exceptions):
        """Gaps plus exceptions cover the window without overlaps."""
        start, end = utc(2022, 12, 24), utc(2023, 1, 30)
        ranges = available_ranges(start, end, january_exceptions)

        pieces = sorted(
            [(r.start, r.end) for r in ranges] + [(x.start, x.end) for x in january_exceptions]
        )
        assert pieces[0][0] == start
        assert pieces[-1][1] == end
        for (_, previous_end), (next_start, _) in zip(pieces, pieces[1:]):
            assert previous_end == next_start

    def test_window_starting_inside_exception(self, january_exceptions):
        """An exception covering the window start moves the cursor to its end."""
        ranges = available_ranges(utc(2023, 1, 2), utc(2023, 1, 5), january_exceptions)
        assert ranges == [TimeRange(start=utc(2023, 1, 3), end=utc(2023, 1, 5))]

    def test_last_exception_reaching_past_window(self):
        """The final gap ends where the exception starts and processing stops."""
        exceptions = [
            exception(utc(2023, 1, 5), utc(2023, 1, 6)),
            exception(utc(2023, 1, 25), utc(2023, 2, 5)),
        ]
        ranges = available_ranges(utc(2023, 1, 1), utc(2023, 1, 30), exceptions)

        assert ranges == [
            TimeRange(start=utc(2023, 1, 1), end=utc(2023, 1, 5)),
            TimeRange(start=utc(2023, 1, 6), end=utc(2023, 1, 25)),
        ]

    def test_exception_after_window(self):
        """An exception beyond the window leaves the window free."""
        exceptions = [exception(utc(2023, 2, 2), utc(2023, 2, 5))]
        ranges = available_ranges(utc(2023, 1, 1), utc(2023, 1, 30), exceptions)
        assert ranges == [TimeRange(start=utc(2023, 1, 1), end=utc(2023, 1, 30))]

    def test_exception_covering_whole_window(self):
        """Nothing is free when one exception covers everything."""
        exceptions = [exception(utc(2022, 12, 1), utc(2023, 3, 1))]
        assert available_ranges(utc(2023, 1, 1), utc(2023, 1, 30), exceptions) == []

    def test_no_exceptions_and_empty_window(self):
        """No exceptions yield the full window, an empty window yields nothing."""
        assert available_ranges(utc(2023, 1, 1), utc(2023, 1, 2), []) == [
            TimeRange(start=utc(2023, 1, 1), end=utc(2023, 1, 2))
        ]
        assert available_ranges(utc(2023, 1, 1), utc(2023, 1, 1), []) == []

    def test_reversed_window_rejected(self):
        """End before start raises."""
        with pytest.raises(PreconditionError):
            available_ranges(utc(2023, 1, 2), utc(2023, 1, 1), [])

    def test_unsorted_exceptions_rejected(self, january_exceptions):
        """Exceptions are validated, not re-sorted."""
        with pytest.raises(PreconditionError):
            available_ranges(utc(2022, 12, 24), utc(2023, 1, 30), list(reversed(january_exceptions)))


class TestNormalizeExceptions:
    """Tests for ingestion-time ordering."""

    def test_sorts_exceptions(self, january_exceptions):
        """Shuffled input comes back sorted by start."""
        shuffled = [january_exceptions[2], january_exceptions[0], january_exceptions[1]]
        assert normalize_exceptions(shuffled) == january_exceptions

    def test_overlapping_exceptions_rejected(self):
        """Overlaps are reported, not merged."""
        overlapping = [
            exception(utc(2023, 1, 1), utc(2023, 1, 3)),
            exception(utc(2023, 1, 2), utc(2023, 1, 4)),
        ]
        with pytest.raises(PreconditionError, match="overlap"):
            normalize_exceptions(overlapping)

    def test_back_to_back_exceptions_allowed(self):
        """Touching exceptions do not overlap."""
        touching = [
            exception(utc(2023, 1, 1), utc(2023, 1, 2)),
            exception(utc(2023, 1, 2), utc(2023, 1, 3), seats=2),
        ]
        require_sorted_disjoint(touching)


class TestExceptionFreeSlotsPerDate:
    """Tests for exception_free_slots_per_date."""

    def test_ranges_touching_each_day(self):
        """Each day lists the free ranges that touch it."""
        tz = "UTC"
        exceptions = [exception(utc(2023, 1, 2, 8), utc(2023, 1, 2, 12))]

        per_date = exception_free_slots_per_date(utc(2023, 1, 1, 10), utc(2023, 1, 4), exceptions, tz)

        first_free = TimeRange(start=utc(2023, 1, 1), end=utc(2023, 1, 2, 8))
        second_free = TimeRange(start=utc(2023, 1, 2, 12), end=utc(2023, 1, 4))
        assert list(per_date) == [
            DateId.parse("2023-01-01", tz),
            DateId.parse("2023-01-02", tz),
            DateId.parse("2023-01-03", tz),
        ]
        assert per_date[DateId.parse("2023-01-01", tz)] == [first_free]
        assert per_date[DateId.parse("2023-01-02", tz)] == [first_free, second_free]
        assert per_date[DateId.parse("2023-01-03", tz)] == [second_free]
