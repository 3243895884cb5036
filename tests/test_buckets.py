"""
Tests for day and month bucketing helpers.
"""

import pendulum
import pytest

from slotresolver.domain import clock
from slotresolver.domain.buckets import generate_dates, generate_months, to_hash_map, unique_by
from slotresolver.domain.exceptions import PreconditionError

HELSINKI = "Europe/Helsinki"


def utc(*args):
    return pendulum.datetime(*args, tz="UTC")


class TestGenerateDates:
    """Tests for generate_dates."""

    def test_dates_in_timezone(self):
        """Every day of the half-open range starts at local midnight."""
        start = clock.parse_date_from_iso8601("2022-12-01", HELSINKI)
        end = clock.parse_date_from_iso8601("2022-12-05", HELSINKI)

        dates = generate_dates(start, end, HELSINKI)

        assert dates == [utc(2022, 11, 30, 22), utc(2022, 12, 1, 22), utc(2022, 12, 2, 22), utc(2022, 12, 3, 22)]

    def test_dates_across_dst_change(self):
        """Day starts follow the offset change."""
        start = clock.parse_date_from_iso8601("2023-03-25", HELSINKI)
        end = clock.parse_date_from_iso8601("2023-03-28", HELSINKI)

        dates = generate_dates(start, end, HELSINKI)

        assert dates == [utc(2023, 3, 24, 22), utc(2023, 3, 25, 22), utc(2023, 3, 26, 21)]

    def test_count_matches_days_between(self):
        """One date per whole day between the bounds."""
        start = clock.parse_date_from_iso8601("2023-03-20", HELSINKI)
        end = clock.parse_date_from_iso8601("2023-04-03", HELSINKI)
        assert len(generate_dates(start, end, HELSINKI)) == clock.days_between(start, end, HELSINKI) == 14

    def test_partial_day_at_start_is_included(self):
        """A start inside a day still yields that day."""
        dates = generate_dates(utc(2024, 7, 1, 12), utc(2024, 7, 2, 12), "UTC")
        assert dates == [utc(2024, 7, 1), utc(2024, 7, 2)]

    def test_empty_and_reversed_ranges(self):
        """An empty range yields nothing, a reversed one is rejected."""
        assert generate_dates(utc(2024, 7, 1), utc(2024, 7, 1), "UTC") == []
        with pytest.raises(PreconditionError):
            generate_dates(utc(2024, 7, 2), utc(2024, 7, 1), "UTC")


class TestGenerateMonths:
    """Tests for generate_months."""

    def test_months_in_timezone(self):
        """Every month that starts before the end is listed."""
        start = clock.parse_date_from_iso8601("2022-12-01", HELSINKI)
        end = clock.parse_date_from_iso8601("2023-03-05", HELSINKI)

        months = generate_months(start, end, HELSINKI)

        assert months == [utc(2022, 11, 30, 22), utc(2022, 12, 31, 22), utc(2023, 1, 31, 22), utc(2023, 2, 28, 22)]


class TestCollectionHelpers:
    """Tests for to_hash_map and unique_by."""

    def test_to_hash_map_later_keys_win(self):
        """Duplicate keys keep the last value."""
        result = to_hash_map(["apple", "avocado", "banana"], lambda s: s[0])
        assert result == {"a": "avocado", "b": "banana"}

    def test_to_hash_map_with_value_fn(self):
        """Values can be derived from the items."""
        result = to_hash_map([1, 2, 3], str, lambda n: n * n)
        assert result == {"1": 1, "2": 4, "3": 9}

    def test_unique_by_keeps_first(self):
        """The first item per key survives and None keys are dropped."""
        items = [("a", 1), ("b", 2), ("a", 3), (None, 4)]
        assert unique_by(items, lambda item: item[0]) == [("a", 1), ("b", 2)]
