"""
Tests for booking time unit boundaries.
"""

import pendulum
import pytest

from slotresolver.domain.boundaries import (
    find_next_boundary,
    get_boundaries,
    get_end_hours,
    get_sharp_hours,
    get_start_hours,
    time_unit_config,
)
from slotresolver.domain.exceptions import PreconditionError

HELSINKI = "Europe/Helsinki"


def utc(*args):
    return pendulum.datetime(*args, tz="UTC")


def labels(options):
    return [option.time_of_day for option in options]


class TestFindNextBoundary:
    """Tests for find_next_boundary."""

    @pytest.mark.parametrize(
        "interval, unit, expected",
        [
            (1, "hour", utc(2024, 7, 1, 11)),
            (2, "hour", utc(2024, 7, 1, 12)),
            (1, "30min", utc(2024, 7, 1, 10, 30)),
            (1, "15min", utc(2024, 7, 1, 10, 15)),
            (2, "15min", utc(2024, 7, 1, 10, 30)),
            (1, "5min", utc(2024, 7, 1, 10, 10)),
            (1, "day", utc(2024, 7, 2)),
        ],
    )
    def test_next_boundary(self, interval, unit, expected):
        """The boundary after 10:07 for each unit."""
        assert find_next_boundary(utc(2024, 7, 1, 10, 7), interval, unit, "UTC") == expected

    def test_boundary_is_strictly_after(self):
        """An instant on a boundary moves to the next one."""
        assert find_next_boundary(utc(2024, 7, 1, 10), 1, "hour", "UTC") == utc(2024, 7, 1, 11)
        assert find_next_boundary(utc(2024, 7, 1, 10, 15), 1, "15min", "UTC") == utc(2024, 7, 1, 10, 30)

    def test_invalid_arguments(self):
        """Unknown units and non-positive intervals are rejected."""
        with pytest.raises(PreconditionError):
            find_next_boundary(utc(2024, 7, 1), 1, "week", "UTC")
        with pytest.raises(PreconditionError):
            find_next_boundary(utc(2024, 7, 1), 0, "hour", "UTC")
        with pytest.raises(PreconditionError):
            time_unit_config("45min")


class TestBoundaries:
    """Tests for boundary lists."""

    def test_sharp_hours_in_timezone(self):
        """Sharp hours are labelled on the zone's wall clock."""
        hours = get_sharp_hours(utc(2019, 9, 18, 8), utc(2019, 9, 18, 11), HELSINKI)
        assert labels(hours) == ["11:00", "12:00", "13:00", "14:00"]

    def test_start_and_end_hours(self):
        """Start hours drop the last boundary, end hours the first."""
        start, end = utc(2019, 9, 18, 8), utc(2019, 9, 18, 11)
        assert labels(get_start_hours(start, end, HELSINKI)) == ["11:00", "12:00", "13:00"]
        assert labels(get_end_hours(start, end, HELSINKI)) == ["12:00", "13:00", "14:00"]

    def test_single_boundary(self):
        """One boundary is a start hour but never an end hour."""
        start, end = utc(2019, 9, 18, 8), utc(2019, 9, 18, 8, 30)
        assert labels(get_start_hours(start, end, "UTC")) == ["08:00"]
        assert get_end_hours(start, end, "UTC") == []

    def test_quarter_hours(self):
        """Minute units snap to their multiples."""
        options = get_boundaries(utc(2024, 7, 1, 10, 5), utc(2024, 7, 1, 11), 1, "15min", "UTC")
        assert labels(options) == ["10:15", "10:30", "10:45", "11:00"]

    def test_repeated_label_on_dst_end(self):
        """The repeated hour at the end of DST is offered once."""
        # 2023-10-29 Helsinki goes from 04:00 EEST back to 03:00 EET
        hours = get_sharp_hours(utc(2023, 10, 29, 0), utc(2023, 10, 29, 3), HELSINKI)
        assert labels(hours) == ["03:00", "04:00", "05:00"]
        assert hours[0].timestamp == utc(2023, 10, 29, 0)
