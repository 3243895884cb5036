"""
Tests for the JSON file availability source.
"""

import asyncio
import json
from pathlib import Path

import pendulum
import pytest

from slotresolver.adapters.json_source import JsonAvailabilitySource
from slotresolver.domain.exceptions import AvailabilitySourceError


def utc(*args):
    return pendulum.datetime(*args, tz="UTC")


def _write(tmp_path: Path, document) -> Path:
    path = tmp_path / "listing.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def listing(tmp_path: Path) -> Path:
    return _write(
        tmp_path,
        {
            "plan": {
                "timezone": "Europe/Helsinki",
                "entries": [
                    {"dayOfWeek": "mon", "startTime": "09:00", "endTime": "17:00"},
                    {"dayOfWeek": "wed", "startTime": "00:00", "endTime": "00:00", "seats": 3},
                ],
            },
            "exceptions": [
                {"start": "2023-01-02T00:00:00", "end": "2023-01-03T00:00:00"},
                {"start": "2023-02-01T10:00:00Z", "end": "2023-02-01T12:00:00Z", "seats": 2},
            ],
            "timeSlots": [
                {"start": "2023-01-04T00:00:00+02:00", "end": "2023-01-05T00:00:00+02:00", "seats": 3},
            ],
        },
    )


class TestJsonAvailabilitySource:
    """Tests for JsonAvailabilitySource."""

    def test_fetch_plan(self, listing: Path):
        """Entries use camelCase keys and default to one seat."""
        plan = asyncio.run(JsonAvailabilitySource(listing).fetch_plan())

        assert plan.timezone == "Europe/Helsinki"
        assert [(e.day_of_week, e.seats) for e in plan.entries] == [("mon", 1), ("wed", 3)]

    def test_fetch_exceptions_in_plan_timezone(self, listing: Path):
        """Instants without an offset are read in the plan's zone and filtered by range."""
        source = JsonAvailabilitySource(listing)

        exceptions = asyncio.run(source.fetch_exceptions(utc(2023, 1, 1), utc(2023, 1, 31)))

        assert len(exceptions) == 1
        assert exceptions[0].start == utc(2023, 1, 1, 22)
        assert exceptions[0].end == utc(2023, 1, 2, 22)
        assert exceptions[0].seats == 0

    def test_fetch_time_slots(self, listing: Path):
        """Slots overlapping the range are returned."""
        source = JsonAvailabilitySource(listing)

        time_slots = asyncio.run(source.fetch_time_slots(utc(2023, 1, 4), utc(2023, 1, 5)))
        assert [(ts.start, ts.end, ts.seats) for ts in time_slots] == [
            (utc(2023, 1, 3, 22), utc(2023, 1, 4, 22), 3)
        ]
        assert asyncio.run(source.fetch_time_slots(utc(2023, 1, 5), utc(2023, 1, 6))) == []

    def test_missing_file_is_empty(self, tmp_path: Path):
        """A missing file is an empty listing in the default zone."""
        source = JsonAvailabilitySource(tmp_path / "missing.json", default_timezone="Europe/Berlin")

        plan = asyncio.run(source.fetch_plan())

        assert plan.timezone == "Europe/Berlin"
        assert plan.entries == ()
        assert asyncio.run(source.fetch_exceptions(utc(2023, 1, 1), utc(2023, 2, 1))) == []

    @pytest.mark.parametrize(
        "document",
        [
            ["not", "an", "object"],
            {"plan": {"timezone": "UTC", "entries": [{"dayOfWeek": "mon"}]}},
            {"plan": {"timezone": "UTC", "entries": [{"dayOfWeek": "xyz", "startTime": "09:00", "endTime": "10:00"}]}},
        ],
    )
    def test_invalid_plan(self, tmp_path: Path, document):
        """Malformed documents raise AvailabilitySourceError."""
        source = JsonAvailabilitySource(_write(tmp_path, document))
        with pytest.raises(AvailabilitySourceError):
            asyncio.run(source.fetch_plan())

    def test_invalid_exception(self, tmp_path: Path):
        """Unparseable or empty intervals are reported."""
        bad_instant = JsonAvailabilitySource(
            _write(tmp_path, {"exceptions": [{"start": "yesterday", "end": "2023-01-02T00:00:00Z"}]})
        )
        with pytest.raises(AvailabilitySourceError):
            asyncio.run(bad_instant.fetch_exceptions(utc(2023, 1, 1), utc(2023, 2, 1)))

        reversed_interval = JsonAvailabilitySource(
            _write(tmp_path, {"exceptions": [{"start": "2023-01-02T00:00:00Z", "end": "2023-01-01T00:00:00Z"}]})
        )
        with pytest.raises(AvailabilitySourceError):
            asyncio.run(reversed_interval.fetch_exceptions(utc(2023, 1, 1), utc(2023, 2, 1)))

    def test_invalid_json(self, tmp_path: Path):
        """Broken JSON is reported with the file name."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(AvailabilitySourceError, match="broken.json"):
            asyncio.run(JsonAvailabilitySource(path).fetch_plan())
