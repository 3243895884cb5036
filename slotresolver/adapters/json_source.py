"""
File-backed availability source reading a JSON document.

Document layout::

    {
      "plan": {
        "timezone": "Europe/Helsinki",
        "entries": [{"dayOfWeek": "mon", "startTime": "09:00", "endTime": "17:00", "seats": 1}]
      },
      "exceptions": [{"start": "2024-07-01T10:00:00+03:00", "end": "...", "seats": 0}],
      "timeSlots": [{"start": "...", "end": "...", "seats": 1}]
    }

Instants are ISO-8601 strings; ones without an offset are read in the plan's time zone.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pendulum
from pendulum import DateTime

from ..domain import clock
from ..domain.exceptions import AvailabilitySourceError, SlotResolverError
from ..domain.models import AvailabilityException, AvailabilityPlan, PlanEntry, TimeSlot

logger = logging.getLogger(__name__)


class JsonAvailabilitySource:
    """
    Availability source backed by a JSON file.

    A missing file is treated as an empty listing (no plan entries, exceptions or time
    slots) in ``default_timezone``. Malformed content raises ``AvailabilitySourceError``.
    """

    def __init__(self, path: Path, default_timezone: str = "Etc/UTC"):
        self.path = Path(path)
        self.default_timezone = default_timezone
        self._document: Optional[Dict[str, Any]] = None

    def _load(self) -> Dict[str, Any]:
        if self._document is not None:
            return self._document

        if not self.path.exists():
            logger.warning("Availability data file %s not found; using empty data", self.path)
            self._document = {}
            return self._document

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as exc:
            raise AvailabilitySourceError(f"Could not read availability data from {self.path}: {exc}") from exc

        if not isinstance(document, dict):
            raise AvailabilitySourceError(f"Availability data in {self.path} must be a JSON object")
        self._document = document
        return document

    def _timezone(self) -> str:
        plan = self._load().get("plan") or {}
        return plan.get("timezone", self.default_timezone)

    def _parse_instant(self, value: Any) -> DateTime:
        if not isinstance(value, str):
            raise AvailabilitySourceError(f"Expected an ISO-8601 string, got {value!r}")
        try:
            return clock.to_instant(pendulum.parse(value, tz=self._timezone()))
        except (ValueError, SlotResolverError) as exc:
            raise AvailabilitySourceError(f"Invalid instant {value!r}: {exc}") from exc

    async def fetch_plan(self) -> AvailabilityPlan:
        """Return the stored plan (an empty one when the file has none)."""
        plan = self._load().get("plan") or {}
        try:
            entries = [
                PlanEntry(
                    day_of_week=entry["dayOfWeek"],
                    start_time=entry["startTime"],
                    end_time=entry["endTime"],
                    seats=entry.get("seats", 1),
                )
                for entry in plan.get("entries", [])
            ]
            return AvailabilityPlan(timezone=self._timezone(), entries=tuple(entries))
        except (KeyError, TypeError, AttributeError, SlotResolverError) as exc:
            raise AvailabilitySourceError(f"Invalid availability plan in {self.path}: {exc}") from exc

    def _parse_interval(self, item: Any, model, default_seats: int, label: str):
        if not isinstance(item, dict) or "start" not in item or "end" not in item:
            raise AvailabilitySourceError(f"Invalid {label} {item!r}: expected start and end")
        start = self._parse_instant(item["start"])
        end = self._parse_instant(item["end"])
        try:
            return model(start=start, end=end, seats=item.get("seats", default_seats))
        except SlotResolverError as exc:
            raise AvailabilitySourceError(f"Invalid {label} {item!r}: {exc}") from exc

    async def fetch_exceptions(self, start: DateTime, end: DateTime) -> List[AvailabilityException]:
        """Return stored exceptions overlapping ``[start, end)``, in file order."""
        exceptions = [
            self._parse_interval(item, AvailabilityException, 0, "availability exception")
            for item in self._load().get("exceptions", [])
        ]
        return [x for x in exceptions if x.start < end and x.end > start]

    async def fetch_time_slots(self, start: DateTime, end: DateTime) -> List[TimeSlot]:
        """Return stored time slots overlapping ``[start, end)``, in file order."""
        time_slots = [
            self._parse_interval(item, TimeSlot, 1, "time slot")
            for item in self._load().get("timeSlots", [])
        ]
        return [ts for ts in time_slots if ts.start < end and ts.end > start]
