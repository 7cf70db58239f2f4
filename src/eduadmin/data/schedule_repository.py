"""Schedule lookups: which teaching blocks an instructor attends on a date."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date
from typing import Iterable

from ..models.domain import ScheduleEntry

logger = logging.getLogger(__name__)


class UnassignedScheduleLookup:
    """Used while no instructor-to-period assignment source exists; always empty."""

    def get_entries(self, instructor_id: int, on_date: date) -> list[ScheduleEntry]:
        logger.warning(
            "No instructor period assignment source configured; instructor %s has no schedule on %s",
            instructor_id,
            on_date,
        )
        return []


class StaticScheduleLookup:
    """Schedule entries supplied up front, keyed by (instructor_id, date)."""

    def __init__(self, entries: Iterable[tuple[int, date, ScheduleEntry]] = ()) -> None:
        self._entries: dict[tuple[int, date], list[ScheduleEntry]] = defaultdict(list)
        for instructor_id, on_date, entry in entries:
            self.add(instructor_id, on_date, entry)

    def add(self, instructor_id: int, on_date: date, entry: ScheduleEntry) -> None:
        self._entries[(instructor_id, on_date)].append(entry)

    def get_entries(self, instructor_id: int, on_date: date) -> list[ScheduleEntry]:
        return list(self._entries.get((instructor_id, on_date), []))
