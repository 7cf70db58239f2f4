"""Read-only travel record queries."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

from ...errors import InvalidInputError, NotFoundError
from ...models.domain import DailyTravelRecord, MonthlyTravelSummary, TravelStatus
from ...persistence.travel_records import TravelRecordStore
from .base import InstructorLookup

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")


class TravelQueryService:
    def __init__(self, records: TravelRecordStore, instructors: Optional[InstructorLookup] = None) -> None:
        self.records = records
        self.instructors = instructors

    def _instructor_name(self, instructor_id: int) -> Optional[str]:
        if self.instructors is None:
            return None
        try:
            return self.instructors.get_by_id(instructor_id).name
        except NotFoundError:
            return None

    def _named(self, records: list[DailyTravelRecord]) -> list[DailyTravelRecord]:
        names: dict[int, Optional[str]] = {}
        for record in records:
            if record.instructor_name is None:
                if record.instructor_id not in names:
                    names[record.instructor_id] = self._instructor_name(record.instructor_id)
                record.instructor_name = names[record.instructor_id]
        return records

    def get_daily_records(self, instructor_id: int, from_date: date, to_date: date) -> list[DailyTravelRecord]:
        """Records with ``from_date <= travel_date <= to_date``; never triggers a recompute."""

        if from_date > to_date:
            raise InvalidInputError(f"Range start {from_date} is after end {to_date}.", code="INVALID_DATE_RANGE")
        return self._named(self.records.find_by_instructor_and_date_range(instructor_id, from_date, to_date))

    def get_monthly_summary(self, instructor_id: int, month: str) -> MonthlyTravelSummary:
        """List every record in ``month`` (YYYY-MM); only FINAL fees count toward the total."""

        if not MONTH_PATTERN.match(month):
            raise InvalidInputError(f"Month '{month}' must use the YYYY-MM format.", code="INVALID_MONTH")
        records = self._named(self.records.find_by_instructor_and_month(instructor_id, month))
        total = self.records.sum_final_fees_for_month(instructor_id, month)
        return MonthlyTravelSummary(
            instructor_id=instructor_id,
            month=month,
            records=records,
            total_amount_krw=total or 0,
        )

    def get_records_by_status(self, status: TravelStatus) -> list[DailyTravelRecord]:
        return self._named(self.records.find_by_status(status))
