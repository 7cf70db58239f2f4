"""Daily travel recalculation: route, distance, policy fee, snapshot, upsert."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator, Optional, Sequence

from ...errors import InvalidInputError, NotFoundError, PolicyNotFoundError
from ...models.domain import Coordinate, DailyTravelRecord, Instructor, RouteStop, TravelStatus
from ...persistence.travel_records import TravelRecordStore
from .base import InstitutionLookup, InstructorLookup, PolicyStore, ScheduleLookup, SnapshotGenerator
from .distance import route_distance_km
from .policy import PolicyMatcher
from .route_builder import RouteBuilder, require_home

logger = logging.getLogger(__name__)


class DailyTravelRecalculator:
    """Recomputes the single travel record kept per (instructor, date).

    A recompute either replaces the whole record (distance, fee, snapshot,
    status and waypoints) or leaves the stored record untouched.
    """

    def __init__(
        self,
        instructors: InstructorLookup,
        schedules: ScheduleLookup,
        institutions: InstitutionLookup,
        policies: PolicyStore,
        records: TravelRecordStore,
        snapshots: Optional[SnapshotGenerator] = None,
    ) -> None:
        self.instructors = instructors
        self.schedules = schedules
        self.route_builder = RouteBuilder(institutions)
        self.policy_matcher = PolicyMatcher(policies)
        self.records = records
        self.snapshots = snapshots
        # key -> (lock, number of callers holding or waiting on it)
        self._key_locks: dict[tuple[int, date], tuple[threading.Lock, int]] = {}
        self._key_locks_guard = threading.Lock()

    @contextmanager
    def _key_lock(self, instructor_id: int, travel_date: date) -> Iterator[None]:
        key = (instructor_id, travel_date)
        with self._key_locks_guard:
            lock, users = self._key_locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._key_locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._key_locks_guard:
                _, users = self._key_locks[key]
                if users == 1:
                    del self._key_locks[key]
                else:
                    self._key_locks[key] = (lock, users - 1)

    def _get_instructor(self, instructor_id: int) -> Instructor:
        instructor = self.instructors.get_by_id(instructor_id)
        if instructor is None:
            raise NotFoundError(f"Instructor {instructor_id} not found.")
        return instructor

    def recalculate(self, instructor_id: int, travel_date: date) -> DailyTravelRecord:
        logger.info("Recalculating daily travel for instructor %s on %s", instructor_id, travel_date)

        instructor = self._get_instructor(instructor_id)
        home = require_home(instructor)

        with self._key_lock(instructor_id, travel_date):
            entries = list(self.schedules.get_entries(instructor_id, travel_date))
            if not entries:
                return self._save_without_travel(instructor, travel_date)

            # A home-only route (no geocoded institution) is still priced at 0 km
            stops = self.route_builder.build(instructor, entries)
            distance = route_distance_km([stop.coordinate for stop in stops])
            # Raises PolicyNotFoundError before anything is written
            policy = self.policy_matcher.match(distance, travel_date)
            snapshot_url = self._try_snapshot(instructor, home, stops, travel_date)
            status = TravelStatus.FINAL if snapshot_url and snapshot_url.strip() else TravelStatus.DRAFT

            record = self.records.upsert(
                instructor_id,
                travel_date,
                lambda existing: DailyTravelRecord(
                    instructor_id=instructor_id,
                    travel_date=travel_date,
                    total_distance_km=distance,
                    travel_fee_amount_krw=policy.amount_krw,
                    map_snapshot_url=snapshot_url,
                    status=status,
                    waypoints=list(stops),
                ),
            )
        record.instructor_name = instructor.name
        logger.info(
            "Daily travel for instructor %s on %s: %skm, %s KRW, %s",
            instructor_id,
            travel_date,
            distance,
            policy.amount_krw,
            status.value,
        )
        return record

    def _save_without_travel(self, instructor: Instructor, travel_date: date) -> DailyTravelRecord:
        record = self.records.upsert(
            instructor.instructor_id,
            travel_date,
            lambda existing: DailyTravelRecord(
                instructor_id=instructor.instructor_id,
                travel_date=travel_date,
                total_distance_km=Decimal("0.00"),
                travel_fee_amount_krw=0,
                map_snapshot_url=None,
                status=TravelStatus.DRAFT,
                waypoints=[],
            ),
        )
        record.instructor_name = instructor.name
        return record

    def _try_snapshot(
        self,
        instructor: Instructor,
        home: Coordinate,
        stops: Sequence[RouteStop],
        travel_date: date,
    ) -> Optional[str]:
        if self.snapshots is None:
            return None
        institution_stops = [stop for stop in stops if not stop.is_home]
        try:
            return self.snapshots.generate(home, instructor.home_address or "", institution_stops, True)
        except Exception as exc:
            # Snapshot failures leave the record in DRAFT, never abort the recompute
            logger.warning(
                "Failed to generate map snapshot for instructor %s on %s: %s",
                instructor.instructor_id,
                travel_date,
                exc,
            )
            return None

    def rebuild(self, instructor_id: int, from_date: date, to_date: date) -> list[DailyTravelRecord]:
        """Recalculate every date in ``[from_date, to_date]``.

        Days without a matching policy are skipped and keep their previous
        record; instructor-level failures abort the rebuild.
        """

        if from_date > to_date:
            raise InvalidInputError(
                f"Rebuild range start {from_date} is after end {to_date}.", code="INVALID_DATE_RANGE"
            )
        logger.info("Rebuilding daily travel for instructor %s from %s to %s", instructor_id, from_date, to_date)

        rebuilt: list[DailyTravelRecord] = []
        current = from_date
        while current <= to_date:
            try:
                rebuilt.append(self.recalculate(instructor_id, current))
            except PolicyNotFoundError as exc:
                logger.warning("Skipping %s for instructor %s: %s", current, instructor_id, exc.message)
            current += timedelta(days=1)
        return rebuilt
