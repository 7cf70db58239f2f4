"""Persistence for daily travel records and their waypoints."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional

from ..models.domain import Coordinate, DailyTravelRecord, HOME_STOP_NAME, RouteStop, TravelStatus

logger = logging.getLogger(__name__)

RecordBuilder = Callable[[Optional[DailyTravelRecord]], DailyTravelRecord]

DAILY_TRAVEL_TABLE = "instructor_daily_travel"
WAYPOINT_TABLE = "instructor_daily_travel_waypoint"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _detached(record: DailyTravelRecord) -> DailyTravelRecord:
    # RouteStop is frozen, so copying the list is enough to isolate callers
    return replace(record, waypoints=list(record.waypoints))


class TravelRecordStore(ABC):
    """At most one record per (instructor_id, travel_date)."""

    @abstractmethod
    def find_by_instructor_and_date(self, instructor_id: int, travel_date: date) -> Optional[DailyTravelRecord]:
        raise NotImplementedError

    @abstractmethod
    def upsert(self, instructor_id: int, travel_date: date, build: RecordBuilder) -> DailyTravelRecord:
        """Replace (or create) the record for the key with ``build(existing)``.

        Scalars and the full waypoint list are replaced together; ``id`` and
        ``created_at`` of an existing record are kept.
        """
        raise NotImplementedError

    @abstractmethod
    def find_by_instructor_and_date_range(
        self, instructor_id: int, from_date: date, to_date: date
    ) -> list[DailyTravelRecord]:
        raise NotImplementedError

    @abstractmethod
    def find_by_instructor_and_month(self, instructor_id: int, work_month: str) -> list[DailyTravelRecord]:
        raise NotImplementedError

    @abstractmethod
    def sum_final_fees_for_month(self, instructor_id: int, work_month: str) -> int:
        raise NotImplementedError

    @abstractmethod
    def find_by_status(self, status: TravelStatus) -> list[DailyTravelRecord]:
        raise NotImplementedError

    def save(self, record: DailyTravelRecord) -> DailyTravelRecord:
        return self.upsert(record.instructor_id, record.travel_date, lambda existing: record)


class InMemoryTravelRecordStore(TravelRecordStore):
    def __init__(self, now: Callable[[], datetime] = _utcnow) -> None:
        self._records: dict[tuple[int, date], DailyTravelRecord] = {}
        self._lock = threading.Lock()
        self._next_id = 1
        self._now = now

    def find_by_instructor_and_date(self, instructor_id: int, travel_date: date) -> Optional[DailyTravelRecord]:
        with self._lock:
            record = self._records.get((instructor_id, travel_date))
            return _detached(record) if record else None

    def upsert(self, instructor_id: int, travel_date: date, build: RecordBuilder) -> DailyTravelRecord:
        with self._lock:
            existing = self._records.get((instructor_id, travel_date))
            built = build(_detached(existing) if existing else None)
            now = self._now()
            if existing is None:
                record_id, created_at = self._next_id, now
                self._next_id += 1
            else:
                record_id, created_at = existing.id, existing.created_at
            stored = replace(
                built,
                instructor_id=instructor_id,
                travel_date=travel_date,
                waypoints=list(built.waypoints),
                id=record_id,
                created_at=created_at,
                updated_at=now,
            )
            self._records[(instructor_id, travel_date)] = stored
            return _detached(stored)

    def _select(self, predicate: Callable[[DailyTravelRecord], bool]) -> list[DailyTravelRecord]:
        with self._lock:
            matches = [_detached(record) for record in self._records.values() if predicate(record)]
        return sorted(matches, key=lambda record: (record.travel_date, record.instructor_id))

    def find_by_instructor_and_date_range(
        self, instructor_id: int, from_date: date, to_date: date
    ) -> list[DailyTravelRecord]:
        return self._select(
            lambda record: record.instructor_id == instructor_id and from_date <= record.travel_date <= to_date
        )

    def find_by_instructor_and_month(self, instructor_id: int, work_month: str) -> list[DailyTravelRecord]:
        return self._select(lambda record: record.instructor_id == instructor_id and record.work_month == work_month)

    def sum_final_fees_for_month(self, instructor_id: int, work_month: str) -> int:
        return sum(
            record.travel_fee_amount_krw
            for record in self.find_by_instructor_and_month(instructor_id, work_month)
            if record.status is TravelStatus.FINAL
        )

    def find_by_status(self, status: TravelStatus) -> list[DailyTravelRecord]:
        return self._select(lambda record: record.status is status)


def _datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def record_to_row(record: DailyTravelRecord) -> dict[str, Any]:
    return {
        "instructor_id": record.instructor_id,
        "travel_date": record.travel_date.isoformat(),
        "work_month": record.work_month,
        "total_distance_km": str(record.total_distance_km),
        "travel_fee_amount_krw": record.travel_fee_amount_krw,
        "map_snapshot_url": record.map_snapshot_url,
        "status": record.status.value,
        "created_at": record.created_at.isoformat() if record.created_at else None,
        "updated_at": record.updated_at.isoformat() if record.updated_at else None,
    }


def waypoint_to_row(daily_travel_id: int, stop: RouteStop) -> dict[str, Any]:
    return {
        "daily_travel_id": daily_travel_id,
        "seq": stop.seq,
        "institution_id": stop.institution_id,
        "institution_name": stop.name,
        "institution_address": stop.address,
        "lat": str(stop.coordinate.latitude),
        "lng": str(stop.coordinate.longitude),
        "training_id": stop.training_id,
    }


def row_to_waypoint(row: dict[str, Any]) -> RouteStop:
    institution_id = row.get("institution_id")
    return RouteStop(
        coordinate=Coordinate.of(row["lat"], row["lng"]),
        name=row.get("institution_name") or HOME_STOP_NAME,
        address=row.get("institution_address"),
        institution_id=institution_id,
        training_id=row.get("training_id"),
        is_home=institution_id is None,
        seq=int(row["seq"]),
    )


def row_to_record(row: dict[str, Any], waypoint_rows: list[dict[str, Any]]) -> DailyTravelRecord:
    waypoints = sorted((row_to_waypoint(item) for item in waypoint_rows), key=lambda stop: stop.seq)
    return DailyTravelRecord(
        id=row.get("id"),
        instructor_id=int(row["instructor_id"]),
        travel_date=date.fromisoformat(str(row["travel_date"])),
        total_distance_km=Decimal(str(row["total_distance_km"])),
        travel_fee_amount_krw=int(row["travel_fee_amount_krw"]),
        map_snapshot_url=row.get("map_snapshot_url"),
        status=TravelStatus(row["status"]),
        waypoints=waypoints,
        created_at=_datetime(row.get("created_at")),
        updated_at=_datetime(row.get("updated_at")),
    )


class SupabaseTravelRecordStore(TravelRecordStore):
    """Record store backed by Supabase (PostgREST) tables."""

    def __init__(self, client: Any, now: Callable[[], datetime] = _utcnow) -> None:
        self.client = client
        self._now = now

    def _load_waypoints(self, record_ids: list[int]) -> dict[int, list[dict[str, Any]]]:
        grouped: dict[int, list[dict[str, Any]]] = {record_id: [] for record_id in record_ids}
        if not record_ids:
            return grouped
        response = (
            self.client.table(WAYPOINT_TABLE)
            .select("*")
            .in_("daily_travel_id", record_ids)
            .order("seq")
            .execute()
        )
        for row in response.data or []:
            grouped.setdefault(row["daily_travel_id"], []).append(row)
        return grouped

    def _hydrate(self, rows: list[dict[str, Any]]) -> list[DailyTravelRecord]:
        waypoints = self._load_waypoints([row["id"] for row in rows])
        return [row_to_record(row, waypoints.get(row["id"], [])) for row in rows]

    def find_by_instructor_and_date(self, instructor_id: int, travel_date: date) -> Optional[DailyTravelRecord]:
        response = (
            self.client.table(DAILY_TRAVEL_TABLE)
            .select("*")
            .eq("instructor_id", instructor_id)
            .eq("travel_date", travel_date.isoformat())
            .limit(1)
            .execute()
        )
        records = self._hydrate(response.data or [])
        return records[0] if records else None

    def upsert(self, instructor_id: int, travel_date: date, build: RecordBuilder) -> DailyTravelRecord:
        existing = self.find_by_instructor_and_date(instructor_id, travel_date)
        built = build(existing)
        now = self._now()
        record = replace(
            built,
            instructor_id=instructor_id,
            travel_date=travel_date,
            created_at=existing.created_at if existing and existing.created_at else now,
            updated_at=now,
        )

        response = (
            self.client.table(DAILY_TRAVEL_TABLE)
            .upsert(record_to_row(record), on_conflict="instructor_id,travel_date")
            .execute()
        )
        if not response.data:
            raise RuntimeError(f"Upsert of daily travel {instructor_id}/{travel_date} returned no row.")
        record_id = response.data[0]["id"]

        try:
            self._replace_waypoints(record_id, record.waypoints)
        except Exception:
            logger.error("Waypoint write failed for daily travel %s; restoring previous state", record_id)
            self._restore(record_id, existing)
            raise
        logger.info("Saved daily travel %s for instructor %s on %s", record_id, instructor_id, travel_date)
        return replace(record, id=record_id, waypoints=list(record.waypoints))

    def _replace_waypoints(self, record_id: int, waypoints: list[RouteStop]) -> None:
        # Waypoints are replaced wholesale, never merged
        self.client.table(WAYPOINT_TABLE).delete().eq("daily_travel_id", record_id).execute()
        if waypoints:
            self.client.table(WAYPOINT_TABLE).insert(
                [waypoint_to_row(record_id, stop) for stop in waypoints]
            ).execute()

    def _restore(self, record_id: int, existing: Optional[DailyTravelRecord]) -> None:
        """Put back the row and waypoints that were stored before a failed upsert."""
        try:
            if existing is None:
                self.client.table(WAYPOINT_TABLE).delete().eq("daily_travel_id", record_id).execute()
                self.client.table(DAILY_TRAVEL_TABLE).delete().eq("id", record_id).execute()
                return
            self.client.table(DAILY_TRAVEL_TABLE).upsert(
                record_to_row(existing), on_conflict="instructor_id,travel_date"
            ).execute()
            self._replace_waypoints(record_id, existing.waypoints)
        except Exception as e:
            logger.error(f"Failed to restore daily travel {record_id}: {e}")

    def find_by_instructor_and_date_range(
        self, instructor_id: int, from_date: date, to_date: date
    ) -> list[DailyTravelRecord]:
        response = (
            self.client.table(DAILY_TRAVEL_TABLE)
            .select("*")
            .eq("instructor_id", instructor_id)
            .gte("travel_date", from_date.isoformat())
            .lte("travel_date", to_date.isoformat())
            .order("travel_date")
            .execute()
        )
        return self._hydrate(response.data or [])

    def find_by_instructor_and_month(self, instructor_id: int, work_month: str) -> list[DailyTravelRecord]:
        response = (
            self.client.table(DAILY_TRAVEL_TABLE)
            .select("*")
            .eq("instructor_id", instructor_id)
            .eq("work_month", work_month)
            .order("travel_date")
            .execute()
        )
        return self._hydrate(response.data or [])

    def sum_final_fees_for_month(self, instructor_id: int, work_month: str) -> int:
        response = (
            self.client.table(DAILY_TRAVEL_TABLE)
            .select("travel_fee_amount_krw")
            .eq("instructor_id", instructor_id)
            .eq("work_month", work_month)
            .eq("status", TravelStatus.FINAL.value)
            .execute()
        )
        return sum(int(row.get("travel_fee_amount_krw") or 0) for row in response.data or [])

    def find_by_status(self, status: TravelStatus) -> list[DailyTravelRecord]:
        response = (
            self.client.table(DAILY_TRAVEL_TABLE)
            .select("*")
            .eq("status", status.value)
            .order("travel_date")
            .execute()
        )
        return self._hydrate(response.data or [])


__all__ = [
    "InMemoryTravelRecordStore",
    "RecordBuilder",
    "SupabaseTravelRecordStore",
    "TravelRecordStore",
]
