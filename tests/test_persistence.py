from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest

from src.eduadmin.models.domain import Coordinate, DailyTravelRecord, RouteStop, TravelStatus
from src.eduadmin.persistence.filesystem import FileStorage
from src.eduadmin.persistence.travel_records import (
    InMemoryTravelRecordStore,
    SupabaseTravelRecordStore,
    row_to_record,
)

DAY = date(2025, 3, 10)


def _stops() -> list[RouteStop]:
    home = Coordinate.of(37.5, 127.0)
    return [
        RouteStop(coordinate=home, name="HOME", address="Home 1", is_home=True, seq=0),
        RouteStop(
            coordinate=Coordinate.of(37.6, 127.1),
            name="Jongno Elementary",
            address="Addr 1",
            institution_id=1,
            training_id=55,
            seq=1,
        ),
        RouteStop(coordinate=home, name="HOME", address="Home 1", is_home=True, seq=2),
    ]


def _record(fee: int = 8000, status: TravelStatus = TravelStatus.FINAL, waypoints=None) -> DailyTravelRecord:
    return DailyTravelRecord(
        instructor_id=7,
        travel_date=DAY,
        total_distance_km=Decimal("28.41"),
        travel_fee_amount_krw=fee,
        status=status,
        map_snapshot_url="/files/map.png" if status is TravelStatus.FINAL else None,
        waypoints=_stops() if waypoints is None else waypoints,
    )


class _Clock:
    def __init__(self) -> None:
        self.current = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(minutes=1)
        return self.current


def test_file_storage_saves_under_subdirectory(tmp_path: Path) -> None:
    storage = FileStorage(root=tmp_path, base_url="/files")

    url = storage.save_file(b"image", "route 1.png", "map-snapshots")

    assert url == "/files/map-snapshots/route_1.png"
    assert (tmp_path / "uploads" / "map-snapshots" / "route_1.png").read_bytes() == b"image"
    assert storage.resolve_url(url) == tmp_path.resolve() / "uploads" / "map-snapshots" / "route_1.png"


def test_file_storage_rejects_empty_payload(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        FileStorage(root=tmp_path).save_file(b"", "route.png")


def test_file_storage_ignores_foreign_urls(tmp_path: Path) -> None:
    assert FileStorage(root=tmp_path, base_url="/files").resolve_url("https://elsewhere/route.png") is None


def test_in_memory_store_keeps_one_record_per_key() -> None:
    store = InMemoryTravelRecordStore(now=_Clock())

    first = store.save(_record())
    second = store.save(_record(fee=0, status=TravelStatus.DRAFT, waypoints=[]))

    assert first.id == second.id == 1
    assert second.created_at == first.created_at
    assert second.updated_at > first.updated_at
    stored = store.find_by_instructor_and_date(7, DAY)
    assert stored.travel_fee_amount_krw == 0
    assert stored.waypoints == []
    assert stored.status is TravelStatus.DRAFT


def test_in_memory_store_assigns_ids_per_key() -> None:
    store = InMemoryTravelRecordStore()

    store.save(_record())
    other = store.upsert(
        8,
        DAY,
        lambda existing: DailyTravelRecord(
            instructor_id=8,
            travel_date=DAY,
            total_distance_km=Decimal("0.00"),
            travel_fee_amount_krw=0,
            status=TravelStatus.DRAFT,
        ),
    )

    assert other.id == 2
    assert store.find_by_status(TravelStatus.DRAFT)[0].instructor_id == 8


def test_in_memory_upsert_passes_existing_record_to_builder() -> None:
    store = InMemoryTravelRecordStore()
    seen = []

    def build(existing):
        seen.append(existing)
        return _record()

    store.upsert(7, DAY, build)
    store.upsert(7, DAY, build)

    assert seen[0] is None
    assert seen[1].id == 1


def test_in_memory_store_returns_detached_copies() -> None:
    store = InMemoryTravelRecordStore()
    store.save(_record())

    loaded = store.find_by_instructor_and_date(7, DAY)
    loaded.waypoints.clear()
    loaded.travel_fee_amount_krw = 1

    reloaded = store.find_by_instructor_and_date(7, DAY)
    assert len(reloaded.waypoints) == 3
    assert reloaded.travel_fee_amount_krw == 8000


def test_in_memory_month_sum_counts_final_only() -> None:
    store = InMemoryTravelRecordStore()
    store.save(_record(fee=5000))
    store.upsert(7, date(2025, 3, 11), lambda existing: _record(fee=3000, status=TravelStatus.DRAFT))

    assert store.sum_final_fees_for_month(7, "2025-03") == 5000
    assert len(store.find_by_instructor_and_month(7, "2025-03")) == 2
    assert store.sum_final_fees_for_month(7, "2025-04") == 0


class FakeQuery:
    """Records PostgREST-style calls against an in-memory table."""

    def __init__(self, db: "FakeSupabase", table: str) -> None:
        self.db = db
        self.table = table
        self.filters = []
        self.action = "select"
        self.payload = None
        self.on_conflict = None
        self.limit_count = None
        self.order_by = None

    def select(self, columns="*"):
        self.action = "select"
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) >= value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) <= value)
        return self

    def in_(self, column, values):
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def order(self, column):
        self.order_by = column
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def upsert(self, row, on_conflict=None):
        self.action, self.payload, self.on_conflict = "upsert", row, on_conflict
        return self

    def insert(self, rows):
        self.action, self.payload = "insert", rows
        return self

    def delete(self):
        self.action = "delete"
        return self

    def _matches(self, row) -> bool:
        return all(check(row) for check in self.filters)

    def execute(self):
        rows = self.db.tables.setdefault(self.table, [])
        self.db.calls.append((self.table, self.action))
        if self.action == "upsert":
            keys = self.on_conflict.split(",")
            for row in rows:
                if all(row[key] == self.payload[key] for key in keys):
                    row.update(self.payload)
                    return SimpleNamespace(data=[dict(row)])
            stored = {"id": self.db.next_id(), **self.payload}
            rows.append(stored)
            return SimpleNamespace(data=[dict(stored)])
        if self.action == "insert":
            if self.db.failing_inserts:
                self.db.failing_inserts -= 1
                raise RuntimeError("insert rejected")
            rows.extend(dict(row) for row in self.payload)
            return SimpleNamespace(data=list(self.payload))
        if self.action == "delete":
            removed = [row for row in rows if self._matches(row)]
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=removed)
        found = [dict(row) for row in rows if self._matches(row)]
        if self.order_by:
            found.sort(key=lambda row: row[self.order_by])
        if self.limit_count is not None:
            found = found[: self.limit_count]
        return SimpleNamespace(data=found)


class FakeSupabase:
    def __init__(self) -> None:
        self.tables = {}
        self.calls = []
        self.failing_inserts = 0
        self._id = 0

    def next_id(self) -> int:
        self._id += 1
        return self._id

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


def test_supabase_store_round_trips_record_and_waypoints() -> None:
    client = FakeSupabase()
    store = SupabaseTravelRecordStore(client, now=_Clock())

    saved = store.save(_record())
    loaded = store.find_by_instructor_and_date(7, DAY)

    assert saved.id == loaded.id
    assert loaded.total_distance_km == Decimal("28.41")
    assert loaded.status is TravelStatus.FINAL
    assert loaded.work_month == "2025-03"
    assert [stop.seq for stop in loaded.waypoints] == [0, 1, 2]
    assert loaded.waypoints[0].is_home and loaded.waypoints[2].is_home
    assert loaded.waypoints[1].institution_id == 1
    assert loaded.waypoints[1].training_id == 55
    assert loaded.waypoints[1].coordinate == Coordinate.of(37.6, 127.1)


def test_supabase_store_replaces_waypoints_on_update() -> None:
    client = FakeSupabase()
    store = SupabaseTravelRecordStore(client, now=_Clock())

    first = store.save(_record())
    second = store.save(_record(fee=0, status=TravelStatus.DRAFT, waypoints=[]))

    assert second.id == first.id
    assert second.created_at == first.created_at
    assert len(client.tables["instructor_daily_travel"]) == 1
    assert client.tables["instructor_daily_travel_waypoint"] == []
    loaded = store.find_by_instructor_and_date(7, DAY)
    assert loaded.travel_fee_amount_krw == 0
    assert loaded.map_snapshot_url is None


def test_supabase_store_monthly_queries() -> None:
    client = FakeSupabase()
    store = SupabaseTravelRecordStore(client)
    store.save(_record(fee=5000))
    store.upsert(7, date(2025, 3, 11), lambda existing: _record(fee=3000, status=TravelStatus.DRAFT))
    store.upsert(7, date(2025, 4, 1), lambda existing: _record(fee=9000))

    assert store.sum_final_fees_for_month(7, "2025-03") == 5000
    assert [record.travel_date for record in store.find_by_instructor_and_month(7, "2025-03")] == [
        date(2025, 3, 10),
        date(2025, 3, 11),
    ]
    in_range = store.find_by_instructor_and_date_range(7, date(2025, 3, 11), date(2025, 4, 1))
    assert [record.travel_date for record in in_range] == [date(2025, 3, 11), date(2025, 4, 1)]
    assert [record.travel_date for record in store.find_by_status(TravelStatus.DRAFT)] == [date(2025, 3, 11)]


def test_row_to_record_parses_string_columns() -> None:
    record = row_to_record(
        {
            "id": 3,
            "instructor_id": "7",
            "travel_date": "2025-03-10",
            "total_distance_km": "12.30",
            "travel_fee_amount_krw": "15000",
            "map_snapshot_url": None,
            "status": "DRAFT",
            "created_at": "2025-03-10T09:00:00Z",
            "updated_at": None,
        },
        [
            {"seq": 1, "institution_id": 1, "institution_name": "School", "lat": "37.6", "lng": "127.1"},
            {"seq": 0, "institution_id": None, "institution_name": None, "lat": "37.5", "lng": "127.0"},
        ],
    )

    assert record.total_distance_km == Decimal("12.30")
    assert record.travel_fee_amount_krw == 15000
    assert record.created_at == datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
    assert [stop.seq for stop in record.waypoints] == [0, 1]
    assert record.waypoints[0].name == "HOME"
    assert record.waypoints[0].is_home


def test_supabase_store_restores_previous_record_when_waypoint_insert_fails() -> None:
    client = FakeSupabase()
    store = SupabaseTravelRecordStore(client, now=_Clock())
    before = store.save(_record())

    client.failing_inserts = 1
    changed = _record(fee=9999)
    changed.total_distance_km = Decimal("99.99")
    with pytest.raises(RuntimeError):
        store.save(changed)

    after = store.find_by_instructor_and_date(7, DAY)
    assert after.id == before.id
    assert after.travel_fee_amount_krw == 8000
    assert after.total_distance_km == Decimal("28.41")
    assert after.updated_at == before.updated_at
    assert [stop.seq for stop in after.waypoints] == [0, 1, 2]


def test_supabase_store_removes_new_row_when_first_waypoint_insert_fails() -> None:
    client = FakeSupabase()
    store = SupabaseTravelRecordStore(client)
    client.failing_inserts = 1

    with pytest.raises(RuntimeError):
        store.save(_record())

    assert store.find_by_instructor_and_date(7, DAY) is None
    assert client.tables["instructor_daily_travel"] == []
