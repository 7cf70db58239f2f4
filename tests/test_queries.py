from datetime import date
from decimal import Decimal

import pytest

from src.eduadmin.data.instructors_repository import InMemoryInstructorLookup
from src.eduadmin.errors import InvalidInputError
from src.eduadmin.models.domain import DailyTravelRecord, Instructor, TravelStatus
from src.eduadmin.persistence.travel_records import InMemoryTravelRecordStore
from src.eduadmin.services.travel.queries import TravelQueryService


def _record(instructor_id: int, day: date, fee: int, status: TravelStatus) -> DailyTravelRecord:
    return DailyTravelRecord(
        instructor_id=instructor_id,
        travel_date=day,
        total_distance_km=Decimal("12.50"),
        travel_fee_amount_krw=fee,
        status=status,
        map_snapshot_url="/files/map.png" if status is TravelStatus.FINAL else None,
    )


@pytest.fixture
def store() -> InMemoryTravelRecordStore:
    store = InMemoryTravelRecordStore()
    store.save(_record(7, date(2025, 3, 3), 5000, TravelStatus.FINAL))
    store.save(_record(7, date(2025, 3, 4), 3000, TravelStatus.DRAFT))
    store.save(_record(7, date(2025, 4, 1), 9000, TravelStatus.FINAL))
    store.save(_record(8, date(2025, 3, 3), 7000, TravelStatus.FINAL))
    return store


@pytest.fixture
def service(store) -> TravelQueryService:
    instructors = InMemoryInstructorLookup([Instructor(instructor_id=7, name="Kim Instructor")])
    return TravelQueryService(store, instructors)


def test_monthly_total_counts_final_records_only(service):
    summary = service.get_monthly_summary(7, "2025-03")

    assert summary.total_amount_krw == 5000
    assert [record.travel_date for record in summary.records] == [date(2025, 3, 3), date(2025, 3, 4)]
    assert {record.status for record in summary.records} == {TravelStatus.FINAL, TravelStatus.DRAFT}


def test_monthly_summary_of_empty_month_is_zero(service):
    summary = service.get_monthly_summary(7, "2025-05")

    assert summary.records == []
    assert summary.total_amount_krw == 0


@pytest.mark.parametrize("month", ["2025-3", "2025-13", "March", "2025/03", ""])
def test_monthly_summary_rejects_malformed_month(service, month):
    with pytest.raises(InvalidInputError) as excinfo:
        service.get_monthly_summary(7, month)

    assert excinfo.value.code == "INVALID_MONTH"


def test_daily_records_range_is_inclusive(service):
    records = service.get_daily_records(7, date(2025, 3, 4), date(2025, 4, 1))

    assert [record.travel_date for record in records] == [date(2025, 3, 4), date(2025, 4, 1)]
    assert all(record.instructor_name == "Kim Instructor" for record in records)


def test_daily_records_rejects_inverted_range(service):
    with pytest.raises(InvalidInputError):
        service.get_daily_records(7, date(2025, 4, 1), date(2025, 3, 1))


def test_unknown_instructor_name_is_left_empty(service):
    records = service.get_daily_records(8, date(2025, 3, 1), date(2025, 3, 31))

    assert len(records) == 1
    assert records[0].instructor_name is None


def test_records_by_status(store):
    service = TravelQueryService(store)

    drafts = service.get_records_by_status(TravelStatus.DRAFT)
    finals = service.get_records_by_status(TravelStatus.FINAL)

    assert [(record.instructor_id, record.travel_date) for record in drafts] == [(7, date(2025, 3, 4))]
    assert len(finals) == 3
