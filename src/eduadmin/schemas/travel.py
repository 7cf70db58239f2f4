"""Travel allowance response schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import DailyTravelRecord, MonthlyTravelSummary, RouteStop


class WaypointModel(BaseModel):
    seq: int
    institution_id: Optional[int] = None
    institution_name: Optional[str] = None
    institution_address: Optional[str] = None
    lat: Decimal
    lng: Decimal
    training_id: Optional[int] = None
    is_home: bool

    @classmethod
    def from_stop(cls, stop: RouteStop) -> "WaypointModel":
        return cls(
            seq=stop.seq,
            institution_id=stop.institution_id,
            institution_name=stop.name,
            institution_address=stop.address,
            lat=stop.coordinate.latitude,
            lng=stop.coordinate.longitude,
            training_id=stop.training_id,
            is_home=stop.is_home,
        )


class DailyTravelResponse(BaseModel):
    id: Optional[int] = None
    instructor_id: int
    instructor_name: Optional[str] = None
    travel_date: date
    work_month: str = Field(..., description="YYYY-MM month the travel date belongs to.")
    total_distance_km: Decimal
    travel_fee_amount_krw: int
    map_snapshot_url: Optional[str] = None
    status: str
    waypoints: List[WaypointModel]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: DailyTravelRecord) -> "DailyTravelResponse":
        return cls(
            id=record.id,
            instructor_id=record.instructor_id,
            instructor_name=record.instructor_name,
            travel_date=record.travel_date,
            work_month=record.work_month,
            total_distance_km=record.total_distance_km,
            travel_fee_amount_krw=record.travel_fee_amount_krw,
            map_snapshot_url=record.map_snapshot_url,
            status=record.status.value,
            waypoints=[WaypointModel.from_stop(stop) for stop in sorted(record.waypoints, key=lambda s: s.seq)],
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class MonthlyTravelSummaryResponse(BaseModel):
    instructor_id: int
    month: str
    daily_records: List[DailyTravelResponse]
    total_travel_expense: int = Field(..., description="Sum of FINAL daily fees; DRAFT days contribute 0.")

    @classmethod
    def from_summary(cls, summary: MonthlyTravelSummary) -> "MonthlyTravelSummaryResponse":
        return cls(
            instructor_id=summary.instructor_id,
            month=summary.month,
            daily_records=[DailyTravelResponse.from_record(record) for record in summary.records],
            total_travel_expense=summary.total_amount_krw,
        )
