"""Domain models for instructors, institutions and daily travel records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional

from ..errors import InvalidInputError

COORDINATE_QUANTUM = Decimal("0.0000001")
HOME_STOP_NAME = "HOME"


def to_coordinate_decimal(value: object) -> Decimal:
    """Convert a raw latitude/longitude value to a 7-decimal Decimal."""

    if value is None:
        raise InvalidInputError("Coordinate component must not be empty.")
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (ArithmeticError, ValueError) as exc:
        raise InvalidInputError(f"Unable to parse coordinate value '{value}'.") from exc
    if not number.is_finite():
        raise InvalidInputError(f"Coordinate value '{value}' is not finite.")
    return number.quantize(COORDINATE_QUANTUM, rounding=ROUND_HALF_UP)


def work_month_of(travel_date: date) -> str:
    """Return the YYYY-MM month key used for monthly aggregation."""

    return travel_date.strftime("%Y-%m")


class TravelStatus(str, Enum):
    DRAFT = "DRAFT"  # no map snapshot for the current distance/fee
    FINAL = "FINAL"  # map snapshot obtained


@dataclass(frozen=True, slots=True)
class Coordinate:
    """Immutable latitude/longitude pair in decimal degrees."""

    latitude: Decimal
    longitude: Decimal

    @classmethod
    def of(cls, latitude: object, longitude: object) -> "Coordinate":
        return cls(to_coordinate_decimal(latitude), to_coordinate_decimal(longitude))

    def as_tuple(self) -> tuple[float, float]:
        return float(self.latitude), float(self.longitude)


@dataclass(slots=True)
class Instructor:
    """Instructor identity with the home location used as route origin."""

    instructor_id: int
    name: str
    home_address: Optional[str] = None
    home_lat: Optional[Decimal] = None
    home_lng: Optional[Decimal] = None

    @property
    def has_home_address(self) -> bool:
        return bool(self.home_address and self.home_address.strip())

    @property
    def home_coordinate(self) -> Optional[Coordinate]:
        if self.home_lat is None or self.home_lng is None:
            return None
        return Coordinate.of(self.home_lat, self.home_lng)


@dataclass(slots=True)
class Institution:
    """Institution visited by an instructor; coordinates may be missing."""

    institution_id: int
    name: str
    address: Optional[str] = None
    street: Optional[str] = None
    lat: Optional[Decimal] = None
    lng: Optional[Decimal] = None

    @property
    def coordinate(self) -> Optional[Coordinate]:
        if self.lat is None or self.lng is None:
            return None
        return Coordinate.of(self.lat, self.lng)

    @property
    def display_address(self) -> Optional[str]:
        return self.address if self.address is not None else self.street


@dataclass(frozen=True, slots=True)
class ScheduleEntry:
    """A scheduled teaching block (period) an instructor attends on a date."""

    start_time: time
    institution_id: int
    training_id: Optional[int] = None
    period_id: Optional[int] = None


@dataclass(slots=True)
class TravelPolicy:
    """Flat fee for distances in [min_km, max_km); ``max_km`` None means unbounded."""

    min_km: Decimal
    max_km: Optional[Decimal]
    amount_krw: int
    is_active: bool = True
    valid_from: Optional[date] = None
    valid_to: Optional[date] = None
    policy_id: Optional[int] = None

    def covers_distance(self, distance_km: Decimal) -> bool:
        if distance_km < self.min_km:
            return False
        if self.max_km is None:
            return True
        return distance_km < self.max_km

    def is_valid_on(self, on_date: date) -> bool:
        if self.valid_from is not None and self.valid_from > on_date:
            return False
        if self.valid_to is not None and self.valid_to < on_date:
            return False
        return True

    def matches(self, distance_km: Decimal, on_date: date) -> bool:
        return self.is_active and self.covers_distance(distance_km) and self.is_valid_on(on_date)


@dataclass(frozen=True, slots=True)
class RouteStop:
    """One stop of a daily route; ``seq`` is 0 for the home departure."""

    coordinate: Coordinate
    name: str
    address: Optional[str] = None
    institution_id: Optional[int] = None
    training_id: Optional[int] = None
    is_home: bool = False
    seq: int = 0


@dataclass(slots=True)
class DailyTravelRecord:
    """Persisted travel result for one instructor on one date."""

    instructor_id: int
    travel_date: date
    total_distance_km: Decimal
    travel_fee_amount_krw: int
    status: TravelStatus
    map_snapshot_url: Optional[str] = None
    waypoints: list[RouteStop] = field(default_factory=list)
    instructor_name: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def work_month(self) -> str:
        return work_month_of(self.travel_date)

    @property
    def key(self) -> tuple[int, date]:
        return self.instructor_id, self.travel_date


@dataclass(slots=True)
class MonthlyTravelSummary:
    instructor_id: int
    month: str
    records: list[DailyTravelRecord]
    total_amount_krw: int
