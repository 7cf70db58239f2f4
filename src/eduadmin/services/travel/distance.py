"""Straight-line distance calculation for daily travel routes.

Distances are great-circle (haversine) kilometres reported with two decimals,
rounded half-up. Route totals are summed at full precision and rounded once,
so a route distance can differ by a cent from the sum of individually
rounded legs.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ...errors import InvalidInputError
from ...models.domain import Coordinate
from ..geospatial import haversine_km

KM_QUANTUM = Decimal("0.01")


def round_km(value: float | Decimal) -> Decimal:
    number = value if isinstance(value, Decimal) else Decimal(repr(value))
    return number.quantize(KM_QUANTUM, rounding=ROUND_HALF_UP)


def _require(coordinate: Optional[Coordinate]) -> tuple[float, float]:
    if coordinate is None or coordinate.latitude is None or coordinate.longitude is None:
        raise InvalidInputError("All coordinates must be provided.")
    return coordinate.as_tuple()


def _leg_km(a: Optional[Coordinate], b: Optional[Coordinate]) -> float:
    lat1, lon1 = _require(a)
    lat2, lon2 = _require(b)
    return haversine_km(lat1, lon1, lat2, lon2)


def distance_km(a: Optional[Coordinate], b: Optional[Coordinate]) -> Decimal:
    """Haversine distance between two coordinates, rounded to 2 decimals."""

    return round_km(_leg_km(a, b))


def route_distance_km(stops: Sequence[Optional[Coordinate]]) -> Decimal:
    """Sum of consecutive leg distances, rounded once after summation."""

    if len(stops) < 2:
        return Decimal("0.00")
    total = 0.0
    for origin, destination in zip(stops, stops[1:]):
        total += _leg_km(origin, destination)
    return round_km(total)
