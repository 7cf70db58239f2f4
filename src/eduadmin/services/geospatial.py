"""Geospatial helper functions."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from shapely.geometry import MultiPoint

EARTH_RADIUS_KM = 6371.0
COORDINATE_QUANTUM = Decimal("0.0000001")


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def bounding_box(points: Sequence[tuple[Decimal, Decimal]]) -> tuple[Decimal, Decimal, Decimal, Decimal]:
    """Return (min_lat, min_lng, max_lat, max_lng) for (lat, lng) pairs."""

    if not points:
        raise ValueError("At least one point is required to compute bounds.")
    min_lng, min_lat, max_lng, max_lat = MultiPoint([(float(lng), float(lat)) for lat, lng in points]).bounds
    return (
        _quantize(min_lat),
        _quantize(min_lng),
        _quantize(max_lat),
        _quantize(max_lng),
    )


def _quantize(value: float) -> Decimal:
    return Decimal(str(value)).quantize(COORDINATE_QUANTUM, rounding=ROUND_HALF_UP)
