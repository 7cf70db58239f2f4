"""Travel allowance calculation services."""

from .distance import distance_km, route_distance_km
from .policy import InMemoryPolicyStore, PolicyMatcher, select_policy
from .queries import TravelQueryService
from .recalculator import DailyTravelRecalculator
from .route_builder import RouteBuilder

__all__ = [
    "DailyTravelRecalculator",
    "InMemoryPolicyStore",
    "PolicyMatcher",
    "RouteBuilder",
    "TravelQueryService",
    "distance_km",
    "route_distance_km",
    "select_policy",
]
