"""Distance-band travel allowance policy matching."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ...errors import PolicyNotFoundError
from ...models.domain import TravelPolicy
from .base import PolicyStore


def select_policy(policies: Iterable[TravelPolicy], distance_km: Decimal, on_date: date) -> Optional[TravelPolicy]:
    """Pick the matching active policy with the greatest ``min_km``.

    Ties on ``min_km`` keep the first policy in iteration order.
    """

    best: Optional[TravelPolicy] = None
    for policy in policies:
        if not policy.matches(distance_km, on_date):
            continue
        if best is None or policy.min_km > best.min_km:
            best = policy
    return best


class InMemoryPolicyStore:
    """Policy table held in memory."""

    def __init__(self, policies: Iterable[TravelPolicy] = ()) -> None:
        self.policies = list(policies)

    def find_matching(self, distance_km: Decimal, on_date: date) -> Optional[TravelPolicy]:
        return select_policy(self.policies, distance_km, on_date)


class PolicyMatcher:
    def __init__(self, store: PolicyStore) -> None:
        self.store = store

    def match(self, distance_km: Decimal, on_date: date) -> TravelPolicy:
        policy = self.store.find_matching(distance_km, on_date)
        if policy is None:
            raise PolicyNotFoundError(
                f"No travel allowance policy covers {distance_km}km on {on_date.isoformat()}."
            )
        return policy
