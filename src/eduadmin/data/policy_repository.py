"""Travel allowance policy table stored in Supabase."""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from ..models.domain import TravelPolicy
from ..services.travel.policy import select_policy

POLICY_TABLE = "travel_allowance_policy"


def _optional_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def row_to_policy(row: dict[str, Any]) -> TravelPolicy:
    max_km = row.get("max_km")
    return TravelPolicy(
        policy_id=row.get("id"),
        min_km=Decimal(str(row["min_km"])),
        max_km=Decimal(str(max_km)) if max_km is not None else None,
        amount_krw=int(row["amount_krw"]),
        is_active=bool(row.get("is_active", True)),
        valid_from=_optional_date(row.get("valid_from")),
        valid_to=_optional_date(row.get("valid_to")),
    )


class SupabasePolicyStore:
    def __init__(self, client: Any) -> None:
        self.client = client

    def find_matching(self, distance_km: Decimal, on_date: date) -> Optional[TravelPolicy]:
        # Band and validity bounds are nullable, so narrow in SQL and finish in Python
        response = (
            self.client.table(POLICY_TABLE)
            .select("*")
            .eq("is_active", True)
            .lte("min_km", str(distance_km))
            .execute()
        )
        policies: list[TravelPolicy] = []
        for row in response.data or []:
            try:
                policies.append(row_to_policy(row))
            except (KeyError, ValueError, TypeError, ArithmeticError) as e:
                logging.warning(f"Skipping invalid travel policy row {row.get('id')}: {e}")
                continue
        return select_policy(policies, distance_km, on_date)
