"""Institution lookups backed by Supabase, with an in-memory variant."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, Optional

from ..models.domain import Institution

INSTITUTION_TABLE = "institutions"


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def row_to_institution(row: dict[str, Any]) -> Institution:
    return Institution(
        institution_id=int(row["id"]),
        name=str(row.get("name") or ""),
        address=row.get("address"),
        street=row.get("street"),
        lat=_optional_decimal(row.get("institution_lat")),
        lng=_optional_decimal(row.get("institution_lng")),
    )


class SupabaseInstitutionLookup:
    def __init__(self, client: Any) -> None:
        self.client = client

    def get_by_id(self, institution_id: int) -> Institution | None:
        response = (
            self.client.table(INSTITUTION_TABLE)
            .select("id, name, address, street, institution_lat, institution_lng")
            .eq("id", institution_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            logging.warning(f"Institution {institution_id} not found in database")
            return None
        return row_to_institution(response.data[0])


class InMemoryInstitutionLookup:
    def __init__(self, institutions: Iterable[Institution] = ()) -> None:
        self.institutions = {institution.institution_id: institution for institution in institutions}

    def get_by_id(self, institution_id: int) -> Institution | None:
        return self.institutions.get(institution_id)
