"""Instructor lookups backed by Supabase, with an in-memory variant."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Optional

from ..errors import NotFoundError
from ..models.domain import Instructor

INSTRUCTOR_TABLE = "instructors"


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def row_to_instructor(row: dict[str, Any]) -> Instructor:
    return Instructor(
        instructor_id=int(row["user_id"]),
        name=str(row.get("name") or ""),
        home_address=row.get("home_address"),
        home_lat=_optional_decimal(row.get("home_lat")),
        home_lng=_optional_decimal(row.get("home_lng")),
    )


class SupabaseInstructorLookup:
    def __init__(self, client: Any) -> None:
        self.client = client

    def get_by_id(self, instructor_id: int) -> Instructor:
        response = (
            self.client.table(INSTRUCTOR_TABLE)
            .select("user_id, name, home_address, home_lat, home_lng")
            .eq("user_id", instructor_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            raise NotFoundError(f"Instructor {instructor_id} not found.")
        return row_to_instructor(response.data[0])


class InMemoryInstructorLookup:
    def __init__(self, instructors: Iterable[Instructor] = ()) -> None:
        self.instructors = {instructor.instructor_id: instructor for instructor in instructors}

    def get_by_id(self, instructor_id: int) -> Instructor:
        try:
            return self.instructors[instructor_id]
        except KeyError:
            raise NotFoundError(f"Instructor {instructor_id} not found.") from None
