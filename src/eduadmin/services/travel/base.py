"""Contracts for the collaborators consumed by travel allowance services."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ...models.domain import Coordinate, Institution, Instructor, RouteStop, ScheduleEntry, TravelPolicy


class InstructorLookup(Protocol):
    def get_by_id(self, instructor_id: int) -> Instructor:
        """Return the instructor or raise ``NotFoundError``."""
        ...


class InstitutionLookup(Protocol):
    def get_by_id(self, institution_id: int) -> Optional[Institution]:
        ...


class ScheduleLookup(Protocol):
    def get_entries(self, instructor_id: int, on_date: date) -> Sequence[ScheduleEntry]:
        ...


class PolicyStore(Protocol):
    def find_matching(self, distance_km: Decimal, on_date: date) -> Optional[TravelPolicy]:
        ...


class SnapshotGenerator(Protocol):
    def generate(
        self,
        home: Coordinate,
        address_label: str,
        stops: Sequence[RouteStop],
        return_home: bool,
    ) -> Optional[str]:
        """Return an image URL, or None when no snapshot could be produced."""
        ...
