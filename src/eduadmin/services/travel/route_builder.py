"""Daily route assembly: home, institutions in schedule order, home."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from ...errors import NotFoundError, PreconditionFailedError
from ...models.domain import HOME_STOP_NAME, Coordinate, Instructor, RouteStop, ScheduleEntry
from .base import InstitutionLookup

logger = logging.getLogger(__name__)


def require_home(instructor: Instructor) -> Coordinate:
    """Return the instructor's home coordinate or raise ``PreconditionFailedError``."""

    if not instructor.has_home_address:
        raise PreconditionFailedError(
            f"Instructor {instructor.instructor_id} has no home address registered.",
            code="INSTRUCTOR_ADDRESS_MISSING",
        )
    home = instructor.home_coordinate
    if home is None:
        raise PreconditionFailedError(
            f"Instructor {instructor.instructor_id} has no home address coordinates registered.",
            code="INSTRUCTOR_COORDINATES_MISSING",
        )
    return home


def _home_stop(instructor: Instructor, home: Coordinate) -> RouteStop:
    return RouteStop(coordinate=home, name=HOME_STOP_NAME, address=instructor.home_address, is_home=True)


class RouteBuilder:
    def __init__(self, institutions: InstitutionLookup) -> None:
        self.institutions = institutions

    def build(self, instructor: Instructor, entries: Sequence[ScheduleEntry]) -> list[RouteStop]:
        home = require_home(instructor)
        stops = [_home_stop(instructor, home)]

        # sorted() is stable: entries sharing a start time keep their input order
        for entry in sorted(entries, key=lambda item: item.start_time):
            institution = self.institutions.get_by_id(entry.institution_id)
            if institution is None:
                raise NotFoundError(
                    f"Institution {entry.institution_id} not found.",
                    code="INSTITUTION_NOT_FOUND",
                )
            coordinate = institution.coordinate
            if coordinate is None:
                logger.warning("Institution %s has no coordinates, skipping", institution.institution_id)
                continue
            stops.append(
                RouteStop(
                    coordinate=coordinate,
                    name=institution.name,
                    address=institution.display_address,
                    institution_id=institution.institution_id,
                    training_id=entry.training_id,
                )
            )

        if len(stops) > 1:
            stops.append(_home_stop(instructor, home))
        return [replace(stop, seq=index) for index, stop in enumerate(stops)]
