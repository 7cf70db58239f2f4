"""Error taxonomy for travel allowance operations."""

from __future__ import annotations


class TravelAllowanceError(Exception):
    """Base error carrying a machine-readable code."""

    default_code = "TRAVEL_ALLOWANCE_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class NotFoundError(TravelAllowanceError):
    default_code = "INSTRUCTOR_NOT_FOUND"


class PreconditionFailedError(TravelAllowanceError):
    """Upstream data (home address, coordinates) must be fixed before retrying."""

    default_code = "INSTRUCTOR_ADDRESS_MISSING"


class PolicyNotFoundError(TravelAllowanceError):
    default_code = "TRAVEL_POLICY_NOT_FOUND"


class InvalidInputError(TravelAllowanceError, ValueError):
    default_code = "INVALID_COORDINATE"


class SnapshotGenerationError(TravelAllowanceError):
    """Raised inside the snapshot client; never escapes a recalculation."""

    default_code = "MAP_SNAPSHOT_GENERATION_FAILED"
