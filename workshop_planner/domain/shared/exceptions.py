"""
Domain Exceptions

Custom exceptions for planner errors with discriminated error types.
ValidationError and ConflictError reject a requested mutation before anything
is written; CapacityWarning is informational and travels on results instead
of being raised; DataLoadError wraps a failed day-snapshot fetch.
"""

from datetime import date, datetime
from enum import Enum
from uuid import UUID

DetailValue = str | int | float | bool | None


class ErrorType(str, Enum):
    """Error type enumeration for discriminated unions."""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_CONFLICT = "resource_conflict"
    CAPACITY = "capacity"
    NOT_FOUND = "not_found"
    REPOSITORY = "repository"


class DomainError(Exception):
    """Base class for all domain errors with type discrimination."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, DetailValue] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, str | dict[str, DetailValue]]:
        """Convert error to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when a reference is missing or a transition is not allowed."""

    def __init__(
        self,
        field_name: str,
        value: DetailValue | UUID | datetime | date,
        message: str,
        error_code: str | None = None,
        details: dict[str, DetailValue] | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.error_code = error_code or "VALIDATION_ERROR"

        full_message = f"Validation failed for field '{field_name}': {message}"
        details = details or {}
        details.update(
            {
                "field": field_name,
                "value": str(value) if value is not None else None,
                "error_code": self.error_code,
            }
        )

        super().__init__(full_message, ErrorType.VALIDATION, details)

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for API responses."""
        return {
            "type": self.error_type.value,
            "field": self.field_name,
            "value": str(self.value) if self.value is not None else None,
            "message": self.message,
            "error_code": self.error_code,
        }


class InvalidStatusTransitionError(ValidationError):
    """Raised when an assignment status change breaks the state machine."""

    def __init__(self, assignment_id: UUID, current: str, target: str) -> None:
        self.assignment_id = assignment_id
        self.current = current
        self.target = target
        super().__init__(
            "status",
            target,
            f"assignment {assignment_id} cannot go from '{current}' to '{target}'",
            "INVALID_STATUS_TRANSITION",
            {"assignment_id": str(assignment_id), "current_status": current},
        )


class ResourceConflictError(DomainError):
    """Raised when resource conflicts occur (double booking, etc.)."""

    def __init__(
        self, message: str, details: dict[str, DetailValue] | None = None
    ) -> None:
        super().__init__(message, ErrorType.RESOURCE_CONFLICT, details)


class ConflictError(ResourceConflictError):
    """Raised when a candidate interval overlaps a live assignment of the technician."""

    def __init__(
        self,
        technician_id: UUID,
        start_time: datetime,
        end_time: datetime,
        conflicting_ids: list[UUID],
    ) -> None:
        self.technician_id = technician_id
        self.start_time = start_time
        self.end_time = end_time
        self.conflicting_ids = conflicting_ids
        super().__init__(
            f"Time slot {start_time:%H:%M}-{end_time:%H:%M} conflicts with "
            f"{len(conflicting_ids)} existing assignment(s) of technician {technician_id}",
            {
                "technician_id": str(technician_id),
                "start_time": start_time.isoformat(),
                "end_time": end_time.isoformat(),
                "conflicting_assignments": ",".join(str(i) for i in conflicting_ids),
            },
        )


class CapacityWarning(DomainError):
    """Planned AW exceeds a technician's effective capacity for the day.

    Informational only. Returned on mutation plans and published as an event;
    it is raised only wrapped in CapacityExceededError when the blocking
    capacity policy is configured.
    """

    def __init__(
        self,
        technician_id: UUID,
        day: date,
        planned_aw: int,
        effective_capacity_aw: int,
    ) -> None:
        self.technician_id = technician_id
        self.day = day
        self.planned_aw = planned_aw
        self.effective_capacity_aw = effective_capacity_aw
        super().__init__(
            f"Technician {technician_id} is planned with {planned_aw} AW on "
            f"{day.isoformat()} but only {effective_capacity_aw} AW are available",
            ErrorType.CAPACITY,
            {
                "technician_id": str(technician_id),
                "day": day.isoformat(),
                "planned_aw": planned_aw,
                "effective_capacity_aw": effective_capacity_aw,
                "overbooked_aw": self.overbooked_aw,
            },
        )

    @property
    def overbooked_aw(self) -> int:
        return self.planned_aw - self.effective_capacity_aw


class CapacityExceededError(DomainError):
    """Raised instead of a CapacityWarning when over-capacity placements are blocked."""

    def __init__(self, warning: CapacityWarning) -> None:
        self.warning = warning
        super().__init__(warning.message, ErrorType.CAPACITY, dict(warning.details))


class DataLoadError(DomainError):
    """Raised when the day snapshot could not be loaded from a collaborator."""

    def __init__(self, day: date, source: str, reason: str) -> None:
        self.day = day
        self.source = source
        super().__init__(
            f"Failed to load {source} for {day.isoformat()}: {reason}",
            ErrorType.REPOSITORY,
            {"day": day.isoformat(), "source": source},
        )


class EntityNotFoundError(DomainError):
    """Raised by repositories when an id does not resolve."""

    def __init__(self, entity_type: str, entity_id: UUID) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} not found: {entity_id}",
            ErrorType.NOT_FOUND,
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )
