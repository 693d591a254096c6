"""
Mutation intents emitted by the scheduler.

The scheduling engine never writes. It returns these payloads and the
application layer applies them through the repositories as one unit.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import Field, model_validator
from typing_extensions import Self

from ...shared.base import ValueObject
from ...shared.exceptions import CapacityWarning
from ..events.domain_events import DomainEvent
from .enums import AppointmentStatus, AssignmentStatus


class AssignmentDraft(ValueObject):
    """Create payload for a new schedule assignment."""

    assignment_id: UUID = Field(default_factory=uuid4)
    appointment_id: UUID
    technician_id: UUID
    start_time: datetime
    end_time: datetime
    aw_planned: int = Field(ge=0)
    status: AssignmentStatus = AssignmentStatus.SCHEDULED

    @model_validator(mode="after")
    def _end_after_start(self) -> Self:
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class _Patch(ValueObject):
    identity_field: ClassVar[str] = ""

    def changes(self) -> dict[str, Any]:
        """Only the fields the patch explicitly sets, ``None`` included."""
        return self.model_dump(exclude_unset=True, exclude={self.identity_field})


class AssignmentPatch(_Patch):
    """Partial update of an existing assignment. ``aw_planned`` is not patchable."""

    identity_field: ClassVar[str] = "assignment_id"

    assignment_id: UUID
    technician_id: UUID | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: AssignmentStatus | None = None


class AppointmentPatch(_Patch):
    """Partial update of an appointment's scheduling fields."""

    identity_field: ClassVar[str] = "appointment_id"

    appointment_id: UUID
    status: AppointmentStatus | None = None
    technician_id: UUID | None = None
    scheduled_start: datetime | None = None


@dataclass(frozen=True)
class MutationPlan:
    """Everything one scheduler operation wants written, plus what it observed.

    ``create_assignment`` and ``assignment_patch`` are mutually exclusive; the
    appointment patch, when present, belongs to the same logical unit.
    """

    operation: str
    create_assignment: AssignmentDraft | None = None
    assignment_patch: AssignmentPatch | None = None
    appointment_patch: AppointmentPatch | None = None
    warnings: tuple[CapacityWarning, ...] = ()
    events: tuple[DomainEvent, ...] = field(default=())

    def __post_init__(self) -> None:
        if self.create_assignment is not None and self.assignment_patch is not None:
            raise ValueError("A plan either creates or patches an assignment, not both")

    @property
    def is_empty(self) -> bool:
        return (
            self.create_assignment is None
            and self.assignment_patch is None
            and self.appointment_patch is None
        )

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
