"""
Schedule Assignment Entity

Places one appointment on one technician lane for a half-open interval
``[start_time, end_time)`` of a single calendar day.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import Field, model_validator
from typing_extensions import Self

from ...shared.base import Entity
from ..value_objects.enums import AssignmentStatus


class ScheduleAssignment(Entity):
    appointment_id: UUID
    technician_id: UUID
    start_time: datetime
    end_time: datetime
    # Snapshot of the appointment estimate at placement time
    aw_planned: int = Field(ge=0, frozen=True)
    status: AssignmentStatus = AssignmentStatus.SCHEDULED

    @model_validator(mode="after")
    def _check_interval(self) -> Self:
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        if self.end_time.date() != self.start_time.date():
            raise ValueError("Assignment must start and end on the same calendar day")
        return self

    @property
    def day(self) -> date:
        return self.start_time.date()

    @property
    def is_live(self) -> bool:
        return self.status.is_live

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open overlap test; touching boundaries do not overlap."""
        return start < self.end_time and end > self.start_time

    def __str__(self) -> str:
        return (
            f"ScheduleAssignment({self.technician_id}, "
            f"{self.start_time:%H:%M}-{self.end_time:%H:%M}, {self.status.value})"
        )
