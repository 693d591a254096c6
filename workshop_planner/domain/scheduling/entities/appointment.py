"""
Appointment Entity

A service job waiting for or holding workshop time. Appointments are created
and edited by the surrounding CRUD layer; the planner only reads them and
patches their scheduling fields.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import Field, field_validator

from ...shared.base import Entity
from ..value_objects.enums import AppointmentFlag, AppointmentStatus, PriorityLevel


class Appointment(Entity):
    title: str = Field(min_length=1, max_length=200)
    customer_id: UUID
    vehicle_id: UUID
    aw_estimate: int = Field(ge=0, description="Estimated work in AW")
    priority: PriorityLevel = PriorityLevel.NORMAL
    status: AppointmentStatus = AppointmentStatus.NEW
    required_skills: frozenset[str] = Field(default_factory=frozenset)
    flags: frozenset[str] = Field(default_factory=frozenset)
    sla_promised_at: datetime | None = None
    notes: str | None = None

    day: date | None = None
    technician_id: UUID | None = None
    scheduled_start: datetime | None = None

    @field_validator("required_skills", "flags", mode="before")
    @classmethod
    def _normalize_labels(cls, v):
        if v is None:
            return frozenset()
        return frozenset(str(item).strip() for item in v if str(item).strip())

    @property
    def is_unassigned(self) -> bool:
        return self.status.is_unassigned

    @property
    def vehicle_onsite(self) -> bool:
        return AppointmentFlag.VEHICLE_ONSITE.value in self.flags

    @property
    def parts_ordered(self) -> bool:
        return AppointmentFlag.PARTS_ORDERED.value in self.flags

    def has_flag(self, flag: AppointmentFlag | str) -> bool:
        value = flag.value if isinstance(flag, AppointmentFlag) else flag
        return value in self.flags

    def __str__(self) -> str:
        return f"Appointment({self.title}, {self.aw_estimate} AW, {self.status.value})"
