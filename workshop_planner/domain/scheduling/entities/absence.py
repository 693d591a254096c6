"""
Absence Entity

A technician's absence on one calendar day. Without an AW impact or a time
range the absence covers the whole day and removes all capacity; otherwise
it removes the stated AW, or the AW equivalent of the time range.
"""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import Field, model_validator
from typing_extensions import Self

from ...shared.base import Entity
from ..value_objects.aw import minutes_to_aw
from ..value_objects.enums import AbsenceType


class Absence(Entity):
    technician_id: UUID
    day: date
    type: AbsenceType = AbsenceType.OTHER
    aw_impact: int | None = Field(default=None, ge=0)
    from_time: time | None = None
    to_time: time | None = None
    reason: str | None = None

    @model_validator(mode="after")
    def _check_time_range(self) -> Self:
        if (self.from_time is None) != (self.to_time is None):
            raise ValueError("Partial absences need both from_time and to_time")
        if self.from_time is not None and self.to_time <= self.from_time:
            raise ValueError("Absence to_time must be after from_time")
        return self

    @property
    def is_full_day(self) -> bool:
        return self.aw_impact is None and self.from_time is None

    @property
    def duration_minutes(self) -> int | None:
        if self.from_time is None or self.to_time is None:
            return None
        start = datetime.combine(self.day, self.from_time)
        end = datetime.combine(self.day, self.to_time)
        return int((end - start).total_seconds() // 60)

    @property
    def partial_aw(self) -> int:
        """AW removed by a partial absence; 0 for full-day absences."""
        if self.aw_impact is not None:
            return self.aw_impact
        minutes = self.duration_minutes
        return minutes_to_aw(minutes) if minutes is not None else 0

    def blocks(self, start: datetime, end: datetime) -> bool:
        """Check if the absence covers any part of ``[start, end)``."""
        if start.date() != self.day and end.date() != self.day:
            return False
        if self.is_full_day:
            return True
        if self.from_time is None:
            # AW-only partial absences have no position on the lane
            return False
        absent_from = datetime.combine(self.day, self.from_time, start.tzinfo)
        absent_to = datetime.combine(self.day, self.to_time, start.tzinfo)
        return start < absent_to and end > absent_from
