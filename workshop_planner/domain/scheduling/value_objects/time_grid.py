"""
Time Grid Value Object

Working-hours window and placement granularity of the day view. Converts
between clock time, lane positions and AW based durations. Pure time
arithmetic; times outside the window are passed through unmodified.
"""

import math
from datetime import date, datetime, time, timedelta

from pydantic import Field, model_validator
from typing_extensions import Self

from ....core.config import settings
from ...shared.base import ValueObject
from .aw import aw_to_minutes, minutes_to_aw


class TimeSlot(ValueObject):
    """One placement slot of a lane, e.g. ``09:15``."""

    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)
    starts_at: datetime

    @property
    def label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


class DropPosition(ValueObject):
    """Where a dragged appointment was released on a lane.

    The adapter layer reports a clock position on the selected day; positions
    inside a slot are snapped by the grid, not here.
    """

    day: date
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59)

    @classmethod
    def at(cls, day: date, hour: int, minute: int = 0) -> "DropPosition":
        return cls(day=day, hour=hour, minute=minute)

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "DropPosition":
        return cls(day=slot.starts_at.date(), hour=slot.hour, minute=slot.minute)

    @classmethod
    def from_slot_index(cls, day: date, index: int, grid: "TimeGrid") -> "DropPosition":
        """Position of the ``index``-th slot counted from opening time."""
        if index < 0:
            raise ValueError(f"Slot index cannot be negative: {index}")
        minutes = grid.start_hour * 60 + index * grid.slot_minutes
        if minutes >= 24 * 60:
            raise ValueError(f"Slot index {index} is past the end of the day")
        return cls(day=day, hour=minutes // 60, minute=minutes % 60)

    @classmethod
    def from_lane_offset(
        cls, day: date, fraction: float, grid: "TimeGrid"
    ) -> "DropPosition":
        """Position for a pointer at ``fraction`` (0..1) of the lane width."""
        if not 0.0 <= fraction <= 1.0:
            raise ValueError(f"Lane offset must be within 0..1, got {fraction}")
        minutes = grid.start_hour * 60 + int(fraction * grid.total_working_minutes)
        minutes = min(minutes, 24 * 60 - 1)
        return cls(day=day, hour=minutes // 60, minute=minutes % 60)


class TimeGrid(ValueObject):
    """Working-hours window plus slot granularity for a single day lane."""

    start_hour: int = Field(default=7, ge=0, le=23)
    end_hour: int = Field(default=18, ge=1, le=24)
    slot_minutes: int = Field(default=15, gt=0, le=60)

    @model_validator(mode="after")
    def _check_window(self) -> Self:
        if self.end_hour <= self.start_hour:
            raise ValueError("End hour must be after start hour")
        if 60 % self.slot_minutes != 0:
            raise ValueError("Slot minutes must divide an hour evenly")
        return self

    @classmethod
    def from_settings(cls) -> "TimeGrid":
        return cls(
            start_hour=settings.WORKING_HOURS_START,
            end_hour=settings.WORKING_HOURS_END,
            slot_minutes=settings.SLOT_MINUTES,
        )

    @property
    def total_working_minutes(self) -> int:
        return (self.end_hour - self.start_hour) * 60

    @property
    def total_working_aw(self) -> int:
        return minutes_to_aw(self.total_working_minutes)

    def opening(self, day: date) -> datetime:
        return datetime.combine(day, time(self.start_hour))

    def closing(self, day: date) -> datetime:
        # end_hour may be 24, which time() does not accept
        return datetime.combine(day, time(0)) + timedelta(hours=self.end_hour)

    def working_window(self, day: date) -> tuple[datetime, datetime]:
        return self.opening(day), self.closing(day)

    def snap_to_grid(self, timestamp: datetime) -> datetime:
        """Round down to the nearest slot boundary counted from opening time."""
        window_start = timestamp.replace(
            hour=self.start_hour, minute=0, second=0, microsecond=0
        )
        offset_minutes = (timestamp - window_start).total_seconds() / 60
        snapped = math.floor(offset_minutes / self.slot_minutes) * self.slot_minutes
        return window_start + timedelta(minutes=snapped)

    def calculate_end_time(self, start: datetime, aw_estimate: int) -> datetime:
        """End of a block of ``aw_estimate`` AW starting at ``start``."""
        return start + timedelta(minutes=aw_to_minutes(aw_estimate))

    def position_to_time(self, position: DropPosition) -> datetime:
        return datetime.combine(position.day, time(position.hour, position.minute))

    def slot_start(self, position: DropPosition) -> datetime:
        """Snapped start time for a drop position."""
        return self.snap_to_grid(self.position_to_time(position))

    def is_within_working_hours(self, timestamp: datetime) -> bool:
        """Check if a point in time lies inside ``[opening, closing)``."""
        naive = timestamp.replace(tzinfo=None)
        opening, closing = self.working_window(naive.date())
        return opening <= naive < closing

    def overruns_closing(self, start: datetime, end: datetime) -> bool:
        """Check if a block starting at ``start`` ends after closing time."""
        return end.replace(tzinfo=None) > self.closing(start.date())

    def generate_time_slots(self, day: date) -> list[TimeSlot]:
        """All placement slots of the day's working window."""
        slots = []
        current = self.opening(day)
        closing = self.closing(day)
        while current < closing:
            slots.append(
                TimeSlot(hour=current.hour, minute=current.minute, starts_at=current)
            )
            current += timedelta(minutes=self.slot_minutes)
        return slots
