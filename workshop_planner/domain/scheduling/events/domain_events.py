"""
Domain Events

Typed messages emitted by the day planner. They replace untyped refresh
broadcasts: consumers subscribe to the concrete event classes they need on
the event bus.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=datetime.now)

    @property
    def event_type(self) -> str:
        return type(self).__name__


@dataclass(frozen=True, kw_only=True)
class AssignmentPlaced(DomainEvent):
    """Raised when an appointment is placed on a technician lane."""

    assignment_id: UUID
    appointment_id: UUID
    technician_id: UUID
    day: date
    start_time: datetime
    end_time: datetime
    aw_planned: int


@dataclass(frozen=True, kw_only=True)
class AssignmentMoved(DomainEvent):
    """Raised when a scheduled assignment changes lane or start time."""

    assignment_id: UUID
    appointment_id: UUID
    day: date
    old_technician_id: UUID
    new_technician_id: UUID
    old_start_time: datetime
    new_start_time: datetime
    new_end_time: datetime


@dataclass(frozen=True, kw_only=True)
class AssignmentPostponed(DomainEvent):
    """Raised when an assignment is cancelled and its appointment returns to the buffer."""

    assignment_id: UUID
    appointment_id: UUID
    technician_id: UUID
    day: date


@dataclass(frozen=True, kw_only=True)
class AssignmentStatusChanged(DomainEvent):
    """Raised when an assignment advances through its state machine."""

    assignment_id: UUID
    appointment_id: UUID
    technician_id: UUID
    day: date
    old_status: str
    new_status: str


@dataclass(frozen=True, kw_only=True)
class CapacityWarningRaised(DomainEvent):
    """Raised when a technician's planned AW exceeds the effective capacity."""

    technician_id: UUID
    day: date
    planned_aw: int
    effective_capacity_aw: int


@dataclass(frozen=True, kw_only=True)
class PlacementRejected(DomainEvent):
    """Raised when a placement or move is refused before anything was written."""

    appointment_id: UUID | None
    technician_id: UUID | None
    day: date
    error_type: str
    reason: str


@dataclass(frozen=True, kw_only=True)
class DayDataChanged(DomainEvent):
    """Raised after mutations for a day were committed; lanes must be recomputed."""

    day: date
    technician_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True, kw_only=True)
class DaySnapshotLoaded(DomainEvent):
    """Raised when a complete day snapshot became current."""

    day: date
    appointment_count: int
    assignment_count: int
    absence_count: int


@dataclass(frozen=True, kw_only=True)
class DaySnapshotLoadFailed(DomainEvent):
    """Raised when loading a day snapshot failed and a retry is possible."""

    day: date
    source: str
    reason: str
