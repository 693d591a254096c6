"""
Domain Events Module

Exports all planner domain events.
"""

from .domain_events import (
    # Assignment events
    AssignmentMoved,
    AssignmentPlaced,
    AssignmentPostponed,
    AssignmentStatusChanged,
    # Capacity and rejection events
    CapacityWarningRaised,
    # Day view events
    DayDataChanged,
    DaySnapshotLoaded,
    DaySnapshotLoadFailed,
    # Base class
    DomainEvent,
    PlacementRejected,
)

__all__ = [
    "DomainEvent",
    "AssignmentPlaced",
    "AssignmentMoved",
    "AssignmentPostponed",
    "AssignmentStatusChanged",
    "CapacityWarningRaised",
    "PlacementRejected",
    "DayDataChanged",
    "DaySnapshotLoaded",
    "DaySnapshotLoadFailed",
]
