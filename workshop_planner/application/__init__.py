"""Application layer: day view state, planner service and gesture adapter."""

from .day_view import DaySnapshotLoader, DayViewSession
from .drag_drop import DragDropAdapter, DropOutcome
from .planner_service import DayPlannerService

__all__ = [
    "DayPlannerService",
    "DaySnapshotLoader",
    "DayViewSession",
    "DragDropAdapter",
    "DropOutcome",
]
