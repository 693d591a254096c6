"""Value objects for the scheduling domain."""

from .aw import (
    AW_MINUTES,
    aw_to_hours,
    aw_to_minutes,
    format_aw,
    format_duration_from_aw,
    hours_to_aw,
    minutes_to_aw,
)
from .enums import (
    AbsenceType,
    AppointmentFlag,
    AppointmentStatus,
    AssignmentStatus,
    CapacityPolicy,
    FindingSeverity,
    OverflowPolicy,
    PriorityLevel,
    UtilizationLevel,
)
from .mutations import AppointmentPatch, AssignmentDraft, AssignmentPatch, MutationPlan
from .time_grid import DropPosition, TimeGrid, TimeSlot

__all__ = [
    # AW conversions
    "AW_MINUTES",
    "aw_to_hours",
    "aw_to_minutes",
    "format_aw",
    "format_duration_from_aw",
    "hours_to_aw",
    "minutes_to_aw",
    # Enums
    "AbsenceType",
    "AppointmentFlag",
    "AppointmentStatus",
    "AssignmentStatus",
    "CapacityPolicy",
    "FindingSeverity",
    "OverflowPolicy",
    "PriorityLevel",
    "UtilizationLevel",
    # Mutation intents
    "AppointmentPatch",
    "AssignmentDraft",
    "AssignmentPatch",
    "MutationPlan",
    # Time grid
    "DropPosition",
    "TimeGrid",
    "TimeSlot",
]
