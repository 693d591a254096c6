"""Entities of the scheduling domain."""

from .absence import Absence
from .appointment import Appointment
from .day_snapshot import DaySnapshot
from .schedule_assignment import ScheduleAssignment
from .technician import Technician

__all__ = [
    "Absence",
    "Appointment",
    "DaySnapshot",
    "ScheduleAssignment",
    "Technician",
]
