"""Repository contracts consumed by the day planner."""

from .absence_repository import AbsenceRepository
from .appointment_repository import AppointmentRepository
from .assignment_repository import AssignmentRepository
from .technician_repository import TechnicianRepository
from .unit_of_work import PlannerUnitOfWork

__all__ = [
    "AbsenceRepository",
    "AppointmentRepository",
    "AssignmentRepository",
    "PlannerUnitOfWork",
    "TechnicianRepository",
]
