"""Repository implementations."""

from .in_memory import (
    InMemoryAbsenceRepository,
    InMemoryAppointmentRepository,
    InMemoryAssignmentRepository,
    InMemoryPlannerStore,
    InMemoryPlannerUnitOfWork,
    InMemoryTechnicianRepository,
)

__all__ = [
    "InMemoryAbsenceRepository",
    "InMemoryAppointmentRepository",
    "InMemoryAssignmentRepository",
    "InMemoryPlannerStore",
    "InMemoryPlannerUnitOfWork",
    "InMemoryTechnicianRepository",
]
