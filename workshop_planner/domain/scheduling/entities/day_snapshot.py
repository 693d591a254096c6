"""
Day Snapshot

The joined appointments, assignments and absences of one calendar date,
together with the technician roster. Every planner computation takes a
snapshot as input; a snapshot is never modified after it was built.
"""

from datetime import date
from uuid import UUID

from ...shared.base import ValueObject
from .absence import Absence
from .appointment import Appointment
from .schedule_assignment import ScheduleAssignment
from .technician import Technician


class DaySnapshot(ValueObject):
    day: date
    technicians: tuple[Technician, ...] = ()
    appointments: tuple[Appointment, ...] = ()
    assignments: tuple[ScheduleAssignment, ...] = ()
    absences: tuple[Absence, ...] = ()

    @property
    def active_technicians(self) -> list[Technician]:
        return [technician for technician in self.technicians if technician.active]

    def technician(self, technician_id: UUID) -> Technician | None:
        return next((t for t in self.technicians if t.id == technician_id), None)

    def appointment(self, appointment_id: UUID) -> Appointment | None:
        return next((a for a in self.appointments if a.id == appointment_id), None)

    def assignment(self, assignment_id: UUID) -> ScheduleAssignment | None:
        return next((a for a in self.assignments if a.id == assignment_id), None)

    def assignments_for(
        self, technician_id: UUID, include_cancelled: bool = False
    ) -> list[ScheduleAssignment]:
        """The technician's assignments on this snapshot's day."""
        return [
            assignment
            for assignment in self.assignments
            if assignment.technician_id == technician_id
            and assignment.day == self.day
            and (include_cancelled or assignment.is_live)
        ]

    def absences_for(self, technician_id: UUID) -> list[Absence]:
        return [
            absence
            for absence in self.absences
            if absence.technician_id == technician_id and absence.day == self.day
        ]

    def live_assignment_for(self, appointment_id: UUID) -> ScheduleAssignment | None:
        """The non-cancelled assignment holding ``appointment_id``, if any."""
        return next(
            (
                a
                for a in self.assignments
                if a.appointment_id == appointment_id and a.is_live
            ),
            None,
        )

    @property
    def unassigned_appointments(self) -> list[Appointment]:
        return [a for a in self.appointments if a.is_unassigned]
