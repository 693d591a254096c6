"""
Appointment Repository Interface

Defines the contract for appointment access used by the day planner.
"""

from abc import ABC, abstractmethod
from datetime import date
from uuid import UUID

from ..entities.appointment import Appointment
from ..value_objects.mutations import AppointmentPatch


class AppointmentRepository(ABC):
    """
    Abstract repository interface for Appointment entities.

    The planner only reads a day's appointments and patches their
    scheduling fields; creating and editing appointments is done elsewhere.
    """

    @abstractmethod
    async def get_appointments_for_date(self, day: date) -> list[Appointment]:
        """
        Retrieve the appointments in scope of a calendar day.

        Args:
            day: Calendar day of the day view

        Returns:
            Appointments planned for the day plus waiting appointments

        Raises:
            Exception: Any collaborator error, surfaced unchanged
        """
        pass

    @abstractmethod
    async def update_appointment(
        self, appointment_id: UUID, patch: AppointmentPatch
    ) -> Appointment:
        """
        Apply a partial update to an appointment.

        Args:
            appointment_id: Appointment to update
            patch: Fields to change

        Returns:
            Updated appointment

        Raises:
            EntityNotFoundError: If the appointment does not exist
        """
        pass
