"""Absence Repository Interface."""

from abc import ABC, abstractmethod
from datetime import date

from ..entities.absence import Absence


class AbsenceRepository(ABC):
    """Abstract repository interface for technician absences."""

    @abstractmethod
    async def get_absences_for_date(self, day: date) -> list[Absence]:
        """
        Retrieve every technician absence on a calendar day.

        Args:
            day: Calendar day

        Returns:
            Full-day and partial absences of the day
        """
        pass
