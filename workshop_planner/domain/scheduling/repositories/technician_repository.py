"""Technician Repository Interface."""

from abc import ABC, abstractmethod

from ..entities.technician import Technician


class TechnicianRepository(ABC):
    """Abstract repository interface for the technician roster."""

    @abstractmethod
    async def get_active_technicians(self) -> list[Technician]:
        """
        Retrieve the active technicians with their daily capacity.

        Returns:
            Active technicians in display order
        """
        pass
