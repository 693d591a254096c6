"""
Planner Unit of Work Interface

Coordinates the appointment and assignment writes of one mutation plan so
that they are applied together or not at all.
"""

from abc import ABC, abstractmethod

from typing_extensions import Self

from .appointment_repository import AppointmentRepository
from .assignment_repository import AssignmentRepository


class PlannerUnitOfWork(ABC):
    """
    Abstract unit of work for planner mutations.

    Used as an async context manager: leaving the block normally commits,
    leaving it with an exception rolls back and re-raises.
    """

    appointments: AppointmentRepository
    assignments: AssignmentRepository

    async def __aenter__(self) -> Self:
        await self.begin()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            await self.rollback()
            return
        try:
            await self.commit()
        except Exception:
            await self.rollback()
            raise

    @abstractmethod
    async def begin(self) -> None:
        """Start a transaction."""
        pass

    @abstractmethod
    async def commit(self) -> None:
        """Commit all changes of the current transaction."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Discard all changes of the current transaction."""
        pass
