"""
Schedule Assignment Repository Interface

Defines the contract for schedule assignment data access.
"""

from abc import ABC, abstractmethod
from datetime import date
from uuid import UUID

from ..entities.schedule_assignment import ScheduleAssignment
from ..value_objects.mutations import AssignmentDraft, AssignmentPatch


class AssignmentRepository(ABC):
    """Abstract repository interface for ScheduleAssignment entities."""

    @abstractmethod
    async def get_assignments_for_date(self, day: date) -> list[ScheduleAssignment]:
        """
        Retrieve all assignments starting on a calendar day, cancelled ones included.

        Args:
            day: Calendar day

        Returns:
            Assignments of every technician for the day
        """
        pass

    @abstractmethod
    async def create_assignment(self, draft: AssignmentDraft) -> ScheduleAssignment:
        """
        Persist a new assignment.

        Args:
            draft: Create payload produced by the scheduler

        Returns:
            Created assignment carrying ``draft.assignment_id``

        Raises:
            ValueError: If the draft id is already taken
        """
        pass

    @abstractmethod
    async def update_assignment(
        self, assignment_id: UUID, patch: AssignmentPatch
    ) -> ScheduleAssignment:
        """
        Apply a partial update to an assignment.

        ``aw_planned`` is never part of a patch.

        Args:
            assignment_id: Assignment to update
            patch: Fields to change

        Returns:
            Updated assignment

        Raises:
            EntityNotFoundError: If the assignment does not exist
        """
        pass
