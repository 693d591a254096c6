"""
Conflict Detector

Half-open interval overlap checks for one technician lane. An assignment
ending exactly when another starts is not a conflict. Cancelled assignments
never take part; the assignment being moved is excluded by id.
"""

from collections.abc import Iterable
from datetime import datetime
from itertools import combinations
from uuid import UUID

from ..entities.schedule_assignment import ScheduleAssignment


class ConflictDetector:
    """Linear overlap scan over a technician's assignments of the day."""

    @staticmethod
    def _candidates(
        existing: Iterable[ScheduleAssignment], exclude: UUID | None
    ) -> Iterable[ScheduleAssignment]:
        return (a for a in existing if a.is_live and a.id != exclude)

    def find_conflicts(
        self,
        candidate_start: datetime,
        candidate_end: datetime,
        existing: Iterable[ScheduleAssignment],
        exclude: UUID | None = None,
    ) -> list[ScheduleAssignment]:
        """All live assignments overlapping ``[candidate_start, candidate_end)``."""
        return [
            assignment
            for assignment in self._candidates(existing, exclude)
            if candidate_start < assignment.end_time
            and candidate_end > assignment.start_time
        ]

    def has_conflict(
        self,
        candidate_start: datetime,
        candidate_end: datetime,
        existing: Iterable[ScheduleAssignment],
        exclude: UUID | None = None,
    ) -> bool:
        return any(
            candidate_start < assignment.end_time
            and candidate_end > assignment.start_time
            for assignment in self._candidates(existing, exclude)
        )

    def overlapping_pairs(
        self, assignments: Iterable[ScheduleAssignment]
    ) -> list[tuple[ScheduleAssignment, ScheduleAssignment]]:
        """Pairs of live assignments of the same technician and day that overlap.

        Used to audit loaded data; a consistent store returns an empty list.
        """
        live = [a for a in assignments if a.is_live]
        return [
            (first, second)
            for first, second in combinations(live, 2)
            if first.technician_id == second.technician_id
            and first.day == second.day
            and first.overlaps(second.start_time, second.end_time)
        ]
