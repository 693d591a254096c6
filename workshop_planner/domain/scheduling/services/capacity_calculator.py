"""
Capacity Calculator

Available and planned AW of a technician for one day, derived from the
daily capacity, the day's absences and the day's assignments. All methods
are pure over their inputs.
"""

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from ....core.config import settings
from ...shared.exceptions import CapacityWarning
from ..entities.absence import Absence
from ..entities.schedule_assignment import ScheduleAssignment
from ..value_objects.enums import UtilizationLevel


class CapacityCalculator:
    """AW capacity accounting for a technician lane."""

    def __init__(
        self,
        high_threshold: float | None = None,
        overbooked_threshold: float | None = None,
    ) -> None:
        self._high_threshold = (
            settings.UTILIZATION_HIGH_PERCENT if high_threshold is None else high_threshold
        )
        self._overbooked_threshold = (
            settings.UTILIZATION_OVERBOOKED_PERCENT
            if overbooked_threshold is None
            else overbooked_threshold
        )

    def absence_deduction(self, capacity_per_day: int, absences: Iterable[Absence]) -> int:
        """
        AW removed from the day's capacity by absences.

        A single full-day absence removes the whole capacity; otherwise the
        partial impacts add up.
        """
        deduction = 0
        for absence in absences:
            if absence.is_full_day:
                return capacity_per_day
            deduction += absence.partial_aw
        return deduction

    def effective_capacity(self, capacity_per_day: int, absences: Iterable[Absence]) -> int:
        """Capacity left after absences, before any assignment."""
        return max(0, capacity_per_day - self.absence_deduction(capacity_per_day, absences))

    def planned_aw(self, assignments: Iterable[ScheduleAssignment]) -> int:
        """Sum of ``aw_planned`` over non-cancelled assignments."""
        return sum(a.aw_planned for a in assignments if a.is_live)

    def available_aw(
        self,
        capacity_per_day: int,
        absences: Iterable[Absence],
        assignments: Iterable[ScheduleAssignment],
    ) -> int:
        """
        AW a technician can still take on the day.

        Args:
            capacity_per_day: Technician's nominal daily capacity
            absences: The technician's absences on the day
            assignments: The technician's assignments on the day

        Returns:
            Remaining AW, never negative
        """
        deduction = self.absence_deduction(capacity_per_day, absences)
        return max(0, capacity_per_day - deduction - self.planned_aw(assignments))

    @staticmethod
    def utilization(planned_aw: int, capacity_per_day: int) -> float:
        """Planned AW as a percentage of capacity; 0 when there is no capacity."""
        if capacity_per_day == 0:
            return 0.0
        return planned_aw / capacity_per_day * 100

    def utilization_level(self, percentage: float) -> UtilizationLevel:
        if percentage >= self._overbooked_threshold:
            return UtilizationLevel.OVERBOOKED
        if percentage >= self._high_threshold:
            return UtilizationLevel.HIGH
        return UtilizationLevel.NORMAL

    def capacity_warning(
        self,
        technician_id: UUID,
        day: date,
        capacity_per_day: int,
        absences: Iterable[Absence],
        assignments: Iterable[ScheduleAssignment],
        additional_aw: int = 0,
    ) -> CapacityWarning | None:
        """Warning when planned (plus ``additional_aw``) exceeds the effective capacity."""
        effective = self.effective_capacity(capacity_per_day, absences)
        planned = self.planned_aw(assignments) + additional_aw
        if planned > effective:
            return CapacityWarning(
                technician_id=technician_id,
                day=day,
                planned_aw=planned,
                effective_capacity_aw=effective,
            )
        return None
