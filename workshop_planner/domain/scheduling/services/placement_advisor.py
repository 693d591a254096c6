"""
Placement Advisor

Reviews a prospective placement before the user confirms it: absences,
lane conflicts, working hours, skills, SLA proximity, vehicle and parts
state, and capacity. The review is advisory; the AssignmentScheduler alone
decides whether a placement is accepted.
"""

from dataclasses import dataclass, field
from datetime import datetime

from ....core.config import settings
from ..entities.appointment import Appointment
from ..entities.day_snapshot import DaySnapshot
from ..entities.technician import Technician
from ..value_objects.enums import FindingSeverity
from ..value_objects.time_grid import DropPosition, TimeGrid
from .capacity_calculator import CapacityCalculator
from .conflict_detector import ConflictDetector


@dataclass(frozen=True)
class PlacementFinding:
    severity: FindingSeverity
    code: str
    message: str


@dataclass(frozen=True)
class PlacementReview:
    appointment: Appointment
    technician: Technician
    start_time: datetime
    end_time: datetime
    findings: list[PlacementFinding] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(f.severity == FindingSeverity.ERROR for f in self.findings)

    @property
    def has_warnings(self) -> bool:
        return any(f.severity == FindingSeverity.WARNING for f in self.findings)

    @property
    def codes(self) -> list[str]:
        return [f.code for f in self.findings]


class PlacementAdvisor:
    """Collects advisory findings for one appointment on one lane."""

    def __init__(
        self,
        time_grid: TimeGrid | None = None,
        capacity_calculator: CapacityCalculator | None = None,
        conflict_detector: ConflictDetector | None = None,
    ) -> None:
        self._grid = time_grid or TimeGrid.from_settings()
        self._capacity = capacity_calculator or CapacityCalculator()
        self._conflicts = conflict_detector or ConflictDetector()

    def review_drop(
        self,
        appointment: Appointment,
        technician: Technician,
        drop_position: DropPosition,
        snapshot: DaySnapshot,
    ) -> PlacementReview:
        start = self._grid.slot_start(drop_position)
        end = self._grid.calculate_end_time(start, appointment.aw_estimate)
        return self.review(appointment, technician, start, end, snapshot)

    def review(
        self,
        appointment: Appointment,
        technician: Technician,
        start: datetime,
        end: datetime,
        snapshot: DaySnapshot,
    ) -> PlacementReview:
        """
        Review placing ``appointment`` on ``technician`` for ``[start, end)``.

        Args:
            appointment: Appointment to place
            technician: Target lane
            start: Proposed start time
            end: Proposed end time
            snapshot: Current day snapshot

        Returns:
            Review with findings ordered from hard problems to hints
        """
        absences = snapshot.absences_for(technician.id)
        lane = [
            a
            for a in snapshot.assignments_for(technician.id)
            if a.appointment_id != appointment.id
        ]
        findings: list[PlacementFinding] = []

        if any(absence.blocks(start, end) for absence in absences):
            findings.append(
                PlacementFinding(
                    FindingSeverity.ERROR,
                    "TECHNICIAN_ABSENT",
                    "Technician is absent during this time period",
                )
            )

        if self._conflicts.has_conflict(start, end, lane):
            findings.append(
                PlacementFinding(
                    FindingSeverity.ERROR,
                    "TIME_CONFLICT",
                    "Time slot conflicts with existing assignment",
                )
            )

        if not self._grid.is_within_working_hours(start) or self._grid.overruns_closing(
            start, end
        ):
            findings.append(
                PlacementFinding(
                    FindingSeverity.ERROR,
                    "OUTSIDE_WORKING_HOURS",
                    f"Appointment is outside working hours "
                    f"({self._grid.start_hour:02d}:00-{self._grid.end_hour:02d}:00)",
                )
            )

        missing = technician.lacks_skills(appointment.required_skills)
        if missing:
            findings.append(
                PlacementFinding(
                    FindingSeverity.WARNING,
                    "MISSING_SKILLS",
                    f"Technician may lack required skills: {', '.join(missing)}",
                )
            )

        findings.extend(self._sla_findings(appointment, start))

        if not appointment.vehicle_onsite:
            findings.append(
                PlacementFinding(
                    FindingSeverity.INFO,
                    "VEHICLE_NOT_ONSITE",
                    "Vehicle may not be onsite yet",
                )
            )

        if appointment.parts_ordered:
            findings.append(
                PlacementFinding(
                    FindingSeverity.WARNING,
                    "PARTS_ON_ORDER",
                    "Parts are still on order",
                )
            )

        findings.extend(self._capacity_findings(appointment, technician, absences, lane))

        order = {FindingSeverity.ERROR: 0, FindingSeverity.WARNING: 1, FindingSeverity.INFO: 2}
        findings.sort(key=lambda f: order[f.severity])
        return PlacementReview(
            appointment=appointment,
            technician=technician,
            start_time=start,
            end_time=end,
            findings=findings,
        )

    @staticmethod
    def _sla_findings(appointment: Appointment, start: datetime) -> list[PlacementFinding]:
        if appointment.sla_promised_at is None:
            return []
        hours_left = (appointment.sla_promised_at - start).total_seconds() / 3600
        if hours_left < settings.SLA_CRITICAL_HOURS:
            return [
                PlacementFinding(
                    FindingSeverity.WARNING,
                    "SLA_AT_RISK",
                    f"SLA deadline is very close (< {settings.SLA_CRITICAL_HOURS:g} hours)",
                )
            ]
        if hours_left < settings.SLA_WARNING_HOURS:
            return [
                PlacementFinding(
                    FindingSeverity.WARNING,
                    "SLA_APPROACHING",
                    f"SLA deadline is approaching (< {settings.SLA_WARNING_HOURS:g} hours)",
                )
            ]
        return []

    def _capacity_findings(self, appointment, technician, absences, lane) -> list[PlacementFinding]:
        effective = self._capacity.effective_capacity(technician.aw_capacity_per_day, absences)
        planned = self._capacity.planned_aw(lane) + appointment.aw_estimate
        if effective == 0:
            overbooked = planned > 0
            percentage = 0.0
        else:
            percentage = self._capacity.utilization(planned, effective)
            overbooked = percentage > settings.UTILIZATION_OVERBOOKED_PERCENT

        if overbooked:
            return [
                PlacementFinding(
                    FindingSeverity.ERROR,
                    "OVERBOOKED",
                    "Technician would be overbooked",
                )
            ]
        if percentage > settings.NEAR_CAPACITY_PERCENT:
            return [
                PlacementFinding(
                    FindingSeverity.WARNING,
                    "NEAR_CAPACITY",
                    "Technician would be near capacity",
                )
            ]
        return []
