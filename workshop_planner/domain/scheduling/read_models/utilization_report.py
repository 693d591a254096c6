"""
Utilization Report

Per-technician lanes and day-level KPIs derived from a day snapshot. The
report is recomputed from the snapshot on every call and holds no state of
its own.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from uuid import UUID

from ..entities.absence import Absence
from ..entities.appointment import Appointment
from ..entities.day_snapshot import DaySnapshot
from ..entities.schedule_assignment import ScheduleAssignment
from ..entities.technician import Technician
from ..services.capacity_calculator import CapacityCalculator
from ..value_objects.enums import AppointmentFlag, AppointmentStatus, UtilizationLevel


@dataclass(frozen=True)
class TechnicianLane:
    """One technician's row of the day view."""

    technician: Technician
    assignments: tuple[ScheduleAssignment, ...]
    absences: tuple[Absence, ...]
    effective_capacity_aw: int
    planned_aw: int
    available_aw: int
    utilization_percentage: float
    level: UtilizationLevel

    @property
    def technician_id(self) -> UUID:
        return self.technician.id

    @property
    def is_absent_all_day(self) -> bool:
        return any(absence.is_full_day for absence in self.absences)

    @property
    def is_over_capacity(self) -> bool:
        return self.planned_aw > self.effective_capacity_aw


@dataclass(frozen=True)
class DayKPIs:
    total_planned_aw: int
    total_available_aw: int
    total_capacity: int
    overall_utilization: float
    waiting_customers: int
    vehicles_onsite: int
    pending_parts: int
    unassigned_appointments: int
    overbooked_technicians: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class UtilizationReport:
    day: date
    lanes: tuple[TechnicianLane, ...]
    kpis: DayKPIs
    unassigned: tuple[Appointment, ...] = field(default=())

    def lane(self, technician_id: UUID) -> TechnicianLane | None:
        return next((lane for lane in self.lanes if lane.technician_id == technician_id), None)


class UtilizationReporter:
    """Aggregates technician lanes into the day's KPIs."""

    def __init__(self, capacity_calculator: CapacityCalculator | None = None) -> None:
        self._capacity = capacity_calculator or CapacityCalculator()

    def build_lane(self, technician: Technician, snapshot: DaySnapshot) -> TechnicianLane:
        assignments = snapshot.assignments_for(technician.id)
        absences = snapshot.absences_for(technician.id)
        capacity = technician.aw_capacity_per_day
        planned = self._capacity.planned_aw(assignments)
        percentage = self._capacity.utilization(planned, capacity)
        return TechnicianLane(
            technician=technician,
            assignments=tuple(sorted(assignments, key=lambda a: a.start_time)),
            absences=tuple(absences),
            effective_capacity_aw=self._capacity.effective_capacity(capacity, absences),
            planned_aw=planned,
            available_aw=self._capacity.available_aw(capacity, absences, assignments),
            utilization_percentage=percentage,
            level=self._capacity.utilization_level(percentage),
        )

    def build_lanes(self, snapshot: DaySnapshot) -> list[TechnicianLane]:
        """Lanes for every active technician, in roster order."""
        return [
            self.build_lane(technician, snapshot)
            for technician in snapshot.active_technicians
        ]

    def kpis(
        self,
        lanes: Iterable[TechnicianLane],
        appointments: Iterable[Appointment],
    ) -> DayKPIs:
        """
        Day-level aggregates.

        ``unassigned_appointments`` counts open appointments without a live
        assignment on any active lane, whatever their status says.

        Args:
            lanes: Lanes of the active technicians
            appointments: Appointments in scope for the counters, usually the
                filtered appointments of the day view

        Returns:
            KPIs with overall utilization 0 when there is no capacity at all
        """
        lanes = list(lanes)
        appointments = list(appointments)

        total_planned = sum(lane.planned_aw for lane in lanes)
        total_capacity = sum(lane.technician.aw_capacity_per_day for lane in lanes)
        on_lanes = {a.appointment_id for lane in lanes for a in lane.assignments}

        return DayKPIs(
            total_planned_aw=total_planned,
            total_available_aw=sum(lane.available_aw for lane in lanes),
            total_capacity=total_capacity,
            overall_utilization=self._capacity.utilization(total_planned, total_capacity),
            waiting_customers=sum(
                1 for a in appointments if a.status == AppointmentStatus.NEW
            ),
            vehicles_onsite=sum(
                1 for a in appointments if a.has_flag(AppointmentFlag.VEHICLE_ONSITE)
            ),
            pending_parts=sum(
                1 for a in appointments if a.has_flag(AppointmentFlag.PARTS_ORDERED)
            ),
            unassigned_appointments=sum(
                1
                for a in appointments
                if not a.status.is_closed and a.id not in on_lanes
            ),
            overbooked_technicians=tuple(
                lane.technician_id for lane in lanes if lane.is_over_capacity
            ),
        )

    def report(
        self,
        snapshot: DaySnapshot,
        appointments: Iterable[Appointment] | None = None,
    ) -> UtilizationReport:
        """Full report for the snapshot; ``appointments`` narrows the counters."""
        scope = list(snapshot.appointments if appointments is None else appointments)
        lanes = self.build_lanes(snapshot)
        return UtilizationReport(
            day=snapshot.day,
            lanes=tuple(lanes),
            kpis=self.kpis(lanes, scope),
            unassigned=tuple(a for a in scope if a.is_unassigned),
        )
