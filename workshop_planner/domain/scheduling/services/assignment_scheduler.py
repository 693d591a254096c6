"""
Assignment Scheduler

Places, moves, postpones and advances schedule assignments on technician
lanes. Every operation either returns a MutationPlan for the application
layer to apply, or raises before anything is emitted:

- ValidationError for missing references, illegal transitions and intervals
  that break the same-day rule (or the overflow policy);
- ConflictError when the interval overlaps a live assignment of the lane;
- CapacityExceededError only when the blocking capacity policy is active.

Capacity overflow is otherwise reported as a CapacityWarning on the plan.
"""

from datetime import datetime

from ....core.config import settings
from ....core.observability import get_logger
from ...shared.exceptions import (
    CapacityExceededError,
    CapacityWarning,
    ConflictError,
    InvalidStatusTransitionError,
    ValidationError,
)
from ..entities.appointment import Appointment
from ..entities.day_snapshot import DaySnapshot
from ..entities.schedule_assignment import ScheduleAssignment
from ..entities.technician import Technician
from ..events.domain_events import (
    AssignmentMoved,
    AssignmentPlaced,
    AssignmentPostponed,
    AssignmentStatusChanged,
    CapacityWarningRaised,
    DomainEvent,
)
from ..value_objects.enums import (
    AppointmentStatus,
    AssignmentStatus,
    CapacityPolicy,
    OverflowPolicy,
)
from ..value_objects.mutations import (
    AppointmentPatch,
    AssignmentDraft,
    AssignmentPatch,
    MutationPlan,
)
from ..value_objects.time_grid import DropPosition, TimeGrid
from .capacity_calculator import CapacityCalculator
from .conflict_detector import ConflictDetector

logger = get_logger(__name__)


class AssignmentScheduler:
    """
    Interactive placement engine for one day view.

    The scheduler is stateless apart from its configuration; callers pass the
    current day snapshot with every operation.
    """

    def __init__(
        self,
        time_grid: TimeGrid | None = None,
        capacity_calculator: CapacityCalculator | None = None,
        conflict_detector: ConflictDetector | None = None,
        capacity_policy: CapacityPolicy | str | None = None,
        overflow_policy: OverflowPolicy | str | None = None,
    ) -> None:
        self._grid = time_grid or TimeGrid.from_settings()
        self._capacity = capacity_calculator or CapacityCalculator()
        self._conflicts = conflict_detector or ConflictDetector()
        self._capacity_policy = CapacityPolicy(
            capacity_policy or settings.CAPACITY_POLICY
        )
        self._overflow_policy = OverflowPolicy(
            overflow_policy or settings.OVERFLOW_POLICY
        )

    @property
    def time_grid(self) -> TimeGrid:
        return self._grid

    @property
    def capacity_policy(self) -> CapacityPolicy:
        return self._capacity_policy

    @property
    def overflow_policy(self) -> OverflowPolicy:
        return self._overflow_policy

    def place(
        self,
        appointment: Appointment | None,
        technician: Technician | None,
        drop_position: DropPosition,
        snapshot: DaySnapshot,
    ) -> MutationPlan:
        """
        Place a waiting appointment on a technician lane.

        Args:
            appointment: Appointment taken from the buffer
            technician: Target lane
            drop_position: Where the appointment was dropped
            snapshot: Current day snapshot

        Returns:
            Plan creating the assignment and marking the appointment scheduled

        Raises:
            ValidationError: If a reference is missing or the interval is invalid
            ConflictError: If the lane is occupied during the interval
            CapacityExceededError: If over-capacity placements are blocked
        """
        appointment = self._require_appointment(appointment)
        technician = self._require_technician(technician)
        self._require_same_day(drop_position, snapshot)

        if appointment.status != AppointmentStatus.NEW:
            raise ValidationError(
                "appointment.status",
                appointment.status.value,
                f"only waiting appointments can be placed, {appointment.id} is "
                f"'{appointment.status.value}'",
                "APPOINTMENT_NOT_WAITING",
            )
        existing = snapshot.live_assignment_for(appointment.id)
        if existing is not None:
            raise ValidationError(
                "appointment_id",
                appointment.id,
                f"appointment already holds assignment {existing.id}",
                "APPOINTMENT_ALREADY_ASSIGNED",
            )
        if appointment.aw_estimate <= 0:
            raise ValidationError(
                "aw_estimate",
                appointment.aw_estimate,
                "an appointment needs a positive AW estimate to occupy a lane",
                "EMPTY_ESTIMATE",
            )

        start = self._grid.slot_start(drop_position)
        end = self._grid.calculate_end_time(start, appointment.aw_estimate)
        self._check_interval(start, end)

        lane = snapshot.assignments_for(technician.id)
        self._raise_on_conflict(technician, start, end, lane)

        warning = self._check_capacity(
            technician, snapshot, lane, additional_aw=appointment.aw_estimate
        )

        draft = AssignmentDraft(
            appointment_id=appointment.id,
            technician_id=technician.id,
            start_time=start,
            end_time=end,
            aw_planned=appointment.aw_estimate,
            status=AssignmentStatus.SCHEDULED,
        )
        events: list[DomainEvent] = [
            AssignmentPlaced(
                assignment_id=draft.assignment_id,
                appointment_id=appointment.id,
                technician_id=technician.id,
                day=snapshot.day,
                start_time=start,
                end_time=end,
                aw_planned=draft.aw_planned,
            )
        ]
        events.extend(self._warning_events(warning))

        logger.info(
            "assignment_planned",
            appointment_id=str(appointment.id),
            technician_id=str(technician.id),
            start=start.isoformat(),
            end=end.isoformat(),
            aw_planned=draft.aw_planned,
            over_capacity=warning is not None,
        )
        return MutationPlan(
            operation="place",
            create_assignment=draft,
            appointment_patch=AppointmentPatch(
                appointment_id=appointment.id,
                status=AppointmentStatus.SCHEDULED,
                technician_id=technician.id,
                scheduled_start=start,
            ),
            warnings=(warning,) if warning else (),
            events=tuple(events),
        )

    def move(
        self,
        assignment: ScheduleAssignment | None,
        new_technician: Technician | None,
        new_drop_position: DropPosition,
        snapshot: DaySnapshot,
    ) -> MutationPlan:
        """
        Move a scheduled assignment to another slot or lane of the same day.

        The duration follows the assignment's frozen ``aw_planned``. The moved
        assignment is excluded from the conflict check at its new position.
        """
        assignment = self._require_assignment(assignment)
        technician = self._require_technician(new_technician)
        self._require_same_day(new_drop_position, snapshot)
        if assignment.day != snapshot.day:
            raise ValidationError(
                "assignment_id",
                assignment.id,
                f"assignment {assignment.id} is on {assignment.day.isoformat()}, "
                f"not {snapshot.day.isoformat()}",
                "DAY_MISMATCH",
            )

        if assignment.status != AssignmentStatus.SCHEDULED:
            raise ValidationError(
                "assignment.status",
                assignment.status.value,
                f"only scheduled assignments can be moved, {assignment.id} is "
                f"'{assignment.status.value}'",
                "ASSIGNMENT_NOT_MOVABLE",
            )

        start = self._grid.slot_start(new_drop_position)
        end = self._grid.calculate_end_time(start, assignment.aw_planned)
        self._check_interval(start, end)

        lane = [
            a for a in snapshot.assignments_for(technician.id) if a.id != assignment.id
        ]
        self._raise_on_conflict(technician, start, end, lane)

        warning = self._check_capacity(
            technician, snapshot, lane, additional_aw=assignment.aw_planned
        )

        events: list[DomainEvent] = [
            AssignmentMoved(
                assignment_id=assignment.id,
                appointment_id=assignment.appointment_id,
                day=snapshot.day,
                old_technician_id=assignment.technician_id,
                new_technician_id=technician.id,
                old_start_time=assignment.start_time,
                new_start_time=start,
                new_end_time=end,
            )
        ]
        events.extend(self._warning_events(warning))

        logger.info(
            "assignment_move_planned",
            assignment_id=str(assignment.id),
            from_technician=str(assignment.technician_id),
            to_technician=str(technician.id),
            start=start.isoformat(),
        )
        return MutationPlan(
            operation="move",
            assignment_patch=AssignmentPatch(
                assignment_id=assignment.id,
                technician_id=technician.id,
                start_time=start,
                end_time=end,
            ),
            appointment_patch=AppointmentPatch(
                appointment_id=assignment.appointment_id,
                technician_id=technician.id,
                scheduled_start=start,
            ),
            warnings=(warning,) if warning else (),
            events=tuple(events),
        )

    def postpone(self, assignment: ScheduleAssignment | None) -> MutationPlan:
        """Cancel a scheduled assignment and send its appointment back to the buffer."""
        assignment = self._require_assignment(assignment)
        self._require_transition(assignment, AssignmentStatus.CANCELLED)

        logger.info(
            "assignment_postpone_planned",
            assignment_id=str(assignment.id),
            appointment_id=str(assignment.appointment_id),
        )
        return MutationPlan(
            operation="postpone",
            assignment_patch=AssignmentPatch(
                assignment_id=assignment.id, status=AssignmentStatus.CANCELLED
            ),
            appointment_patch=AppointmentPatch(
                appointment_id=assignment.appointment_id,
                status=AppointmentStatus.NEW,
                technician_id=None,
                scheduled_start=None,
            ),
            events=(
                AssignmentPostponed(
                    assignment_id=assignment.id,
                    appointment_id=assignment.appointment_id,
                    technician_id=assignment.technician_id,
                    day=assignment.day,
                ),
            ),
        )

    def advance_status(
        self,
        assignment: ScheduleAssignment | None,
        new_status: AssignmentStatus | str,
    ) -> MutationPlan:
        """
        Move an assignment along ``scheduled -> in_progress -> completed``.

        Advancing to ``cancelled`` is a postpone. Nothing leaves ``completed``
        or ``cancelled``.
        """
        assignment = self._require_assignment(assignment)
        try:
            target = AssignmentStatus(new_status)
        except ValueError as exc:
            raise ValidationError(
                "status", str(new_status), "unknown assignment status", "UNKNOWN_STATUS"
            ) from exc

        if target == AssignmentStatus.CANCELLED:
            return self.postpone(assignment)

        self._require_transition(assignment, target)
        return MutationPlan(
            operation="advance_status",
            assignment_patch=AssignmentPatch(assignment_id=assignment.id, status=target),
            events=(
                AssignmentStatusChanged(
                    assignment_id=assignment.id,
                    appointment_id=assignment.appointment_id,
                    technician_id=assignment.technician_id,
                    day=assignment.day,
                    old_status=assignment.status.value,
                    new_status=target.value,
                ),
            ),
        )

    # Helpers

    @staticmethod
    def _require_appointment(appointment: Appointment | None) -> Appointment:
        if appointment is None:
            raise ValidationError(
                "appointment", None, "appointment reference is missing", "MISSING_APPOINTMENT"
            )
        return appointment

    @staticmethod
    def _require_assignment(assignment: ScheduleAssignment | None) -> ScheduleAssignment:
        if assignment is None:
            raise ValidationError(
                "assignment", None, "assignment reference is missing", "MISSING_ASSIGNMENT"
            )
        return assignment

    @staticmethod
    def _require_technician(technician: Technician | None) -> Technician:
        if technician is None:
            raise ValidationError(
                "technician", None, "technician reference is missing", "MISSING_TECHNICIAN"
            )
        if not technician.active:
            raise ValidationError(
                "technician",
                technician.id,
                f"technician {technician.name} is inactive",
                "INACTIVE_TECHNICIAN",
            )
        return technician

    @staticmethod
    def _require_same_day(position: DropPosition, snapshot: DaySnapshot) -> None:
        if position.day != snapshot.day:
            raise ValidationError(
                "drop_position.day",
                position.day,
                f"drop targets {position.day.isoformat()} but the loaded day is "
                f"{snapshot.day.isoformat()}",
                "DAY_MISMATCH",
            )

    @staticmethod
    def _require_transition(
        assignment: ScheduleAssignment, target: AssignmentStatus
    ) -> None:
        if not assignment.status.can_transition_to(target):
            raise InvalidStatusTransitionError(
                assignment.id, assignment.status.value, target.value
            )

    def _check_interval(self, start: datetime, end: datetime) -> None:
        if end.date() != start.date():
            raise ValidationError(
                "end_time",
                end,
                "assignment would run past midnight",
                "CROSSES_MIDNIGHT",
            )
        if self._overflow_policy == OverflowPolicy.REJECT and (
            not self._grid.is_within_working_hours(start)
            or self._grid.overruns_closing(start, end)
        ):
            raise ValidationError(
                "end_time",
                end,
                f"{start:%H:%M}-{end:%H:%M} is outside working hours "
                f"({self._grid.start_hour:02d}:00-{self._grid.end_hour:02d}:00)",
                "OUTSIDE_WORKING_HOURS",
            )

    def _raise_on_conflict(
        self,
        technician: Technician,
        start: datetime,
        end: datetime,
        lane: list[ScheduleAssignment],
    ) -> None:
        conflicts = self._conflicts.find_conflicts(start, end, lane)
        if conflicts:
            logger.info(
                "placement_conflict",
                technician_id=str(technician.id),
                start=start.isoformat(),
                end=end.isoformat(),
                conflicting=[str(a.id) for a in conflicts],
            )
            raise ConflictError(technician.id, start, end, [a.id for a in conflicts])

    def _check_capacity(
        self,
        technician: Technician,
        snapshot: DaySnapshot,
        lane: list[ScheduleAssignment],
        additional_aw: int,
    ) -> CapacityWarning | None:
        warning = self._capacity.capacity_warning(
            technician.id,
            snapshot.day,
            technician.aw_capacity_per_day,
            snapshot.absences_for(technician.id),
            lane,
            additional_aw=additional_aw,
        )
        if warning is None:
            return None
        if self._capacity_policy == CapacityPolicy.BLOCK:
            raise CapacityExceededError(warning)
        logger.warning(
            "capacity_exceeded",
            technician_id=str(technician.id),
            day=snapshot.day.isoformat(),
            planned_aw=warning.planned_aw,
            effective_capacity_aw=warning.effective_capacity_aw,
        )
        return warning

    @staticmethod
    def _warning_events(warning: CapacityWarning | None) -> list[DomainEvent]:
        if warning is None:
            return []
        return [
            CapacityWarningRaised(
                technician_id=warning.technician_id,
                day=warning.day,
                planned_aw=warning.planned_aw,
                effective_capacity_aw=warning.effective_capacity_aw,
            )
        ]
