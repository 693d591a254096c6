"""
Day planner application service.

Coordinates the scheduling engine with the repositories. Every mutating
operation runs check-then-act inside a critical section per
(technician, day) lane and per appointment: the day's data is re-read inside the lock, the
AssignmentScheduler produces a MutationPlan and the plan is applied through
one unit of work. Events are published after the commit.

Rejections (ValidationError, ConflictError, CapacityExceededError) leave no
partial writes and are published as PlacementRejected before they are
re-raised. Repository errors surface unchanged; nothing is retried.
"""

import asyncio
from collections import defaultdict
from collections.abc import AsyncIterator, Callable
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import date
from uuid import UUID

from ..core.observability import get_logger, track_scheduler_operation
from ..domain.scheduling.entities.day_snapshot import DaySnapshot
from ..domain.scheduling.entities.schedule_assignment import ScheduleAssignment
from ..domain.scheduling.events.domain_events import DayDataChanged, PlacementRejected
from ..domain.scheduling.repositories.unit_of_work import PlannerUnitOfWork
from ..domain.scheduling.services.assignment_scheduler import AssignmentScheduler
from ..domain.scheduling.services.placement_advisor import (
    PlacementAdvisor,
    PlacementReview,
)
from ..domain.scheduling.value_objects.enums import AssignmentStatus
from ..domain.scheduling.value_objects.mutations import MutationPlan
from ..domain.scheduling.value_objects.time_grid import DropPosition
from ..domain.shared.exceptions import (
    CapacityExceededError,
    EntityNotFoundError,
    ResourceConflictError,
    ValidationError,
)
from ..infrastructure.events.event_bus import InMemoryEventBus
from .day_view import DaySnapshotLoader

logger = get_logger(__name__)

LockKey = tuple[str, ...]

REJECTIONS = (ValidationError, ResourceConflictError, CapacityExceededError)


class DayPlannerService:
    """Applies placement, move, postpone and status changes for a day."""

    def __init__(
        self,
        unit_of_work_factory: Callable[[], PlannerUnitOfWork],
        loader: DaySnapshotLoader,
        event_bus: InMemoryEventBus | None = None,
        scheduler: AssignmentScheduler | None = None,
        advisor: PlacementAdvisor | None = None,
    ) -> None:
        """
        Initialize the planner service.

        Args:
            unit_of_work_factory: Factory for creating unit of work instances
            loader: Loader used to re-read the day inside the critical section
            event_bus: Optional bus receiving plan events and rejections
            scheduler: Optional scheduling engine
            advisor: Optional placement advisor for previews
        """
        self._uow_factory = unit_of_work_factory
        self._loader = loader
        self._event_bus = event_bus
        self._scheduler = scheduler or AssignmentScheduler()
        self._advisor = advisor or PlacementAdvisor(time_grid=self._scheduler.time_grid)
        self._locks: defaultdict[LockKey, asyncio.Lock] = defaultdict(asyncio.Lock)

    @property
    def scheduler(self) -> AssignmentScheduler:
        return self._scheduler

    async def place(
        self,
        appointment_id: UUID,
        technician_id: UUID,
        drop_position: DropPosition,
    ) -> MutationPlan:
        """
        Place a waiting appointment on a technician lane.

        Args:
            appointment_id: Appointment from the buffer
            technician_id: Target lane
            drop_position: Where the appointment was dropped

        Returns:
            The applied plan, including any capacity warnings

        Raises:
            ValidationError: If the placement is not allowed
            ConflictError: If the lane is occupied during the interval
            CapacityExceededError: If over-capacity placements are blocked
        """
        day = drop_position.day
        with track_scheduler_operation("place"):
            async with self._locked(appointment_id, (technician_id, day)):
                snapshot = await self._loader.load(day)
                async with self._rejections(appointment_id, technician_id, day):
                    plan = self._scheduler.place(
                        snapshot.appointment(appointment_id),
                        snapshot.technician(technician_id),
                        drop_position,
                        snapshot,
                    )
                    await self._apply(plan)
            await self._publish_plan(plan, day, (technician_id,))
        return plan

    async def move(
        self,
        assignment_id: UUID,
        technician_id: UUID,
        drop_position: DropPosition,
    ) -> MutationPlan:
        """
        Move a scheduled assignment to another slot or lane of the same day.

        The appointment and both the source and the target lane are locked, in
        a stable order.
        """
        day = drop_position.day
        with track_scheduler_operation("move"):
            current = await self._require_assignment(assignment_id, day)
            async with self._locked(
                current.appointment_id,
                (current.technician_id, day),
                (technician_id, day),
            ):
                snapshot = await self._loader.load(day)
                assignment = self._locked_assignment(
                    snapshot, assignment_id, {current.technician_id, technician_id}
                )
                async with self._rejections(
                    assignment.appointment_id, technician_id, day
                ):
                    plan = self._scheduler.move(
                        assignment,
                        snapshot.technician(technician_id),
                        drop_position,
                        snapshot,
                    )
                    await self._apply(plan)
            await self._publish_plan(
                plan, day, tuple({current.technician_id, technician_id})
            )
        return plan

    async def postpone(self, assignment_id: UUID, day: date) -> MutationPlan:
        """Cancel an assignment and return its appointment to the buffer."""
        with track_scheduler_operation("postpone"):
            current = await self._require_assignment(assignment_id, day)
            async with self._locked(
                current.appointment_id, (current.technician_id, day)
            ):
                snapshot = await self._loader.load(day)
                assignment = self._locked_assignment(
                    snapshot, assignment_id, {current.technician_id}
                )
                async with self._rejections(
                    assignment.appointment_id, assignment.technician_id, day
                ):
                    plan = self._scheduler.postpone(assignment)
                    await self._apply(plan)
            await self._publish_plan(plan, day, (current.technician_id,))
        return plan

    async def advance_status(
        self,
        assignment_id: UUID,
        day: date,
        new_status: AssignmentStatus | str,
    ) -> MutationPlan:
        """Advance an assignment along its state machine."""
        with track_scheduler_operation("advance_status"):
            current = await self._require_assignment(assignment_id, day)
            async with self._locked(
                current.appointment_id, (current.technician_id, day)
            ):
                snapshot = await self._loader.load(day)
                assignment = self._locked_assignment(
                    snapshot, assignment_id, {current.technician_id}
                )
                async with self._rejections(
                    assignment.appointment_id, assignment.technician_id, day
                ):
                    plan = self._scheduler.advance_status(assignment, new_status)
                    await self._apply(plan)
            await self._publish_plan(plan, day, (current.technician_id,))
        return plan

    async def preview_placement(
        self,
        appointment_id: UUID,
        technician_id: UUID,
        drop_position: DropPosition,
    ) -> PlacementReview:
        """Advisory review of a placement; nothing is written."""
        snapshot = await self._loader.load(drop_position.day)
        appointment = snapshot.appointment(appointment_id)
        if appointment is None:
            raise EntityNotFoundError("Appointment", appointment_id)
        technician = snapshot.technician(technician_id)
        if technician is None:
            raise EntityNotFoundError("Technician", technician_id)
        return self._advisor.review_drop(appointment, technician, drop_position, snapshot)

    # Helpers

    @asynccontextmanager
    async def _locked(
        self, appointment_id: UUID, *lanes: tuple[UUID, date]
    ) -> AsyncIterator[None]:
        """Hold the appointment and lane locks, acquired in a stable order."""
        keys: set[LockKey] = {
            ("lane", str(technician_id), day.isoformat()) for technician_id, day in lanes
        }
        keys.add(("appointment", str(appointment_id)))
        ordered = sorted(keys)
        async with AsyncExitStack() as stack:
            for key in ordered:
                await stack.enter_async_context(self._locks[key])
            yield

    @asynccontextmanager
    async def _rejections(
        self, appointment_id: UUID | None, technician_id: UUID | None, day: date
    ) -> AsyncIterator[None]:
        try:
            yield
        except REJECTIONS as exc:
            logger.info(
                "placement_rejected",
                appointment_id=str(appointment_id) if appointment_id else None,
                technician_id=str(technician_id) if technician_id else None,
                day=day.isoformat(),
                error_type=exc.error_type.value,
                reason=exc.message,
            )
            await self._publish(
                PlacementRejected(
                    appointment_id=appointment_id,
                    technician_id=technician_id,
                    day=day,
                    error_type=exc.error_type.value,
                    reason=exc.message,
                )
            )
            raise

    async def _require_assignment(
        self, assignment_id: UUID, day: date
    ) -> ScheduleAssignment:
        snapshot = await self._loader.load(day)
        assignment = snapshot.assignment(assignment_id)
        if assignment is None:
            raise ValidationError(
                "assignment_id",
                assignment_id,
                f"no assignment {assignment_id} on {day.isoformat()}",
                "MISSING_ASSIGNMENT",
            )
        return assignment

    @staticmethod
    def _locked_assignment(
        snapshot: DaySnapshot, assignment_id: UUID, locked: set[UUID]
    ) -> ScheduleAssignment:
        assignment = snapshot.assignment(assignment_id)
        if assignment is None or assignment.technician_id not in locked:
            raise ValidationError(
                "assignment_id",
                assignment_id,
                "assignment changed while waiting for the lane lock",
                "CONCURRENT_MODIFICATION",
            )
        return assignment

    async def _apply(self, plan: MutationPlan) -> None:
        if plan.is_empty:
            return
        async with self._uow_factory() as uow:
            if plan.create_assignment is not None:
                await uow.assignments.create_assignment(plan.create_assignment)
            if plan.assignment_patch is not None:
                await uow.assignments.update_assignment(
                    plan.assignment_patch.assignment_id, plan.assignment_patch
                )
            if plan.appointment_patch is not None:
                await uow.appointments.update_appointment(
                    plan.appointment_patch.appointment_id, plan.appointment_patch
                )
        logger.info(
            "mutation_plan_applied",
            operation=plan.operation,
            warnings=len(plan.warnings),
        )

    async def _publish_plan(
        self, plan: MutationPlan, day: date, technician_ids: tuple[UUID, ...]
    ) -> None:
        if self._event_bus is None:
            return
        await self._event_bus.publish_all(plan.events)
        await self._event_bus.publish_async(
            DayDataChanged(day=day, technician_ids=technician_ids)
        )

    async def _publish(self, event) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish_async(event)

