"""
Drag and drop adapter.

Translates the gestures of the day view (drag start, drag over a lane,
drop on a slot, drag end) into planner service calls. The adapter holds
only gesture state; every scheduling decision is made by the service.
"""

from dataclasses import dataclass, field
from uuid import UUID

from ..core.observability import get_logger
from ..domain.scheduling.entities.appointment import Appointment
from ..domain.scheduling.entities.schedule_assignment import ScheduleAssignment
from ..domain.scheduling.services.placement_advisor import PlacementReview
from ..domain.scheduling.value_objects.mutations import MutationPlan
from ..domain.scheduling.value_objects.time_grid import DropPosition, TimeSlot
from ..domain.shared.exceptions import (
    CapacityExceededError,
    CapacityWarning,
    DomainError,
    ResourceConflictError,
    ValidationError,
)
from .planner_service import DayPlannerService

logger = get_logger(__name__)

Draggable = Appointment | ScheduleAssignment


@dataclass(frozen=True)
class DropOutcome:
    """What happened to a drop, ready to be shown to the user."""

    accepted: bool
    message: str
    plan: MutationPlan | None = None
    error: DomainError | None = None
    warnings: tuple[CapacityWarning, ...] = field(default=())


class DragDropAdapter:
    def __init__(self, service: DayPlannerService) -> None:
        self._service = service
        self.dragging: Draggable | None = None
        self.drag_over_technician_id: UUID | None = None

    @property
    def is_dragging(self) -> bool:
        return self.dragging is not None

    def drag_start(self, item: Draggable) -> None:
        self.dragging = item
        self.drag_over_technician_id = None
        logger.debug("drag_started", item_id=str(item.id), kind=type(item).__name__)

    def drag_over(self, technician_id: UUID) -> bool:
        """Highlight a lane; returns whether a drop there would be attempted."""
        if self.dragging is None:
            return False
        self.drag_over_technician_id = technician_id
        return True

    def drag_leave(self, technician_id: UUID) -> None:
        if self.drag_over_technician_id == technician_id:
            self.drag_over_technician_id = None

    def drag_end(self) -> None:
        """Gesture finished or was cancelled; forget the dragged item."""
        self.dragging = None
        self.drag_over_technician_id = None

    async def preview(
        self, technician_id: UUID, target: DropPosition | TimeSlot
    ) -> PlacementReview | None:
        """Advisory review of dropping the dragged appointment at ``target``."""
        if not isinstance(self.dragging, Appointment):
            return None
        return await self._service.preview_placement(
            self.dragging.id, technician_id, self._position(target)
        )

    async def drop(
        self, technician_id: UUID, target: DropPosition | TimeSlot
    ) -> DropOutcome:
        """
        Drop the dragged item on a technician lane.

        Appointments from the buffer are placed; assignments already on a
        lane are moved. Rejections come back as a refused outcome, any other
        error propagates. The drag state is cleared in both cases.
        """
        item = self.dragging
        if item is None:
            return DropOutcome(accepted=False, message="Nothing is being dragged")

        position = self._position(target)
        try:
            if isinstance(item, Appointment):
                plan = await self._service.place(item.id, technician_id, position)
            else:
                plan = await self._service.move(item.id, technician_id, position)
        except (ValidationError, ResourceConflictError, CapacityExceededError) as exc:
            return DropOutcome(accepted=False, message=exc.message, error=exc)
        finally:
            self.drag_end()

        message = (
            "Appointment scheduled successfully"
            if plan.operation == "place"
            else "Assignment moved"
        )
        if plan.has_warnings:
            message = f"{message}; {plan.warnings[0].message}"
        return DropOutcome(
            accepted=True, message=message, plan=plan, warnings=plan.warnings
        )

    @staticmethod
    def _position(target: DropPosition | TimeSlot) -> DropPosition:
        if isinstance(target, TimeSlot):
            return DropPosition.from_slot(target)
        return target
