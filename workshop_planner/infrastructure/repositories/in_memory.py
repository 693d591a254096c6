"""
In-memory repositories and unit of work.

Reference implementation of the planner repository contracts, used by the
tests and for local wiring. Writes made through a unit of work are staged
and only reach the shared store on commit; commit also enforces the
per-lane no-overlap rule the way a database exclusion constraint would,
and the one-live-assignment-per-appointment rule the way a partial unique
index would.
"""

from collections.abc import Iterable
from datetime import date
from typing import Generic, TypeVar
from uuid import UUID

from ...core.observability import get_logger
from ...domain.scheduling.entities.absence import Absence
from ...domain.scheduling.entities.appointment import Appointment
from ...domain.scheduling.entities.schedule_assignment import ScheduleAssignment
from ...domain.scheduling.entities.technician import Technician
from ...domain.scheduling.repositories.absence_repository import AbsenceRepository
from ...domain.scheduling.repositories.appointment_repository import (
    AppointmentRepository,
)
from ...domain.scheduling.repositories.assignment_repository import (
    AssignmentRepository,
)
from ...domain.scheduling.repositories.technician_repository import (
    TechnicianRepository,
)
from ...domain.scheduling.repositories.unit_of_work import PlannerUnitOfWork
from ...domain.scheduling.services.conflict_detector import ConflictDetector
from ...domain.scheduling.value_objects.mutations import (
    AppointmentPatch,
    AssignmentDraft,
    AssignmentPatch,
)
from ...domain.shared.base import Entity
from ...domain.shared.exceptions import (
    ConflictError,
    EntityNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)

T = TypeVar("T", bound=Entity)


class InMemoryPlannerStore:
    """Shared state behind the in-memory repositories."""

    def __init__(
        self,
        technicians: Iterable[Technician] = (),
        appointments: Iterable[Appointment] = (),
        assignments: Iterable[ScheduleAssignment] = (),
        absences: Iterable[Absence] = (),
    ) -> None:
        self.technicians: dict[UUID, Technician] = {t.id: t for t in technicians}
        self.appointments: dict[UUID, Appointment] = {a.id: a for a in appointments}
        self.assignments: dict[UUID, ScheduleAssignment] = {
            a.id: a for a in assignments
        }
        self.absences: dict[UUID, Absence] = {a.id: a for a in absences}
        self._failures: dict[str, Exception] = {}

    def add(self, *entities: Entity) -> None:
        for entity in entities:
            if isinstance(entity, Technician):
                self.technicians[entity.id] = entity
            elif isinstance(entity, Appointment):
                self.appointments[entity.id] = entity
            elif isinstance(entity, ScheduleAssignment):
                self.assignments[entity.id] = entity
            elif isinstance(entity, Absence):
                self.absences[entity.id] = entity
            else:
                raise TypeError(f"Unsupported entity: {type(entity).__name__}")

    def fail_next(self, operation: str, error: Exception) -> None:
        """Make the next call of repository method ``operation`` raise ``error``."""
        self._failures[operation] = error

    def raise_injected(self, operation: str) -> None:
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    def unit_of_work(self) -> "InMemoryPlannerUnitOfWork":
        return InMemoryPlannerUnitOfWork(self)


class _StagedCollection(Generic[T]):
    """Committed items overlaid with the writes of an open unit of work."""

    def __init__(self, committed: dict[UUID, T], staged: dict[UUID, T] | None) -> None:
        self._committed = committed
        self._staged = staged

    def all(self) -> list[T]:
        if not self._staged:
            return list(self._committed.values())
        merged = dict(self._committed)
        merged.update(self._staged)
        return list(merged.values())

    def get(self, entity_id: UUID) -> T | None:
        if self._staged and entity_id in self._staged:
            return self._staged[entity_id]
        return self._committed.get(entity_id)

    def put(self, entity: T) -> None:
        target = self._committed if self._staged is None else self._staged
        target[entity.id] = entity


class InMemoryAppointmentRepository(AppointmentRepository):
    def __init__(
        self,
        store: InMemoryPlannerStore,
        staged: dict[UUID, Appointment] | None = None,
    ) -> None:
        self._store = store
        self._items = _StagedCollection(store.appointments, staged)

    async def get_appointments_for_date(self, day: date) -> list[Appointment]:
        self._store.raise_injected("get_appointments_for_date")
        return [
            a
            for a in self._items.all()
            if a.day == day
            or (a.scheduled_start is not None and a.scheduled_start.date() == day)
        ]

    async def update_appointment(
        self, appointment_id: UUID, patch: AppointmentPatch
    ) -> Appointment:
        self._store.raise_injected("update_appointment")
        current = self._items.get(appointment_id)
        if current is None:
            raise EntityNotFoundError("Appointment", appointment_id)
        updated = current.with_changes(patch.changes())
        self._items.put(updated)
        return updated


class InMemoryAssignmentRepository(AssignmentRepository):
    def __init__(
        self,
        store: InMemoryPlannerStore,
        staged: dict[UUID, ScheduleAssignment] | None = None,
    ) -> None:
        self._store = store
        self._items = _StagedCollection(store.assignments, staged)

    async def get_assignments_for_date(self, day: date) -> list[ScheduleAssignment]:
        self._store.raise_injected("get_assignments_for_date")
        return sorted(
            (a for a in self._items.all() if a.day == day),
            key=lambda a: (a.start_time, str(a.technician_id)),
        )

    async def create_assignment(self, draft: AssignmentDraft) -> ScheduleAssignment:
        self._store.raise_injected("create_assignment")
        if self._items.get(draft.assignment_id) is not None:
            raise ValueError(f"Assignment {draft.assignment_id} already exists")
        assignment = ScheduleAssignment(
            id=draft.assignment_id,
            appointment_id=draft.appointment_id,
            technician_id=draft.technician_id,
            start_time=draft.start_time,
            end_time=draft.end_time,
            aw_planned=draft.aw_planned,
            status=draft.status,
        )
        self._items.put(assignment)
        return assignment

    async def update_assignment(
        self, assignment_id: UUID, patch: AssignmentPatch
    ) -> ScheduleAssignment:
        self._store.raise_injected("update_assignment")
        current = self._items.get(assignment_id)
        if current is None:
            raise EntityNotFoundError("ScheduleAssignment", assignment_id)
        updated = current.with_changes(patch.changes())
        self._items.put(updated)
        return updated


class InMemoryTechnicianRepository(TechnicianRepository):
    def __init__(self, store: InMemoryPlannerStore) -> None:
        self._store = store

    async def get_active_technicians(self) -> list[Technician]:
        self._store.raise_injected("get_active_technicians")
        return [t for t in self._store.technicians.values() if t.active]


class InMemoryAbsenceRepository(AbsenceRepository):
    def __init__(self, store: InMemoryPlannerStore) -> None:
        self._store = store

    async def get_absences_for_date(self, day: date) -> list[Absence]:
        self._store.raise_injected("get_absences_for_date")
        return [a for a in self._store.absences.values() if a.day == day]


class InMemoryPlannerUnitOfWork(PlannerUnitOfWork):
    """Stages appointment and assignment writes until commit."""

    def __init__(self, store: InMemoryPlannerStore) -> None:
        self._store = store
        self._conflicts = ConflictDetector()
        self._staged_appointments: dict[UUID, Appointment] = {}
        self._staged_assignments: dict[UUID, ScheduleAssignment] = {}
        self.appointments = InMemoryAppointmentRepository(
            store, self._staged_appointments
        )
        self.assignments = InMemoryAssignmentRepository(store, self._staged_assignments)

    async def begin(self) -> None:
        self._staged_appointments.clear()
        self._staged_assignments.clear()

    async def commit(self) -> None:
        self._store.raise_injected("commit")
        self._check_lanes()
        self._store.appointments.update(self._staged_appointments)
        self._store.assignments.update(self._staged_assignments)
        logger.debug(
            "unit_of_work_committed",
            appointments=len(self._staged_appointments),
            assignments=len(self._staged_assignments),
        )
        self._staged_appointments.clear()
        self._staged_assignments.clear()

    async def rollback(self) -> None:
        if self._staged_appointments or self._staged_assignments:
            logger.info(
                "unit_of_work_rolled_back",
                appointments=len(self._staged_appointments),
                assignments=len(self._staged_assignments),
            )
        self._staged_appointments.clear()
        self._staged_assignments.clear()

    def _check_lanes(self) -> None:
        merged = dict(self._store.assignments)
        merged.update(self._staged_assignments)
        for staged in self._staged_assignments.values():
            if not staged.is_live:
                continue
            holder = next(
                (
                    a
                    for a in merged.values()
                    if a.appointment_id == staged.appointment_id
                    and a.id != staged.id
                    and a.is_live
                ),
                None,
            )
            if holder is not None:
                raise ValidationError(
                    "appointment_id",
                    staged.appointment_id,
                    f"appointment already holds assignment {holder.id}",
                    "APPOINTMENT_ALREADY_ASSIGNED",
                )
            lane = [
                a
                for a in merged.values()
                if a.technician_id == staged.technician_id and a.day == staged.day
            ]
            conflicts = self._conflicts.find_conflicts(
                staged.start_time, staged.end_time, lane, exclude=staged.id
            )
            if conflicts:
                raise ConflictError(
                    staged.technician_id,
                    staged.start_time,
                    staged.end_time,
                    [a.id for a in conflicts],
                )
