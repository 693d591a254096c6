"""
Tests for the in-memory repositories and unit of work.
"""

from uuid import uuid4

import pytest

from workshop_planner.domain.scheduling.value_objects.enums import (
    AppointmentStatus,
    AssignmentStatus,
)
from workshop_planner.domain.scheduling.value_objects.mutations import (
    AppointmentPatch,
    AssignmentDraft,
    AssignmentPatch,
)
from workshop_planner.domain.shared.exceptions import (
    ConflictError,
    EntityNotFoundError,
    ValidationError,
)
from workshop_planner.infrastructure.repositories.in_memory import (
    InMemoryAbsenceRepository,
    InMemoryAppointmentRepository,
    InMemoryAssignmentRepository,
    InMemoryTechnicianRepository,
)
from workshop_planner.tests.factories import (
    DAY,
    AbsenceFactory,
    AppointmentFactory,
    AssignmentFactory,
    TechnicianFactory,
    at,
)


def draft_for(appointment, technician, hour, aw=10):
    return AssignmentDraft(
        appointment_id=appointment.id,
        technician_id=technician.id,
        start_time=at(hour),
        end_time=at(hour + 1),
        aw_planned=aw,
    )


class TestRepositories:
    @pytest.mark.asyncio
    async def test_appointments_for_date(self, store, appointment_x):
        placed_elsewhere = AppointmentFactory.create(day=None, scheduled_start=at(8))
        other_day = AppointmentFactory.create(day=DAY.replace(day=12))
        store.add(placed_elsewhere, other_day)
        repo = InMemoryAppointmentRepository(store)

        result = await repo.get_appointments_for_date(DAY)

        ids = {a.id for a in result}
        assert appointment_x.id in ids
        assert placed_elsewhere.id in ids
        assert other_day.id not in ids

    @pytest.mark.asyncio
    async def test_assignments_for_date_are_sorted(self, store, technician):
        late = AssignmentFactory.create(technician.id, start=at(14))
        early = AssignmentFactory.create(technician.id, start=at(8))
        tomorrow = AssignmentFactory.create(technician.id, start=at(8, day=DAY.replace(day=12)))
        store.add(late, early, tomorrow)

        result = await InMemoryAssignmentRepository(store).get_assignments_for_date(DAY)

        assert result == [early, late]

    @pytest.mark.asyncio
    async def test_only_active_technicians(self, store, technician):
        store.add(TechnicianFactory.create(active=False))

        result = await InMemoryTechnicianRepository(store).get_active_technicians()

        assert technician in result
        assert all(t.active for t in result)

    @pytest.mark.asyncio
    async def test_absences_for_date(self, store, technician):
        today = AbsenceFactory.full_day(technician.id)
        store.add(today, AbsenceFactory.full_day(technician.id, day=DAY.replace(day=12)))

        result = await InMemoryAbsenceRepository(store).get_absences_for_date(DAY)

        assert result == [today]

    @pytest.mark.asyncio
    async def test_update_unknown_appointment(self, store):
        repo = InMemoryAppointmentRepository(store)
        missing = uuid4()

        with pytest.raises(EntityNotFoundError):
            await repo.update_appointment(missing, AppointmentPatch(appointment_id=missing))

    @pytest.mark.asyncio
    async def test_update_unknown_assignment(self, store):
        repo = InMemoryAssignmentRepository(store)
        missing = uuid4()

        with pytest.raises(EntityNotFoundError):
            await repo.update_assignment(
                missing, AssignmentPatch(assignment_id=missing, status=AssignmentStatus.CANCELLED)
            )

    @pytest.mark.asyncio
    async def test_injected_failure_fires_once(self, store):
        repo = InMemoryTechnicianRepository(store)
        store.fail_next("get_active_technicians", ConnectionError("db down"))

        with pytest.raises(ConnectionError):
            await repo.get_active_technicians()
        assert len(await repo.get_active_technicians()) == 2

    def test_add_rejects_unknown_entities(self, store):
        with pytest.raises(TypeError):
            store.add(object())


class TestInMemoryUnitOfWork:
    @pytest.mark.asyncio
    async def test_commit_applies_all_writes(self, store, technician, appointment_x):
        draft = draft_for(appointment_x, technician, 9)

        async with store.unit_of_work() as uow:
            created = await uow.assignments.create_assignment(draft)
            await uow.appointments.update_appointment(
                appointment_x.id,
                AppointmentPatch(
                    appointment_id=appointment_x.id,
                    status=AppointmentStatus.SCHEDULED,
                    technician_id=technician.id,
                ),
            )
            assert created.id not in store.assignments

        assert store.assignments[draft.assignment_id].aw_planned == 10
        assert store.appointments[appointment_x.id].status == AppointmentStatus.SCHEDULED

    @pytest.mark.asyncio
    async def test_exception_rolls_back(self, store, technician, appointment_x):
        with pytest.raises(RuntimeError):
            async with store.unit_of_work() as uow:
                await uow.assignments.create_assignment(draft_for(appointment_x, technician, 9))
                raise RuntimeError("abort")

        assert store.assignments == {}

    @pytest.mark.asyncio
    async def test_failed_write_leaves_no_partial_state(self, store, technician, appointment_x):
        store.fail_next("update_appointment", ConnectionError("db down"))

        with pytest.raises(ConnectionError):
            async with store.unit_of_work() as uow:
                await uow.assignments.create_assignment(draft_for(appointment_x, technician, 9))
                await uow.appointments.update_appointment(
                    appointment_x.id,
                    AppointmentPatch(
                        appointment_id=appointment_x.id, status=AppointmentStatus.SCHEDULED
                    ),
                )

        assert store.assignments == {}
        assert store.appointments[appointment_x.id].status == AppointmentStatus.NEW

    @pytest.mark.asyncio
    async def test_failed_commit_rolls_back(self, store, technician, appointment_x):
        store.fail_next("commit", ConnectionError("commit lost"))

        with pytest.raises(ConnectionError):
            async with store.unit_of_work() as uow:
                await uow.assignments.create_assignment(draft_for(appointment_x, technician, 9))

        assert store.assignments == {}

    @pytest.mark.asyncio
    async def test_commit_refuses_overlapping_lane(
        self, store, technician, appointment_x, appointment_y
    ):
        existing = AssignmentFactory.for_appointment(appointment_x, technician, at(9))
        store.add(existing)

        with pytest.raises(ConflictError) as exc_info:
            async with store.unit_of_work() as uow:
                await uow.assignments.create_assignment(
                    AssignmentDraft(
                        appointment_id=appointment_y.id,
                        technician_id=technician.id,
                        start_time=at(9, 30),
                        end_time=at(10, 30),
                        aw_planned=10,
                    )
                )

        assert exc_info.value.conflicting_ids == [existing.id]
        assert list(store.assignments) == [existing.id]

    @pytest.mark.asyncio
    async def test_cancelled_assignments_do_not_block(self, store, technician, appointment_x, appointment_y):
        cancelled = AssignmentFactory.for_appointment(
            appointment_x, technician, at(9), status=AssignmentStatus.CANCELLED
        )
        store.add(cancelled)

        async with store.unit_of_work() as uow:
            await uow.assignments.create_assignment(draft_for(appointment_y, technician, 9))

        assert len(store.assignments) == 2

    @pytest.mark.asyncio
    async def test_commit_refuses_second_live_assignment_of_an_appointment(
        self, store, technician, other_technician, appointment_x
    ):
        existing = AssignmentFactory.for_appointment(appointment_x, technician, at(9))
        store.add(existing)

        with pytest.raises(ValidationError) as exc_info:
            async with store.unit_of_work() as uow:
                await uow.assignments.create_assignment(
                    draft_for(appointment_x, other_technician, 9)
                )

        assert exc_info.value.error_code == "APPOINTMENT_ALREADY_ASSIGNED"
        assert list(store.assignments) == [existing.id]

    @pytest.mark.asyncio
    async def test_cancelled_assignment_frees_its_appointment(
        self, store, technician, other_technician, appointment_x
    ):
        cancelled = AssignmentFactory.for_appointment(
            appointment_x, technician, at(9), status=AssignmentStatus.CANCELLED
        )
        store.add(cancelled)

        async with store.unit_of_work() as uow:
            await uow.assignments.create_assignment(
                draft_for(appointment_x, other_technician, 9)
            )

        live = [a for a in store.assignments.values() if a.is_live]
        assert [a.technician_id for a in live] == [other_technician.id]

    @pytest.mark.asyncio
    async def test_duplicate_assignment_id(self, store, technician, appointment_x):
        draft = draft_for(appointment_x, technician, 9)

        async with store.unit_of_work() as uow:
            await uow.assignments.create_assignment(draft)

        with pytest.raises(ValueError, match="already exists"):
            async with store.unit_of_work() as uow:
                await uow.assignments.create_assignment(draft)

    @pytest.mark.asyncio
    async def test_reads_see_staged_writes(self, store, technician, appointment_x):
        async with store.unit_of_work() as uow:
            await uow.assignments.create_assignment(draft_for(appointment_x, technician, 9))
            staged = await uow.assignments.get_assignments_for_date(DAY)

            assert len(staged) == 1
