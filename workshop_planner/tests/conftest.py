from collections.abc import Callable

import pytest

from workshop_planner.application.day_view import DaySnapshotLoader, DayViewSession
from workshop_planner.application.planner_service import DayPlannerService
from workshop_planner.domain.scheduling.entities.appointment import Appointment
from workshop_planner.domain.scheduling.entities.technician import Technician
from workshop_planner.domain.scheduling.services.assignment_scheduler import (
    AssignmentScheduler,
)
from workshop_planner.domain.scheduling.value_objects.time_grid import TimeGrid
from workshop_planner.infrastructure.events.event_bus import InMemoryEventBus
from workshop_planner.infrastructure.repositories.in_memory import (
    InMemoryAbsenceRepository,
    InMemoryAppointmentRepository,
    InMemoryAssignmentRepository,
    InMemoryPlannerStore,
    InMemoryTechnicianRepository,
)
from workshop_planner.tests.factories import AppointmentFactory, TechnicianFactory


@pytest.fixture
def time_grid() -> TimeGrid:
    """Standard 07:00-18:00 grid with 15 minute slots."""
    return TimeGrid(start_hour=7, end_hour=18, slot_minutes=15)


@pytest.fixture
def scheduler(time_grid) -> AssignmentScheduler:
    return AssignmentScheduler(
        time_grid=time_grid, capacity_policy="warn", overflow_policy="allow"
    )


@pytest.fixture
def technician() -> Technician:
    return TechnicianFactory.create(name="Anna", aw_capacity_per_day=80)


@pytest.fixture
def other_technician() -> Technician:
    return TechnicianFactory.create(name="Ben", aw_capacity_per_day=80)


@pytest.fixture
def appointment_x() -> Appointment:
    return AppointmentFactory.create(title="Appointment X", aw_estimate=10)


@pytest.fixture
def appointment_y() -> Appointment:
    return AppointmentFactory.create(title="Appointment Y", aw_estimate=10)


@pytest.fixture
def store(technician, other_technician, appointment_x, appointment_y) -> InMemoryPlannerStore:
    return InMemoryPlannerStore(
        technicians=[technician, other_technician],
        appointments=[appointment_x, appointment_y],
    )


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def loader(store) -> DaySnapshotLoader:
    return DaySnapshotLoader(
        appointments=InMemoryAppointmentRepository(store),
        assignments=InMemoryAssignmentRepository(store),
        technicians=InMemoryTechnicianRepository(store),
        absences=InMemoryAbsenceRepository(store),
    )


@pytest.fixture
def planner_service(store, loader, event_bus, scheduler) -> DayPlannerService:
    return DayPlannerService(
        unit_of_work_factory=store.unit_of_work,
        loader=loader,
        event_bus=event_bus,
        scheduler=scheduler,
    )


@pytest.fixture
def session_factory(loader, event_bus) -> Callable[..., DayViewSession]:
    def _make(**kwargs) -> DayViewSession:
        return DayViewSession(loader, event_bus=event_bus, **kwargs)

    return _make
