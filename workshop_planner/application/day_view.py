"""
Day view loading and session state.

DaySnapshotLoader fetches the four collections of a day concurrently and
only builds a snapshot once all of them arrived. DayViewSession tracks the
selected date, discards responses for dates that are no longer selected,
applies the priority and status filters and exposes the lanes and KPIs.
"""

import asyncio
from collections.abc import Awaitable, Iterable
from datetime import date, timedelta
from typing import TypeVar

from ..core.observability import get_logger
from ..domain.scheduling.entities.appointment import Appointment
from ..domain.scheduling.entities.day_snapshot import DaySnapshot
from ..domain.scheduling.events.domain_events import (
    DayDataChanged,
    DaySnapshotLoaded,
    DaySnapshotLoadFailed,
)
from ..domain.scheduling.read_models.utilization_report import (
    DayKPIs,
    TechnicianLane,
    UtilizationReport,
    UtilizationReporter,
)
from ..domain.scheduling.repositories.absence_repository import AbsenceRepository
from ..domain.scheduling.repositories.appointment_repository import (
    AppointmentRepository,
)
from ..domain.scheduling.repositories.assignment_repository import (
    AssignmentRepository,
)
from ..domain.scheduling.repositories.technician_repository import (
    TechnicianRepository,
)
from ..domain.scheduling.services.conflict_detector import ConflictDetector
from ..domain.scheduling.value_objects.enums import AppointmentStatus, PriorityLevel
from ..domain.shared.exceptions import DataLoadError
from ..infrastructure.events.event_bus import InMemoryEventBus

logger = get_logger(__name__)

T = TypeVar("T")


class DaySnapshotLoader:
    """Loads the complete day snapshot from the repositories."""

    def __init__(
        self,
        appointments: AppointmentRepository,
        assignments: AssignmentRepository,
        technicians: TechnicianRepository,
        absences: AbsenceRepository,
    ) -> None:
        self._appointments = appointments
        self._assignments = assignments
        self._technicians = technicians
        self._absences = absences
        self._conflicts = ConflictDetector()

    async def load(self, day: date) -> DaySnapshot:
        """
        Fetch appointments, assignments, absences and technicians for ``day``.

        Args:
            day: Calendar day to load

        Returns:
            Snapshot built from all four collections

        Raises:
            DataLoadError: If any collection failed to load, chained to the
                collaborator error
        """
        appointments, assignments, absences, technicians = await asyncio.gather(
            self._fetch(
                day, "appointments", self._appointments.get_appointments_for_date(day)
            ),
            self._fetch(
                day, "assignments", self._assignments.get_assignments_for_date(day)
            ),
            self._fetch(day, "absences", self._absences.get_absences_for_date(day)),
            self._fetch(day, "technicians", self._technicians.get_active_technicians()),
        )
        snapshot = DaySnapshot(
            day=day,
            technicians=tuple(technicians),
            appointments=tuple(appointments),
            assignments=tuple(assignments),
            absences=tuple(absences),
        )

        overlapping = self._conflicts.overlapping_pairs(snapshot.assignments)
        if overlapping:
            logger.warning(
                "overlapping_assignments_loaded",
                day=day.isoformat(),
                pairs=[(str(a.id), str(b.id)) for a, b in overlapping],
            )
        return snapshot

    @staticmethod
    async def _fetch(day: date, source: str, call: Awaitable[Iterable[T]]) -> list[T]:
        try:
            return list(await call)
        except Exception as exc:
            logger.error(
                "day_data_load_failed", day=day.isoformat(), source=source, error=str(exc)
            )
            raise DataLoadError(day, source, str(exc)) from exc


class DayViewSession:
    """
    State of one user's day view.

    Snapshots are cached per date; a failed load drops the snapshot of the
    date it was for, leaves other dates untouched and can be retried. When
    the selected date changes while a load is in flight, the late response
    is dropped.
    """

    def __init__(
        self,
        loader: DaySnapshotLoader,
        event_bus: InMemoryEventBus | None = None,
        reporter: UtilizationReporter | None = None,
        selected_day: date | None = None,
    ) -> None:
        self._loader = loader
        self._event_bus = event_bus
        self._reporter = reporter or UtilizationReporter()
        self._snapshots: dict[date, DaySnapshot] = {}
        self._generation = 0
        self.selected_day: date = selected_day or date.today()
        self.last_error: DataLoadError | None = None
        self.priority_filter: PriorityLevel | None = None
        self.status_filter: AppointmentStatus | None = None

        if event_bus is not None:
            event_bus.subscribe_async(DayDataChanged, self._on_day_data_changed)

    # Navigation

    async def select_day(self, day: date) -> DaySnapshot | None:
        """
        Make ``day`` the selected date and load its snapshot.

        Returns:
            The loaded snapshot, or None when another date was selected
            before the response arrived

        Raises:
            DataLoadError: If loading the still-selected date failed
        """
        self.selected_day = day
        self._generation += 1
        generation = self._generation

        try:
            snapshot = await self._loader.load(day)
        except DataLoadError as exc:
            if generation != self._generation:
                logger.info("stale_day_load_failure_ignored", day=day.isoformat())
                return None
            self._snapshots.pop(day, None)
            self.last_error = exc
            await self._publish(
                DaySnapshotLoadFailed(day=day, source=exc.source, reason=exc.message)
            )
            raise

        if generation != self._generation:
            logger.info(
                "stale_day_snapshot_discarded",
                day=day.isoformat(),
                selected_day=self.selected_day.isoformat(),
            )
            return None

        self._snapshots[day] = snapshot
        self.last_error = None
        await self._publish(
            DaySnapshotLoaded(
                day=day,
                appointment_count=len(snapshot.appointments),
                assignment_count=len(snapshot.assignments),
                absence_count=len(snapshot.absences),
            )
        )
        return snapshot

    async def next_day(self) -> DaySnapshot | None:
        return await self.select_day(self.selected_day + timedelta(days=1))

    async def previous_day(self) -> DaySnapshot | None:
        return await self.select_day(self.selected_day - timedelta(days=1))

    async def today(self) -> DaySnapshot | None:
        return await self.select_day(date.today())

    async def refresh(self) -> DaySnapshot | None:
        """Reload the selected date."""
        return await self.select_day(self.selected_day)

    async def retry(self) -> DaySnapshot | None:
        """Reload the selected date after a DataLoadError."""
        if self.last_error is None:
            logger.debug("retry_without_error", day=self.selected_day.isoformat())
        return await self.refresh()

    # Filters

    def set_filters(
        self,
        priority: PriorityLevel | str | None = None,
        status: AppointmentStatus | str | None = None,
    ) -> None:
        """Restrict the visible appointments; None means all."""
        self.priority_filter = PriorityLevel(priority) if priority else None
        self.status_filter = AppointmentStatus(status) if status else None

    def clear_filters(self) -> None:
        self.set_filters()

    # Views of the selected date

    @property
    def snapshot(self) -> DaySnapshot | None:
        return self._snapshots.get(self.selected_day)

    def cached_snapshot(self, day: date) -> DaySnapshot | None:
        return self._snapshots.get(day)

    @property
    def is_loaded(self) -> bool:
        return self.snapshot is not None

    @property
    def visible_appointments(self) -> list[Appointment]:
        snapshot = self.snapshot
        if snapshot is None:
            return []
        return [
            a
            for a in snapshot.appointments
            if (self.priority_filter is None or a.priority == self.priority_filter)
            and (self.status_filter is None or a.status == self.status_filter)
        ]

    @property
    def unassigned_appointments(self) -> list[Appointment]:
        """The buffer: visible appointments still waiting for a lane."""
        return [a for a in self.visible_appointments if a.is_unassigned]

    def report(self) -> UtilizationReport | None:
        snapshot = self.snapshot
        if snapshot is None:
            return None
        return self._reporter.report(snapshot, self.visible_appointments)

    @property
    def lanes(self) -> list[TechnicianLane]:
        report = self.report()
        return list(report.lanes) if report else []

    @property
    def kpis(self) -> DayKPIs | None:
        report = self.report()
        return report.kpis if report else None

    # Event handling

    async def _on_day_data_changed(self, event: DayDataChanged) -> None:
        if event.day in self._snapshots and event.day != self.selected_day:
            # Cached copy of another date is outdated; reload it when selected again
            del self._snapshots[event.day]
            return
        if event.day == self.selected_day:
            await self.refresh()

    async def _publish(self, event) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish_async(event)
