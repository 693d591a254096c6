"""
Unit Tests for Scheduling Entities

Validation rules of the entities, the immutable AW snapshot of an
assignment and the shape of the domain errors.
"""

from datetime import date, time, timedelta
from uuid import uuid4

import pytest
from pydantic import ValidationError as PydanticValidationError

from workshop_planner.domain.scheduling.entities.schedule_assignment import (
    ScheduleAssignment,
)
from workshop_planner.domain.scheduling.value_objects.enums import (
    AppointmentStatus,
    AssignmentStatus,
)
from workshop_planner.domain.scheduling.value_objects.mutations import (
    AppointmentPatch,
    AssignmentDraft,
    AssignmentPatch,
    MutationPlan,
)
from workshop_planner.domain.shared.exceptions import (
    CapacityExceededError,
    CapacityWarning,
    ConflictError,
    DataLoadError,
    ValidationError,
)
from workshop_planner.tests.factories import (
    DAY,
    AbsenceFactory,
    AppointmentFactory,
    AssignmentFactory,
    TechnicianFactory,
    at,
)


class TestScheduleAssignment:
    def test_end_must_follow_start(self):
        with pytest.raises(PydanticValidationError, match="End time must be after"):
            AssignmentFactory.create(uuid4(), start=at(10), end=at(10))

    def test_must_stay_on_one_day(self):
        with pytest.raises(PydanticValidationError, match="same calendar day"):
            AssignmentFactory.create(
                uuid4(), start=at(23), end=at(1, day=DAY + timedelta(days=1))
            )

    def test_aw_planned_is_frozen(self):
        assignment = AssignmentFactory.create(uuid4(), aw_planned=10)

        with pytest.raises(PydanticValidationError):
            assignment.aw_planned = 20

    def test_status_can_change_in_place(self):
        assignment = AssignmentFactory.create(uuid4())

        assignment.status = AssignmentStatus.IN_PROGRESS

        assert assignment.status == AssignmentStatus.IN_PROGRESS

    def test_with_changes_revalidates(self):
        assignment = AssignmentFactory.create(uuid4(), start=at(9), aw_planned=10)

        moved = assignment.with_changes({"start_time": at(11), "end_time": at(12)})

        assert moved.id == assignment.id
        assert moved == assignment
        assert moved.start_time == at(11)
        assert moved.updated_at is not None
        assert assignment.start_time == at(9)
        with pytest.raises(PydanticValidationError):
            assignment.with_changes({"end_time": at(8)})

    def test_half_open_overlap(self):
        assignment = AssignmentFactory.create(uuid4(), start=at(9), aw_planned=10)

        assert assignment.overlaps(at(9, 30), at(11))
        assert not assignment.overlaps(at(10), at(11))
        assert not assignment.overlaps(at(8), at(9))

    def test_day_and_liveness(self):
        cancelled = AssignmentFactory.create(uuid4(), status=AssignmentStatus.CANCELLED)
        completed = AssignmentFactory.create(uuid4(), status=AssignmentStatus.COMPLETED)

        assert cancelled.day == DAY
        assert not cancelled.is_live
        assert completed.is_live

    def test_patch_application_keeps_estimate_snapshot(self):
        assignment = AssignmentFactory.create(uuid4(), aw_planned=10)
        patch = AssignmentPatch(assignment_id=assignment.id, start_time=at(13), end_time=at(14))

        updated = assignment.with_changes(patch.changes())

        assert isinstance(updated, ScheduleAssignment)
        assert updated.aw_planned == 10
        assert updated.status == AssignmentStatus.SCHEDULED


class TestAbsence:
    def test_full_day(self):
        absence = AbsenceFactory.full_day(uuid4())

        assert absence.is_full_day
        assert absence.partial_aw == 0
        assert absence.blocks(at(7), at(8))

    def test_time_range_converts_to_aw(self):
        absence = AbsenceFactory.between(uuid4(), time(9), time(10, 30))

        assert not absence.is_full_day
        assert absence.duration_minutes == 90
        assert absence.partial_aw == 15

    def test_explicit_impact_wins(self):
        absence = AbsenceFactory.partial(uuid4(), aw_impact=12)

        assert absence.partial_aw == 12
        assert not absence.blocks(at(7), at(18))

    def test_range_needs_both_ends(self):
        with pytest.raises(PydanticValidationError, match="both from_time and to_time"):
            AbsenceFactory.partial(uuid4(), aw_impact=5, from_time=time(9))

    def test_range_must_be_ordered(self):
        with pytest.raises(PydanticValidationError, match="after from_time"):
            AbsenceFactory.between(uuid4(), time(12), time(9))

    def test_other_days_are_not_blocked(self):
        absence = AbsenceFactory.full_day(uuid4(), day=date(2024, 3, 12))

        assert not absence.blocks(at(9), at(10))


class TestTechnicianAndAppointment:
    def test_skills_are_normalized(self):
        technician = TechnicianFactory.create(skills={" Diagnostics ", ""})

        assert technician.skills == frozenset({"Diagnostics"})

    def test_lacks_skills(self):
        technician = TechnicianFactory.create(skills={"Brakes", "AC service"})

        assert technician.lacks_skills({"brakes", "ac", "Hybrid"}) == ["Hybrid"]

    def test_capacity_cannot_be_negative(self):
        with pytest.raises(PydanticValidationError):
            TechnicianFactory.create(aw_capacity_per_day=-1)

    def test_unassigned_means_new(self):
        assert AppointmentFactory.create().is_unassigned
        assert not AppointmentFactory.create(status=AppointmentStatus.PAUSED).is_unassigned

    def test_flags(self):
        appointment = AppointmentFactory.create(flags={"vehicle_onsite"})

        assert appointment.vehicle_onsite
        assert not appointment.parts_ordered
        assert appointment.has_flag("vehicle_onsite")


class TestMutations:
    def test_patch_changes_only_set_fields(self):
        patch = AppointmentPatch(
            appointment_id=uuid4(), status=AppointmentStatus.NEW, technician_id=None
        )

        assert patch.changes() == {"status": AppointmentStatus.NEW, "technician_id": None}

    def test_plan_cannot_create_and_patch(self):
        draft = AssignmentDraft(
            appointment_id=uuid4(),
            technician_id=uuid4(),
            start_time=at(9),
            end_time=at(10),
            aw_planned=10,
        )
        patch = AssignmentPatch(assignment_id=uuid4(), status=AssignmentStatus.CANCELLED)

        with pytest.raises(ValueError):
            MutationPlan(operation="place", create_assignment=draft, assignment_patch=patch)

    def test_empty_plan(self):
        plan = MutationPlan(operation="advance_status")

        assert plan.is_empty
        assert not plan.has_warnings


class TestDomainErrors:
    def test_validation_error_to_dict(self):
        error = ValidationError("appointment_id", "abc", "no such appointment", "MISSING_APPOINTMENT")

        assert error.to_dict() == {
            "type": "validation",
            "field": "appointment_id",
            "value": "abc",
            "message": "Validation failed for field 'appointment_id': no such appointment",
            "error_code": "MISSING_APPOINTMENT",
        }

    def test_conflict_error_lists_conflicts(self):
        ids = [uuid4(), uuid4()]
        error = ConflictError(uuid4(), at(9), at(10), ids)

        assert error.conflicting_ids == ids
        assert "09:00-10:00" in error.message
        assert error.to_dict()["type"] == "resource_conflict"

    def test_capacity_warning(self):
        warning = CapacityWarning(uuid4(), DAY, planned_aw=90, effective_capacity_aw=80)

        assert warning.overbooked_aw == 10
        assert warning.to_dict()["type"] == "capacity"
        assert warning.details["overbooked_aw"] == 10

    def test_capacity_exceeded_wraps_warning(self):
        warning = CapacityWarning(uuid4(), DAY, planned_aw=90, effective_capacity_aw=80)

        error = CapacityExceededError(warning)

        assert error.warning is warning
        assert error.message == warning.message

    def test_data_load_error(self):
        error = DataLoadError(DAY, "absences", "timeout")

        assert error.source == "absences"
        assert error.message == "Failed to load absences for 2024-03-11: timeout"
