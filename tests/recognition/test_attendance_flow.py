"""End-to-end tests for the face attendance orchestration."""

import datetime as dt
from decimal import Decimal

from django.db import DatabaseError

import numpy as np
import pytest

from attendance.exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    EmployeeNotFound,
    NoCheckinYet,
    PunchTooSoon,
    StorageFailure,
)
from attendance.models import TimeLog, WorkHours
from employees.models import Employee
from recognition import attendance_flow
from recognition.attendance_flow import record_face_attendance, record_manual_attendance
from recognition.exceptions import InvalidDescriptorFormat, NoEnrolledFaces, NoFaceMatch
from recognition.models import RecognitionAttempt

pytestmark = pytest.mark.django_db


@pytest.fixture
def descriptor(make_descriptor):
    return make_descriptor(11)


@pytest.fixture
def employee(employee_factory, descriptor, make_descriptor):
    employee_factory(descriptor=make_descriptor(12))
    return employee_factory(descriptor=descriptor)


def test_checkin_creates_log_without_work_hours(employee, descriptor, local_dt) -> None:
    outcome = record_face_attendance(
        descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 8, 0)
    )

    assert outcome.employee == employee
    assert outcome.distance == 0.0
    assert outcome.time_log.type == "checkin"
    assert outcome.time_log.source == "face"
    assert TimeLog.objects.filter(employee=employee).count() == 1
    assert not WorkHours.objects.exists()
    assert "Check-in successful" in outcome.message


def test_second_checkin_is_denied_without_new_log(employee, descriptor, local_dt) -> None:
    record_face_attendance(descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 8, 0))

    with pytest.raises(AlreadyCheckedIn) as excinfo:
        record_face_attendance(descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 8, 1))

    assert excinfo.value.details["currentStatus"] == "checked_in"
    assert TimeLog.objects.filter(employee=employee).count() == 1


def test_checkout_after_checkin_persists_work_hours(employee, descriptor, local_dt) -> None:
    record_face_attendance(descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 8, 0))

    outcome = record_face_attendance(
        descriptor.tolist(), "checkout", now=local_dt(2024, 5, 2, 17, 0)
    )

    assert outcome.time_log.type == "checkout"
    record = WorkHours.objects.get(employee=employee, work_date=dt.date(2024, 5, 2))
    assert record.regular_hours == Decimal("8.00")
    assert record.ot_hours == Decimal("1.00")
    assert record.status == "normal"
    assert outcome.work_hours == record


def test_checkin_after_closed_day_keeps_summary_in_sync(employee, descriptor, local_dt) -> None:
    record_face_attendance(descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 8, 0))
    record_face_attendance(descriptor.tolist(), "checkout", now=local_dt(2024, 5, 2, 12, 0))

    record_face_attendance(descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 13, 0))

    record = WorkHours.objects.get(employee=employee)
    assert record.regular_hours == Decimal("4.00")


def test_state_denials_for_checkout(employee, descriptor, local_dt) -> None:
    with pytest.raises(NoCheckinYet):
        record_face_attendance(descriptor.tolist(), "checkout", now=local_dt(2024, 5, 2, 9, 0))

    record_face_attendance(descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 9, 0))
    record_face_attendance(descriptor.tolist(), "checkout", now=local_dt(2024, 5, 2, 17, 0))
    with pytest.raises(AlreadyCheckedOut):
        record_face_attendance(descriptor.tolist(), "checkout", now=local_dt(2024, 5, 2, 17, 5))

    assert TimeLog.objects.count() == 2


def test_far_probe_is_rejected_without_log(employee, make_descriptor, local_dt) -> None:
    with pytest.raises(NoFaceMatch) as excinfo:
        record_face_attendance(
            make_descriptor(99).tolist(), "checkin", now=local_dt(2024, 5, 2, 8, 0)
        )

    assert excinfo.value.distance > 0.4
    assert excinfo.value.status_code == 401
    assert "employee" not in excinfo.value.details
    assert not TimeLog.objects.exists()


def test_near_probe_within_threshold_matches(employee, descriptor, local_dt) -> None:
    probe = descriptor + 0.01

    outcome = record_face_attendance(
        ",".join(str(value) for value in probe), "checkin", now=local_dt(2024, 5, 2, 8, 0)
    )

    assert outcome.employee == employee
    assert outcome.distance == pytest.approx(np.sqrt(128) * 0.01)


def test_no_enrolled_faces(employee_factory, descriptor) -> None:
    employee_factory()

    with pytest.raises(NoEnrolledFaces):
        record_face_attendance(descriptor.tolist(), "checkin")


def test_invalid_descriptor_aborts_before_matching(employee) -> None:
    with pytest.raises(InvalidDescriptorFormat):
        record_face_attendance("not,a,vector", "checkin")

    with pytest.raises(InvalidDescriptorFormat):
        record_face_attendance([0.1, 0.2], "checkin")

    assert not TimeLog.objects.exists()


def test_corrupt_enrollment_does_not_abort_search(employee_factory, employee, descriptor) -> None:
    employee_factory(face_descriptor="[1, 2, oops")

    outcome = record_face_attendance(descriptor.tolist(), "checkin")

    assert outcome.employee == employee


def test_aggregation_failure_does_not_fail_the_punch(
    employee, descriptor, local_dt, monkeypatch, caplog
) -> None:
    record_face_attendance(descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 8, 0))

    def _explode(*_args, **_kwargs):
        raise RuntimeError("aggregation down")

    monkeypatch.setattr(attendance_flow, "update_work_hours", _explode)

    with caplog.at_level("ERROR", logger="recognition.attendance_flow"):
        outcome = record_face_attendance(
            descriptor.tolist(), "checkout", now=local_dt(2024, 5, 2, 17, 0)
        )

    assert outcome.time_log.type == "checkout"
    assert outcome.work_hours is None
    assert TimeLog.objects.count() == 2
    assert not WorkHours.objects.exists()
    assert any("work hours" in record.getMessage().lower() for record in caplog.records)


def test_storage_failure_is_wrapped(employee, descriptor, monkeypatch) -> None:
    def _fail(*_args, **_kwargs):
        raise DatabaseError("disk full")

    monkeypatch.setattr(TimeLog.objects, "create", _fail)

    with pytest.raises(StorageFailure) as excinfo:
        record_face_attendance(descriptor.tolist(), "checkin")

    assert excinfo.value.status_code == 500


def test_unreadable_enrollments_are_a_storage_failure(employee, descriptor, monkeypatch) -> None:
    def _fail(*_args, **_kwargs):
        raise DatabaseError("connection lost")

    monkeypatch.setattr(Employee.objects, "enrolled", _fail)

    with pytest.raises(StorageFailure):
        record_face_attendance(descriptor.tolist(), "checkin")

    assert not TimeLog.objects.exists()
    attempt = RecognitionAttempt.objects.get()
    assert attempt.successful is False
    assert attempt.employee is None


def test_cooldown_guard(employee, descriptor, local_dt, settings) -> None:
    settings.ATTENDANCE_PUNCH_COOLDOWN_SECONDS = 60
    record_face_attendance(descriptor.tolist(), "checkin", now=local_dt(2024, 5, 2, 8, 0, 0))

    with pytest.raises(PunchTooSoon) as excinfo:
        record_face_attendance(
            descriptor.tolist(), "checkout", now=local_dt(2024, 5, 2, 8, 0, 30)
        )

    assert excinfo.value.details == {"timeLimitSeconds": 30}
    assert TimeLog.objects.count() == 1


def test_attempts_are_audited_without_leaking_closest_employee(
    employee, descriptor, make_descriptor
) -> None:
    record_face_attendance(descriptor.tolist(), "checkin")
    with pytest.raises(NoFaceMatch):
        record_face_attendance(make_descriptor(77).tolist(), "checkout")

    success = RecognitionAttempt.objects.successful().get()
    failure = RecognitionAttempt.objects.failed().get()
    assert success.employee == employee
    assert success.time_log is not None
    assert success.threshold == pytest.approx(0.4)
    assert failure.employee is None
    assert failure.distance > 0.4
    assert failure.error_message


def test_manual_attendance_uses_state_machine(employee, local_dt) -> None:
    outcome = record_manual_attendance(employee.pk, "checkin", now=local_dt(2024, 5, 2, 9, 0))

    assert outcome.time_log.source == "manual"
    with pytest.raises(AlreadyCheckedIn):
        record_manual_attendance(employee.pk, "checkin", now=local_dt(2024, 5, 2, 9, 5))

    record_manual_attendance(employee.pk, "checkout", now=local_dt(2024, 5, 2, 18, 0))
    assert WorkHours.objects.get(employee=employee).status == "late"


def test_manual_attendance_for_unknown_employee() -> None:
    with pytest.raises(EmployeeNotFound):
        record_manual_attendance(999999, "checkin")
