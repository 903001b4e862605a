"""Tests for the Celery reconciliation tasks and the management command."""

import datetime as dt
from decimal import Decimal

from django.core.management import call_command
from django.core.management.base import CommandError
from django.utils import timezone

import pytest

from attendance import tasks
from attendance.models import TimeLog, WorkHours

pytestmark = pytest.mark.django_db


@pytest.fixture
def employee(employee_factory):
    return employee_factory()


def _shift(employee, local_dt, day, start=8, end=17):
    TimeLog.objects.create(employee=employee, log_time=local_dt(2024, 5, day, start), type="checkin")
    TimeLog.objects.create(employee=employee, log_time=local_dt(2024, 5, day, end), type="checkout")


def test_recalculate_task_rebuilds_missing_summary(employee, local_dt) -> None:
    _shift(employee, local_dt, 2)

    result = tasks.recalculate_work_hours.apply(args=(employee.pk, "2024-05-02")).get()

    assert result == {"employee_id": employee.pk, "work_date": "2024-05-02", "status": "normal"}
    record = WorkHours.objects.get(employee=employee)
    assert record.ot_hours == Decimal("1.00")


def test_reconcile_range_is_idempotent(employee, employee_factory, local_dt) -> None:
    other = employee_factory()
    _shift(employee, local_dt, 1)
    _shift(employee, local_dt, 2, start=9)
    TimeLog.objects.create(employee=other, log_time=local_dt(2024, 5, 2, 8), type="checkin")

    first = tasks.reconcile_range(dt.date(2024, 5, 1), dt.date(2024, 5, 2))
    second = tasks.reconcile_range(dt.date(2024, 5, 1), dt.date(2024, 5, 2))

    assert first["processed"] == 3
    assert first["persisted"] == 2
    assert first["cleared"] == 1
    assert first == second
    assert WorkHours.objects.count() == 2


def test_reconcile_task_covers_recent_days(employee, local_dt) -> None:
    yesterday = timezone.localdate() - dt.timedelta(days=1)
    for hour, punch_type in ((8, "checkin"), (17, "checkout")):
        TimeLog.objects.create(
            employee=employee,
            log_time=local_dt(yesterday.year, yesterday.month, yesterday.day, hour),
            type=punch_type,
        )

    summary = tasks.reconcile_work_hours.apply(kwargs={"days": 1}).get()

    assert summary["persisted"] >= 1
    assert WorkHours.objects.filter(employee=employee).exists()


def test_reconcile_range_rejects_inverted_dates() -> None:
    with pytest.raises(ValueError):
        tasks.reconcile_range(dt.date(2024, 5, 2), dt.date(2024, 5, 1))


def test_management_command(employee, local_dt, capsys) -> None:
    _shift(employee, local_dt, 2)

    call_command("recalculate_work_hours", "--date", "2024-05-02", "--employee", str(employee.pk))

    output = capsys.readouterr().out
    assert "Processed 1 employee-days" in output
    assert "Persisted: 1" in output
    assert WorkHours.objects.filter(employee=employee, work_date=dt.date(2024, 5, 2)).exists()


@pytest.mark.parametrize(
    "args",
    [
        ["--date", "2024-13-01"],
        ["--days", "-1"],
        ["--employee", "999999"],
    ],
)
def test_management_command_rejects_bad_arguments(args) -> None:
    with pytest.raises(CommandError):
        call_command("recalculate_work_hours", *args)
