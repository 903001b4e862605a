"""HTTP tests for the work-hours and time-log read endpoints."""

import datetime as dt

from django.urls import reverse

import pytest

from attendance.models import TimeLog
from attendance.work_hours import update_work_hours

pytestmark = pytest.mark.django_db


@pytest.fixture
def employee(employee_factory):
    return employee_factory()


@pytest.fixture
def closed_day(employee, local_dt):
    TimeLog.objects.create(employee=employee, log_time=local_dt(2024, 5, 2, 8, 45), type="checkin")
    TimeLog.objects.create(employee=employee, log_time=local_dt(2024, 5, 2, 18, 15), type="checkout")
    update_work_hours(employee.pk, dt.date(2024, 5, 2))


def test_read_endpoints_require_authentication(client, employee) -> None:
    url = reverse("employee-work-hours", kwargs={"employee_id": employee.pk})

    assert client.get(url).status_code in (401, 403)


def test_employee_work_hours(client, regular_user, employee, closed_day) -> None:
    client.force_login(regular_user)
    url = reverse("employee-work-hours", kwargs={"employee_id": employee.pk})

    body = client.get(url, {"date": "2024-05-02"}).json()

    assert body["regularHours"] == 8.0
    assert body["overtimeHours"] == 1.5
    assert body["regularHoursFormatted"] == "8:00"
    assert body["totalHoursFormatted"] == "9:30"
    assert body["checkinTime"] == "08:45"
    assert body["checkoutTime"] == "18:15"
    assert body["status"] == "late"


def test_employee_work_hours_for_past_day_without_record(client, regular_user, employee) -> None:
    client.force_login(regular_user)
    url = reverse("employee-work-hours", kwargs={"employee_id": employee.pk})

    body = client.get(url, {"date": "2020-01-01"}).json()

    assert body["status"] == "absent"
    assert body["overtimeHoursFormatted"] == "0:00"


def test_invalid_date_is_rejected(client, regular_user, employee) -> None:
    client.force_login(regular_user)
    url = reverse("employee-work-hours", kwargs={"employee_id": employee.pk})

    response = client.get(url, {"date": "02/05/2024"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Invalid request data."
    assert "date" in body["details"]


def test_daily_work_hours_rejects_invalid_date(client, regular_user) -> None:
    client.force_login(regular_user)

    body = client.get(reverse("daily-work-hours"), {"date": "yesterday"}).json()

    assert body["success"] is False
    assert "date" in body["details"]


def test_daily_work_hours(client, regular_user, employee, employee_factory, closed_day) -> None:
    other = employee_factory()
    client.force_login(regular_user)

    body = client.get(reverse("daily-work-hours"), {"date": "2024-05-02"}).json()

    assert body["date"] == "2024-05-02"
    statuses = {row["employeeId"]: row["status"] for row in body["results"]}
    assert statuses == {employee.pk: "late", other.pk: "absent"}


def test_employee_time_logs(client, regular_user, employee, closed_day) -> None:
    client.force_login(regular_user)
    url = reverse("employee-time-logs", kwargs={"employee_id": employee.pk})

    body = client.get(url, {"date": "2024-05-02"}).json()

    assert [entry["type"] for entry in body["results"]] == ["checkin", "checkout"]
    assert body["employeeId"] == employee.pk


def test_unknown_employee_work_hours(client, regular_user) -> None:
    client.force_login(regular_user)

    response = client.get(reverse("employee-work-hours", kwargs={"employee_id": 31337}))

    assert response.status_code == 404
