"""
Daily work-hours derivation from the time-log stream.

The summary for one employee and one local calendar day is always recomputed
from the persisted ``TimeLog`` rows, never from request state, so every caller
(the punch flow, the Celery reconciliation and the management command)
converges on the same ``WorkHours`` row.

A day is only finalised once it has both a check-in and a check-out. A day with
an open shift has no ``WorkHours`` row at all.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from django.conf import settings
from django.db.models.functions import TruncDate
from django.utils import timezone

from employees.models import Employee

from .models import PunchType, TimeLog, WorkHours, WorkHoursStatus

logger = logging.getLogger(__name__)

DEFAULT_REGULAR_HOURS_PER_DAY = Decimal("8")
DEFAULT_LATE_CUTOFF = dt.time(8, 30)

_HOURS_QUANTUM = Decimal("0.01")
_SECONDS_PER_HOUR = Decimal(3600)


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(_HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def _parse_clock(value: str) -> dt.time:
    hours, _, minutes = value.partition(":")
    return dt.time(int(hours), int(minutes))


@dataclass(frozen=True)
class WorkHoursPolicy:
    """Business rules used to turn a day's punches into worked hours."""

    regular_hours_per_day: Decimal = DEFAULT_REGULAR_HOURS_PER_DAY
    late_cutoff: dt.time = DEFAULT_LATE_CUTOFF

    @classmethod
    def from_settings(cls) -> "WorkHoursPolicy":
        regular = getattr(settings, "ATTENDANCE_REGULAR_HOURS_PER_DAY", None)
        cutoff = getattr(settings, "ATTENDANCE_LATE_CUTOFF", None)
        return cls(
            regular_hours_per_day=(
                Decimal(str(regular)) if regular is not None else DEFAULT_REGULAR_HOURS_PER_DAY
            ),
            late_cutoff=_parse_clock(cutoff) if cutoff else DEFAULT_LATE_CUTOFF,
        )

    def is_late(self, first_checkin: dt.datetime) -> bool:
        clock = timezone.localtime(first_checkin).time().replace(second=0, microsecond=0)
        return clock > self.late_cutoff


@dataclass(frozen=True)
class WorkHoursCalculation:
    employee_id: int
    work_date: dt.date
    first_checkin: dt.datetime
    last_checkout: dt.datetime
    regular_hours: Decimal
    ot_hours: Decimal
    status: str

    @property
    def total_hours(self) -> Decimal:
        return self.regular_hours + self.ot_hours


def day_bounds(work_date: dt.date) -> tuple[dt.datetime, dt.datetime]:
    """Return the aware ``[start, end)`` interval of ``work_date`` in the local time zone."""

    tz = timezone.get_current_timezone()
    start = timezone.make_aware(dt.datetime.combine(work_date, dt.time.min), tz)
    end = timezone.make_aware(
        dt.datetime.combine(work_date + dt.timedelta(days=1), dt.time.min), tz
    )
    return start, end


def local_work_date(moment: dt.datetime) -> dt.date:
    return timezone.localdate(moment)


def logs_for_day(employee_id: int, work_date: dt.date):
    """Return the employee's time logs of ``work_date`` in chronological order."""

    start, end = day_bounds(work_date)
    return TimeLog.objects.filter(
        employee_id=employee_id,
        log_time__gte=start,
        log_time__lt=end,
    ).order_by("log_time", "id")


def derive_work_hours(
    employee_id: int,
    work_date: dt.date,
    entries: Iterable[TimeLog],
    policy: Optional[WorkHoursPolicy] = None,
) -> Optional[WorkHoursCalculation]:
    """Reduce one day of punches to a :class:`WorkHoursCalculation`.

    Returns ``None`` when the day has no check-in or no check-out yet. The
    earliest check-in and the latest check-out bound the worked interval, so
    duplicated punches of the same type do not change the result.
    """

    policy = policy or WorkHoursPolicy.from_settings()
    checkins = [entry.log_time for entry in entries if entry.type == PunchType.CHECKIN]
    checkouts = [entry.log_time for entry in entries if entry.type == PunchType.CHECKOUT]
    if not checkins or not checkouts:
        return None

    first_checkin = min(checkins)
    last_checkout = max(checkouts)
    seconds = Decimal(str((last_checkout - first_checkin).total_seconds()))
    worked = seconds / _SECONDS_PER_HOUR

    if worked < 0:
        logger.warning(
            "Last checkout precedes first checkin; clamping work hours to zero",
            extra={"employee_id": employee_id, "work_date": work_date.isoformat()},
        )
        regular = ot = Decimal("0")
        status = WorkHoursStatus.ERROR
    else:
        cap = policy.regular_hours_per_day
        regular = min(worked, cap)
        ot = max(Decimal("0"), worked - cap)
        status = WorkHoursStatus.LATE if policy.is_late(first_checkin) else WorkHoursStatus.NORMAL

    return WorkHoursCalculation(
        employee_id=employee_id,
        work_date=work_date,
        first_checkin=first_checkin,
        last_checkout=last_checkout,
        regular_hours=_quantize(regular),
        ot_hours=_quantize(ot),
        status=str(status),
    )


def calculate_work_hours(
    employee_id: int,
    work_date: dt.date,
    policy: Optional[WorkHoursPolicy] = None,
) -> Optional[WorkHoursCalculation]:
    """Recompute the summary of ``work_date`` from the persisted time logs."""

    return derive_work_hours(employee_id, work_date, list(logs_for_day(employee_id, work_date)), policy)


def persist_work_hours(calculation: WorkHoursCalculation) -> WorkHours:
    """Upsert ``calculation`` keyed by ``(employee, work_date)``."""

    record, created = WorkHours.objects.update_or_create(
        employee_id=calculation.employee_id,
        work_date=calculation.work_date,
        defaults={
            "first_checkin": calculation.first_checkin,
            "last_checkout": calculation.last_checkout,
            "regular_hours": calculation.regular_hours,
            "ot_hours": calculation.ot_hours,
            "status": calculation.status,
        },
    )
    logger.info(
        "%s work hours record",
        "Created" if created else "Updated",
        extra={
            "employee_id": calculation.employee_id,
            "work_date": calculation.work_date.isoformat(),
            "regular_hours": str(calculation.regular_hours),
            "ot_hours": str(calculation.ot_hours),
            "status": calculation.status,
        },
    )
    return record


def update_work_hours(employee_id: int, work_date: dt.date) -> Optional[WorkHours]:
    """Calculate and persist the summary; leaves storage untouched for an open day."""

    calculation = calculate_work_hours(employee_id, work_date)
    if calculation is None:
        logger.debug(
            "No complete shift to summarise",
            extra={"employee_id": employee_id, "work_date": work_date.isoformat()},
        )
        return None
    return persist_work_hours(calculation)


def invalidate_work_hours(employee_id: int, work_date: dt.date) -> Optional[WorkHours]:
    """Bring the stored summary in line with the logs, deleting it for an open day."""

    calculation = calculate_work_hours(employee_id, work_date)
    if calculation is not None:
        return persist_work_hours(calculation)

    deleted, _ = WorkHours.objects.filter(employee_id=employee_id, work_date=work_date).delete()
    if deleted:
        logger.info(
            "Removed stale work hours record",
            extra={"employee_id": employee_id, "work_date": work_date.isoformat()},
        )
    return None


def logged_days(
    start_date: dt.date,
    end_date: dt.date,
    employee_id: Optional[int] = None,
) -> list[tuple[int, dt.date]]:
    """Return the distinct ``(employee_id, local date)`` pairs with logs in the range."""

    start, _ = day_bounds(start_date)
    _, end = day_bounds(end_date)
    queryset = TimeLog.objects.filter(log_time__gte=start, log_time__lt=end)
    if employee_id is not None:
        queryset = queryset.filter(employee_id=employee_id)
    pairs = (
        queryset.annotate(work_date=TruncDate("log_time", tzinfo=timezone.get_current_timezone()))
        .values_list("employee_id", "work_date")
        .distinct()
        .order_by("employee_id", "work_date")
    )
    return list(pairs)


# --- Read path -------------------------------------------------------------


def format_hours(value: Decimal | float | int | None) -> str:
    """Render a decimal hour amount as ``H:MM``."""

    minutes = int((Decimal(str(value or 0)) * 60).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    hours, minutes = divmod(max(minutes, 0), 60)
    return f"{hours}:{minutes:02d}"


def _clock(value: Optional[dt.datetime]) -> Optional[str]:
    return timezone.localtime(value).strftime("%H:%M") if value else None


def _summary(record: Optional[WorkHours], work_date: dt.date, today: dt.date) -> dict:
    if record is None:
        return {
            "date": work_date.isoformat(),
            "regularHours": 0.0,
            "overtimeHours": 0.0,
            "regularHoursFormatted": format_hours(0),
            "overtimeHoursFormatted": format_hours(0),
            "totalHoursFormatted": format_hours(0),
            "checkinTime": None,
            "checkoutTime": None,
            "status": WorkHoursStatus.ABSENT.value if work_date < today else None,
        }

    regular = Decimal(record.regular_hours)
    overtime = Decimal(record.ot_hours)
    return {
        "date": work_date.isoformat(),
        "regularHours": float(regular),
        "overtimeHours": float(overtime),
        "regularHoursFormatted": format_hours(regular),
        "overtimeHoursFormatted": format_hours(overtime),
        "totalHoursFormatted": format_hours(regular + overtime),
        "checkinTime": _clock(record.first_checkin),
        "checkoutTime": _clock(record.last_checkout),
        "status": record.status,
    }


def summarize_work_hours(
    employee: Employee,
    work_date: dt.date,
    today: Optional[dt.date] = None,
) -> dict:
    """Return the read-side summary of one employee's day.

    A past day without a stored record reads as ``absent``; today and future
    days without one have no status yet.
    """

    today = today or timezone.localdate()
    record = WorkHours.objects.filter(employee=employee, work_date=work_date).first()
    summary = _summary(record, work_date, today)
    summary["employeeId"] = employee.pk
    return summary


def daily_work_hours(work_date: dt.date, today: Optional[dt.date] = None) -> list[dict]:
    """Return the summary of ``work_date`` for every employee on the roster."""

    today = today or timezone.localdate()
    records = {
        record.employee_id: record
        for record in WorkHours.objects.filter(work_date=work_date)
    }
    rows: list[dict] = []
    employees: Sequence[Employee] = list(Employee.objects.select_related("department"))
    for employee in employees:
        summary = _summary(records.get(employee.pk), work_date, today)
        summary.update(
            {
                "employeeId": employee.pk,
                "employeeCode": employee.employee_code,
                "employeeName": employee.full_name,
                "department": employee.department.name if employee.department else None,
            }
        )
        rows.append(summary)
    return rows


__all__ = [
    "DEFAULT_LATE_CUTOFF",
    "DEFAULT_REGULAR_HOURS_PER_DAY",
    "WorkHoursCalculation",
    "WorkHoursPolicy",
    "calculate_work_hours",
    "daily_work_hours",
    "day_bounds",
    "derive_work_hours",
    "format_hours",
    "invalidate_work_hours",
    "local_work_date",
    "logged_days",
    "logs_for_day",
    "persist_work_hours",
    "summarize_work_hours",
    "update_work_hours",
]
