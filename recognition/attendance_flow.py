"""Request-level coordination of a face (or manual) attendance punch.

A face punch goes through decode, match, validate, log and aggregate, in that
order. Decoding, matching and state validation abort before anything is
written. The time log is written inside a transaction that holds a row lock on
the employee, so two concurrent punches of the same person are serialised.
Work hours are refreshed after that transaction, and a failure there is
logged without failing the punch. The refresh does not hold the employee lock,
so two punches landing together can race on the summary row; the loser is
logged as an aggregation failure and the nightly reconciliation repairs it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone
from django.utils.translation import gettext as _

import sentry_sdk

from attendance.exceptions import (
    AggregationFailure,
    AttendanceError,
    EmployeeNotFound,
    StorageFailure,
)
from attendance.models import LogSource, PunchType, TimeLog, WorkHours
from attendance.state import enforce_cooldown, evaluate_transition
from attendance.work_hours import (
    invalidate_work_hours,
    local_work_date,
    logs_for_day,
    update_work_hours,
)
from employees.models import Employee

from .descriptors import RawDescriptor, decode, get_descriptor_length
from .exceptions import NoEnrolledFaces, NoFaceMatch
from .models import RecognitionAttempt
from .pipeline import Candidate, DescriptorMatcher, LinearScanMatcher

logger = logging.getLogger(__name__)


def _record_sentry_breadcrumb(
    *,
    message: str,
    category: str,
    level: str = "info",
    data: Mapping[str, object] | None = None,
) -> None:
    """Add a breadcrumb to the active Sentry scope, swallowing integration errors."""

    try:
        sentry_sdk.add_breadcrumb(
            message=message,
            category=category,
            level=level,
            data=dict(data or {}),
        )
    except Exception:  # pragma: no cover - telemetry is best-effort
        logger.debug("Unable to add Sentry breadcrumb", exc_info=True)


@dataclass(frozen=True)
class AttendanceOutcome:
    """Result of an accepted punch."""

    employee: Employee
    time_log: TimeLog
    distance: Optional[float] = None
    work_hours: Optional[WorkHours] = None

    @property
    def message(self) -> str:
        if self.time_log.type == PunchType.CHECKIN:
            return _("Check-in successful for %(name)s") % {"name": self.employee.full_name}
        return _("Check-out successful for %(name)s") % {"name": self.employee.full_name}


class _RecognitionAttemptLogger:
    """Write one ``RecognitionAttempt`` row per face punch, best-effort."""

    __slots__ = ("_type", "_threshold", "_start_time")

    def __init__(self, punch_type: str, threshold: float) -> None:
        self._type = punch_type
        self._threshold = threshold
        self._start_time = time.perf_counter()

    def _latency_ms(self) -> float:
        return max(0.0, (time.perf_counter() - self._start_time) * 1000.0)

    def log(
        self,
        *,
        successful: bool,
        employee: Optional[Employee] = None,
        distance: Optional[float] = None,
        error: str = "",
        time_log: Optional[TimeLog] = None,
    ) -> Optional[RecognitionAttempt]:
        try:
            with transaction.atomic():
                return RecognitionAttempt.objects.create(
                    employee=employee,
                    type=self._type,
                    source=LogSource.FACE,
                    successful=successful,
                    distance=distance,
                    threshold=self._threshold,
                    error_message=error,
                    latency_ms=self._latency_ms(),
                    time_log=time_log,
                )
        except DatabaseError:
            logger.debug("Unable to persist recognition attempt", exc_info=True)
            return None


def enrolled_candidates() -> list[Candidate]:
    """Load a fresh snapshot of every enrolled descriptor, ordered by employee id.

    Raises:
        StorageFailure: If the employee table cannot be read.
    """

    try:
        rows = Employee.objects.enrolled().order_by("id").values_list("id", "face_descriptor")
        return [Candidate(employee_id=pk, descriptor=descriptor) for pk, descriptor in rows]
    except DatabaseError as exc:
        logger.exception("Failed to load enrolled face descriptors")
        raise StorageFailure() from exc


def _audited_employee(employee_id: Optional[int]) -> Optional[Employee]:
    if employee_id is None:
        return None
    try:
        return Employee.objects.filter(pk=employee_id).first()
    except DatabaseError:
        logger.debug("Unable to load employee for recognition audit", exc_info=True)
        return None


def append_time_log(
    employee_id: int,
    punch_type: str,
    *,
    source: str = LogSource.FACE,
    now: Optional[datetime] = None,
) -> tuple[Employee, TimeLog]:
    """Validate the transition and append the time log under a row lock.

    Raises:
        EmployeeNotFound: If the employee does not exist.
        AttendanceDenied: If the punch is not a legal transition or comes too
            soon after the previous one. Nothing is written.
        StorageFailure: If the database rejects the read or the write.
    """

    now = now or timezone.now()
    work_date = local_work_date(now)
    cooldown = int(getattr(settings, "ATTENDANCE_PUNCH_COOLDOWN_SECONDS", 0) or 0)

    try:
        with transaction.atomic():
            employee = Employee.objects.select_for_update().get(pk=employee_id)
            entries = list(logs_for_day(employee.pk, work_date))
            decision = evaluate_transition(entries, punch_type)
            if not decision.allowed:
                raise decision.to_error(employee.full_name)
            enforce_cooldown(decision.last_entry, now, cooldown, punch_type)
            time_log = TimeLog.objects.create(
                employee=employee,
                log_time=now,
                type=punch_type,
                source=source,
            )
    except Employee.DoesNotExist as exc:
        raise EmployeeNotFound() from exc
    except DatabaseError as exc:
        logger.exception(
            "Failed to persist time log",
            extra={"employee_id": employee_id, "type": punch_type, "source": source},
        )
        raise StorageFailure() from exc

    logger.info(
        "Recorded %s",
        punch_type,
        extra={
            "employee_id": employee.pk,
            "type": punch_type,
            "source": source,
            "time_log_id": time_log.pk,
        },
    )
    return employee, time_log


def refresh_work_hours(employee_id: int, punch_type: str, work_date) -> Optional[WorkHours]:
    """Re-derive the day's summary after a punch.

    A check-out finalises the day; a check-in reopens it, which removes a
    summary that an earlier shift of the same day left behind.

    Raises:
        AggregationFailure: If the summary could not be recomputed or stored.
    """

    try:
        with transaction.atomic():
            if punch_type == PunchType.CHECKOUT:
                return update_work_hours(employee_id, work_date)
            return invalidate_work_hours(employee_id, work_date)
    except Exception as exc:
        raise AggregationFailure(
            details={"employeeId": employee_id, "workDate": work_date.isoformat()}
        ) from exc


def _aggregate_after_punch(employee: Employee, time_log: TimeLog) -> Optional[WorkHours]:
    work_date = local_work_date(time_log.log_time)
    try:
        return refresh_work_hours(employee.pk, time_log.type, work_date)
    except AggregationFailure as exc:
        logger.exception(
            exc.message,
            extra={
                "employee_id": employee.pk,
                "work_date": work_date.isoformat(),
                "time_log_id": time_log.pk,
            },
        )
        _record_sentry_breadcrumb(
            message="Work hours aggregation failed",
            category="attendance.aggregation",
            level="error",
            data={"employee_id": employee.pk, "work_date": work_date.isoformat()},
        )
        return None


def record_face_attendance(
    raw_descriptor: RawDescriptor,
    punch_type: str,
    *,
    matcher: Optional[DescriptorMatcher] = None,
    now: Optional[datetime] = None,
) -> AttendanceOutcome:
    """Identify the employee behind ``raw_descriptor`` and record ``punch_type``.

    Args:
        raw_descriptor: Probe descriptor in any supported wire format.
        punch_type: ``"checkin"`` or ``"checkout"``.
        matcher: Matcher to use; defaults to a linear scan at the configured
            threshold.
        now: Punch timestamp, defaults to the current time.

    Raises:
        InvalidDescriptorFormat: The probe could not be decoded.
        NoEnrolledFaces: Nobody is enrolled.
        NoFaceMatch: No enrolled descriptor is below the threshold.
        AttendanceDenied: The punch is not a legal transition.
        StorageFailure: The time log could not be written.
    """

    if punch_type not in PunchType.values:
        raise ValueError(f"Unsupported attendance action: {punch_type!r}")

    matcher = matcher or LinearScanMatcher()
    attempt_logger = _RecognitionAttemptLogger(punch_type, matcher.threshold)
    _record_sentry_breadcrumb(
        message="Face attendance requested",
        category="attendance.face",
        data={"type": punch_type},
    )

    employee_id: Optional[int] = None
    distance: Optional[float] = None
    try:
        probe = decode(raw_descriptor, expected_length=get_descriptor_length())

        try:
            candidates = enrolled_candidates()
        except DatabaseError as exc:
            raise StorageFailure() from exc
        if not candidates:
            raise NoEnrolledFaces()

        result = matcher.find_best_match(probe, candidates)
        distance = result.reported_distance
        if not result.matched:
            raise NoFaceMatch(distance)

        employee_id = result.employee_id
        employee, time_log = append_time_log(
            employee_id, punch_type, source=LogSource.FACE, now=now
        )
    except AttendanceError as exc:
        logger.info(
            "Face attendance rejected: %s",
            exc.code,
            extra={"type": punch_type, "distance": distance, "employee_id": employee_id},
        )
        attempt_logger.log(
            successful=False,
            employee=_audited_employee(employee_id),
            distance=distance,
            error=exc.message,
        )
        raise

    work_hours = _aggregate_after_punch(employee, time_log)
    attempt_logger.log(
        successful=True,
        employee=employee,
        distance=distance,
        time_log=time_log,
    )
    return AttendanceOutcome(
        employee=employee,
        time_log=time_log,
        distance=distance,
        work_hours=work_hours,
    )


def record_manual_attendance(
    employee_id: int,
    punch_type: str,
    *,
    now: Optional[datetime] = None,
) -> AttendanceOutcome:
    """Record a punch entered by staff, skipping face matching only."""

    if punch_type not in PunchType.values:
        raise ValueError(f"Unsupported attendance action: {punch_type!r}")

    employee, time_log = append_time_log(
        employee_id, punch_type, source=LogSource.MANUAL, now=now
    )
    work_hours = _aggregate_after_punch(employee, time_log)
    return AttendanceOutcome(employee=employee, time_log=time_log, work_hours=work_hours)


__all__ = [
    "AttendanceOutcome",
    "append_time_log",
    "enrolled_candidates",
    "record_face_attendance",
    "record_manual_attendance",
    "refresh_work_hours",
]
