"""Error taxonomy for the attendance flows.

Every error a punch request can end with derives from :class:`AttendanceError`
so the HTTP layer can translate it into a response without knowing the
individual failure modes.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


class AttendanceError(Exception):
    """Base class for attendance failures that map onto an HTTP response."""

    status_code = 400
    code = "attendance_error"
    default_message = "The attendance request could not be processed."

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = dict(details) if details else {}
        super().__init__(self.message)

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": False, "error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class EmployeeNotFound(AttendanceError):
    status_code = 404
    code = "employee_not_found"
    default_message = "Employee not found."


class AttendanceDenied(AttendanceError):
    """Raised when a punch is not a legal transition for the employee's day."""

    code = "attendance_denied"


class AlreadyCheckedIn(AttendanceDenied):
    code = "already_checked_in"
    default_message = "The employee is already checked in."


class NoCheckinYet(AttendanceDenied):
    code = "no_checkin_yet"
    default_message = "The employee has not checked in today."


class AlreadyCheckedOut(AttendanceDenied):
    code = "already_checked_out"
    default_message = "The employee is already checked out."


class PunchTooSoon(AttendanceDenied):
    status_code = 429
    code = "punch_too_soon"
    default_message = "Please wait before punching again."


class AggregationFailure(AttendanceError):
    """Work-hours derivation failed after the punch was already committed."""

    status_code = 500
    code = "aggregation_failure"
    default_message = "Unable to update the daily work hours."


class StorageFailure(AttendanceError):
    status_code = 500
    code = "storage_failure"
    default_message = "Failed to create time log."


__all__ = [
    "AggregationFailure",
    "AlreadyCheckedIn",
    "AlreadyCheckedOut",
    "AttendanceDenied",
    "AttendanceError",
    "EmployeeNotFound",
    "NoCheckinYet",
    "PunchTooSoon",
    "StorageFailure",
]
