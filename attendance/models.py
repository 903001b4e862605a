"""
Database models for the attendance app.

``TimeLog`` rows form the append-only punch stream of every employee, while
``WorkHours`` rows are the daily summaries derived from that stream by
:mod:`attendance.work_hours`.
"""

from django.db import models
from django.utils import timezone

from employees.models import Employee


class PunchType(models.TextChoices):
    """Supported attendance actions."""

    CHECKIN = "checkin", "Check-in"
    CHECKOUT = "checkout", "Check-out"


class LogSource(models.TextChoices):
    """Component that produced a time log."""

    FACE = "face", "Face recognition"
    MANUAL = "manual", "Manual entry"


class TimeLog(models.Model):
    """
    Records a single check-in or check-out event for an employee.

    Entries are never updated. Several entries per employee and day are
    expected and are interpreted by their order in time.
    """

    employee = models.ForeignKey(
        Employee,
        on_delete=models.CASCADE,
        related_name="time_logs",
        help_text="The employee this time entry belongs to.",
    )
    log_time = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="The exact time of the event.",
    )
    type = models.CharField(max_length=8, choices=PunchType.choices)
    source = models.CharField(
        max_length=8,
        choices=LogSource.choices,
        default=LogSource.FACE,
    )

    class Meta:
        ordering = ["log_time", "id"]
        indexes = [
            models.Index(fields=["employee", "log_time"], name="attendance_log_emp_time_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.employee_id} - {self.log_time:%Y-%m-%d %H:%M:%S} - {self.get_type_display()}"


class WorkHoursStatus(models.TextChoices):
    NORMAL = "normal", "Normal"
    LATE = "late", "Late"
    ABSENT = "absent", "Absent"
    ERROR = "error", "Error"


class WorkHours(models.Model):
    """Daily worked-hours summary derived from an employee's time logs."""

    employee = models.ForeignKey(
        Employee,
        on_delete=models.CASCADE,
        related_name="work_hours",
    )
    work_date = models.DateField(db_index=True)
    first_checkin = models.DateTimeField()
    last_checkout = models.DateTimeField(null=True, blank=True)
    regular_hours = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    ot_hours = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    status = models.CharField(
        max_length=8,
        choices=WorkHoursStatus.choices,
        default=WorkHoursStatus.NORMAL,
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-work_date", "employee_id"]
        verbose_name_plural = "Work hours"
        constraints = [
            models.UniqueConstraint(
                fields=["employee", "work_date"],
                name="attendance_workhours_employee_date_uniq",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.employee_id} - {self.work_date} - {self.status}"
