"""Database models supporting the recognition app."""

from __future__ import annotations

from django.db import models

from attendance.models import LogSource, PunchType, TimeLog
from employees.models import Employee


class RecognitionAttemptQuerySet(models.QuerySet["RecognitionAttempt"]):
    """Helpers for filtering the recognition audit trail."""

    def successful(self) -> "RecognitionAttemptQuerySet":
        return self.filter(successful=True)

    def failed(self) -> "RecognitionAttemptQuerySet":
        return self.filter(successful=False)


class RecognitionAttempt(models.Model):
    """Persist metadata for each attendance attempt.

    ``employee`` is only set when the attempt resolved to an employee. For a
    rejected face the closest enrolled employee is never stored.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="When the attempt was recorded.",
    )
    employee = models.ForeignKey(
        Employee,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recognition_attempts",
        help_text="Resolved employee for the attempt, if any.",
    )
    type = models.CharField(
        max_length=8,
        choices=PunchType.choices,
        help_text="Whether the attempt was for a check-in or check-out.",
    )
    source = models.CharField(
        max_length=8,
        choices=LogSource.choices,
        default=LogSource.FACE,
    )
    successful = models.BooleanField(
        default=False,
        help_text="True when the attempt produced a time log.",
    )
    distance = models.FloatField(
        null=True,
        blank=True,
        help_text="Best match distance observed for the probe.",
    )
    threshold = models.FloatField(
        null=True,
        blank=True,
        help_text="Distance threshold in force for the attempt.",
    )
    error_message = models.TextField(blank=True)
    latency_ms = models.FloatField(
        null=True,
        blank=True,
        help_text="Processing time of the attempt in milliseconds.",
    )
    time_log = models.ForeignKey(
        TimeLog,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="recognition_attempts",
    )

    objects = RecognitionAttemptQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["employee", "type"], name="recog_attempt_emp_type_idx"),
            models.Index(fields=["successful", "created_at"], name="recog_attempt_success_idx"),
        ]

    def __str__(self) -> str:
        label = str(self.employee_id) if self.employee_id else "unknown"
        status = "success" if self.successful else "failure"
        return f"{label} - {self.get_type_display()} - {status}"
