"""
Database models for the employees app.

This module defines the face-relevant subset of the HR roster: departments and
the employees that can be recognised at the attendance kiosk.
"""

from django.db import models


class Department(models.Model):
    """An organisational unit employees belong to."""

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class EmployeeQuerySet(models.QuerySet["Employee"]):
    """Custom queryset with helpers for the recognition flows."""

    def enrolled(self) -> "EmployeeQuerySet":
        """Return only employees that currently have a face descriptor."""

        return self.filter(face_descriptor__isnull=False).exclude(face_descriptor="")


class Employee(models.Model):
    """
    An employee that can check in and out through face recognition.

    ``face_descriptor`` stores the canonical JSON encoding of the employee's
    single current face embedding. Re-enrollment overwrites it and removing the
    face profile sets it back to ``NULL``.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"
        ON_LEAVE = "on_leave", "On leave"

    employee_code = models.CharField(
        max_length=20,
        unique=True,
        help_text="Human readable employee identifier (badge number).",
    )
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    email = models.EmailField(blank=True)
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="employees",
    )
    position = models.CharField(max_length=150, blank=True)
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    face_descriptor = models.TextField(
        null=True,
        blank=True,
        help_text="JSON-encoded face embedding, or empty when not enrolled.",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects: EmployeeQuerySet = EmployeeQuerySet.as_manager()

    class Meta:
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.employee_code} - {self.full_name}"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_enrolled(self) -> bool:
        return bool(self.face_descriptor)
