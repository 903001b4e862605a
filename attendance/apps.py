"""
This file contains the app configuration for the attendance app.

Django automatically discovers this configuration when the app is included in
the `INSTALLED_APPS` list in the project's settings.
"""

from django.apps import AppConfig


class AttendanceConfig(AppConfig):
    """Configuration class for the attendance app."""

    name = "attendance"
