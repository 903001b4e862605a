"""
This file contains the app configuration for the employees app.

Django automatically discovers this configuration when the app is included in
the `INSTALLED_APPS` list in the project's settings.
"""

from django.apps import AppConfig


class EmployeesConfig(AppConfig):
    """Configuration class for the employees app."""

    name = "employees"
