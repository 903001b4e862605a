"""
This file contains the app configuration for the recognition app.

Django automatically discovers this configuration when the app is included in
the `INSTALLED_APPS` list in the project's settings.
"""

from django.apps import AppConfig


class RecognitionConfig(AppConfig):
    """
    Configuration class for the recognition app.

    The app owns descriptor decoding, matching and the face attendance flow.
    """

    name = "recognition"
