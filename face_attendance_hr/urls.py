"""
Main URL configuration for the face attendance project.

The JSON API lives under ``/api/`` and the Django admin under ``/admin/``.
"""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("api/", include("recognition.api.urls")),
    path("admin/", admin.site.urls),
]
