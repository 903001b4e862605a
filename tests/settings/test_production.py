"""Smoke tests for the production settings module."""

from __future__ import annotations

import importlib
import sys

import pytest
from django.core.exceptions import ImproperlyConfigured


def _reload_production_settings():
    """Force a reload of the production settings module for isolation."""

    for module in [
        "face_attendance_hr.settings.production",
        "face_attendance_hr.settings.base",
    ]:
        sys.modules.pop(module, None)
    return importlib.import_module("face_attendance_hr.settings.production")


@pytest.fixture
def production_env(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("SENTRY_DSN", raising=False)
    monkeypatch.setenv("DJANGO_SECRET_KEY", "ci-secret")
    monkeypatch.setenv("DJANGO_ALLOWED_HOSTS", "attendance.example.com, kiosk.example.com")
    monkeypatch.setenv("DB_NAME", "ci_db")
    monkeypatch.setenv("DB_USER", "ci_user")
    monkeypatch.setenv("DB_PASSWORD", "ci_password")
    monkeypatch.setenv("DB_HOST", "postgres")
    monkeypatch.setenv("DB_PORT", "6543")
    monkeypatch.setenv("DB_CONN_MAX_AGE", "120")
    yield
    for module in [
        "face_attendance_hr.settings.production",
        "face_attendance_hr.settings.base",
    ]:
        sys.modules.pop(module, None)


def test_production_database_configuration(production_env):
    settings = _reload_production_settings()

    database = settings.DATABASES["default"]
    assert database["ENGINE"] == "django.db.backends.postgresql"
    assert database["NAME"] == "ci_db"
    assert database["USER"] == "ci_user"
    assert database["HOST"] == "postgres"
    assert database["PORT"] == "6543"
    assert database["CONN_MAX_AGE"] == 120
    assert database["OPTIONS"]["sslmode"] == "require"


def test_production_hardens_security_settings(production_env):
    settings = _reload_production_settings()

    assert settings.DEBUG is False
    assert settings.ALLOWED_HOSTS == ["attendance.example.com", "kiosk.example.com"]
    assert settings.SECURE_SSL_REDIRECT is True
    assert settings.SESSION_COOKIE_SECURE is True
    assert settings.SECURE_HSTS_SECONDS == 3600


def test_production_requires_allowed_hosts(production_env, monkeypatch):
    monkeypatch.delenv("DJANGO_ALLOWED_HOSTS")

    with pytest.raises(ImproperlyConfigured):
        _reload_production_settings()


def test_policy_settings_are_validated(production_env, monkeypatch):
    monkeypatch.setenv("ATTENDANCE_LATE_CUTOFF", "8h30")

    with pytest.raises(ImproperlyConfigured):
        _reload_production_settings()


def test_policy_settings_read_environment(production_env, monkeypatch):
    monkeypatch.setenv("RECOGNITION_DISTANCE_THRESHOLD", "0.35")
    monkeypatch.setenv("ATTENDANCE_LATE_CUTOFF", "9:05")
    monkeypatch.setenv("ATTENDANCE_PUNCH_COOLDOWN_SECONDS", "60")

    settings = _reload_production_settings()

    assert settings.RECOGNITION_DISTANCE_THRESHOLD == 0.35
    assert settings.ATTENDANCE_LATE_CUTOFF == "09:05"
    assert settings.ATTENDANCE_PUNCH_COOLDOWN_SECONDS == 60
