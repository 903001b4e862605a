"""
Django settings for the face attendance HR service.

This file contains the configuration for the Django project, including database settings,
installed applications, middleware, and the attendance policy parameters.
It is configured to read sensitive values from environment variables for security.
"""

import os
import sys
import warnings
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from django.core.exceptions import ImproperlyConfigured

import dj_database_url

# Define the project's base directory.
# `BASE_DIR` points to the root of the Django project.
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# --- Environment helpers ---


def _get_bool_env(var_name: str, default: bool = False) -> bool:
    """Return a boolean from an environment variable."""

    raw_value = os.environ.get(var_name)
    if raw_value is None:
        return default
    return raw_value.lower() in {"1", "true", "yes", "on"}


def _get_bool_env_with_aliases(
    var_name: str,
    *aliases: str,
    default: bool,
) -> bool:
    """Return a boolean from a canonical environment variable or its aliases."""

    for candidate in (var_name, *aliases):
        raw_value = os.environ.get(candidate)
        if raw_value is not None:
            return raw_value.lower() in {"1", "true", "yes", "on"}
    return default


def _parse_int_env(var_name: str, default: int, *, minimum: int | None = None) -> int:
    """Return an integer from the environment, enforcing an optional minimum."""

    raw_value = os.environ.get(var_name)
    if raw_value is None:
        return default

    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ImproperlyConfigured(f"{var_name} must be an integer if provided.") from exc

    if minimum is not None and value < minimum:
        raise ImproperlyConfigured(f"{var_name} must be >= {minimum} if provided.")

    return value


def _get_float_env(
    var_name: str,
    default: float,
    *,
    minimum: float | None = None,
) -> float:
    """Return a float from the environment with optional lower bound enforcement."""

    raw_value = os.environ.get(var_name)
    if raw_value is None:
        return default

    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ImproperlyConfigured(f"{var_name} must be a float if provided.") from exc

    if minimum is not None and value < minimum:
        raise ImproperlyConfigured(f"{var_name} must be >= {minimum} if provided.")

    return value


def _get_clock_env(var_name: str, default: str) -> str:
    """Return an ``HH:MM`` wall-clock value from the environment."""

    raw_value = os.environ.get(var_name, default).strip()
    hours, sep, minutes = raw_value.partition(":")
    if (
        not sep
        or not hours.isdigit()
        or not minutes.isdigit()
        or not 0 <= int(hours) <= 23
        or not 0 <= int(minutes) <= 59
    ):
        raise ImproperlyConfigured(f"{var_name} must use the HH:MM format.")
    return f"{int(hours):02d}:{int(minutes):02d}"


# --- Security Settings ---

# Detect if we're running tests
TESTING = "test" in sys.argv or (len(sys.argv) > 0 and "pytest" in sys.argv[0])

DEFAULT_SECRET_KEY = "a-secure-default-key-for-development-only"

# Automatically enable DEBUG mode when running tests.
DEBUG = _get_bool_env("DJANGO_DEBUG", default=not TESTING)

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", DEFAULT_SECRET_KEY)
if SECRET_KEY == DEFAULT_SECRET_KEY and not DEBUG and not TESTING:
    raise ImproperlyConfigured(
        "DJANGO_SECRET_KEY must be set to a secure value when DJANGO_DEBUG is not enabled."
    )

LOCALHOST_ALIASES: tuple[str, ...] = ("localhost", "127.0.0.1", "[::1]", "testserver")


def _resolve_allowed_hosts(
    *,
    default_allowed_hosts: Sequence[str],
    require_explicit_hosts: bool,
) -> list[str]:
    """Return the allowed host list based on deployment defaults."""

    allowed_hosts_env = os.environ.get("DJANGO_ALLOWED_HOSTS")
    if allowed_hosts_env:
        return [host.strip() for host in allowed_hosts_env.split(",") if host.strip()]

    if require_explicit_hosts:
        raise ImproperlyConfigured(
            "DJANGO_ALLOWED_HOSTS must be provided (comma separated) when secure defaults are enforced."
        )

    return list(default_allowed_hosts)


def configure_environment(
    *,
    secure_defaults: bool,
    default_allowed_hosts: Sequence[str],
    require_allowed_hosts: bool,
) -> None:
    """Populate security-sensitive settings for the active environment."""

    global ALLOWED_HOSTS
    global SECURE_SSL_REDIRECT
    global SECURE_HSTS_SECONDS
    global SESSION_COOKIE_SECURE
    global CSRF_COOKIE_SECURE

    ALLOWED_HOSTS = _resolve_allowed_hosts(
        default_allowed_hosts=default_allowed_hosts,
        require_explicit_hosts=require_allowed_hosts,
    )

    SECURE_SSL_REDIRECT = _get_bool_env_with_aliases(
        "DJANGO_SECURE_SSL_REDIRECT",
        "SECURE_SSL_REDIRECT",
        default=secure_defaults,
    )
    SECURE_HSTS_SECONDS = _parse_int_env(
        "DJANGO_SECURE_HSTS_SECONDS",
        default=3600 if secure_defaults else 0,
        minimum=0,
    )
    SESSION_COOKIE_SECURE = _get_bool_env_with_aliases(
        "DJANGO_SESSION_COOKIE_SECURE",
        "SESSION_COOKIE_SECURE",
        default=secure_defaults,
    )
    CSRF_COOKIE_SECURE = _get_bool_env_with_aliases(
        "DJANGO_CSRF_COOKIE_SECURE",
        "CSRF_COOKIE_SECURE",
        default=secure_defaults,
    )

    require_database_ssl = _get_bool_env_with_aliases(
        "DATABASE_SSL_REQUIRE",
        "DB_SSL_REQUIRE",
        default=secure_defaults,
    )
    db_options = DATABASES["default"].setdefault("OPTIONS", {})
    if require_database_ssl:
        db_options["sslmode"] = os.environ.get("DATABASE_SSLMODE", "require")
    else:
        db_options.pop("sslmode", None)


# --- Application Configuration ---

INSTALLED_APPS = [
    # Custom applications for this project
    "employees.apps.EmployeesConfig",
    "attendance.apps.AttendanceConfig",
    "recognition.apps.RecognitionConfig",
    # Third-party packages
    "rest_framework",
    "django_ratelimit",
    # Core Django applications
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# The root URL configuration module for the project.
ROOT_URLCONF = "face_attendance_hr.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# WSGI application entry point for production servers.
WSGI_APPLICATION = "face_attendance_hr.wsgi.application"


# --- Database Configuration ---

default_db_url = os.environ.get("DATABASE_URL", f"sqlite:///{(BASE_DIR / 'db.sqlite3').as_posix()}")

database_config = dj_database_url.parse(
    default_db_url,
    conn_max_age=_parse_int_env("DATABASE_CONN_MAX_AGE", 0, minimum=0),
)

DATABASES = {
    "default": database_config,
}


def build_postgres_database_config() -> dict[str, Any]:
    """Return a PostgreSQL configuration derived from discrete environment variables."""

    return {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "attendance"),
        "USER": os.environ.get("DB_USER", "attendance"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "attendance"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "CONN_MAX_AGE": _parse_int_env("DB_CONN_MAX_AGE", 600, minimum=0),
    }


configure_environment(
    secure_defaults=not DEBUG and not TESTING,
    default_allowed_hosts=LOCALHOST_ALIASES,
    require_allowed_hosts=False,
)


# --- Cache Configuration ---
# django-ratelimit counts requests in the default cache. LocMemCache is only
# shared within one process; configure Redis or Memcached for multi-process deployments.
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "face-attendance-hr",
    }
}


# --- Password Validation ---

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]


# --- Internationalization ---

LANGUAGE_CODE = "en-us"
# Local calendar used for attendance day boundaries and lateness.
TIME_ZONE = os.environ.get("DJANGO_TIME_ZONE", "Asia/Ho_Chi_Minh")
USE_I18N = True
USE_TZ = True  # Enable timezone-aware datetimes


# --- Static Files ---

STATIC_URL = "/static/"
STATIC_ROOT = Path(os.environ.get("DJANGO_STATIC_ROOT", BASE_DIR / "staticfiles"))

# Specifies the default primary key field type for new models.
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# --- Django REST framework ---

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
        "rest_framework.parsers.FormParser",
    ],
}


# --- Logging ---

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "attendance": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
        },
        "recognition": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
        },
        "employees": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
        },
    },
}


# --- Celery ---

CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_TIMEZONE = TIME_ZONE

# Celery Beat scheduled tasks configuration
CELERY_BEAT_SCHEDULE = {
    "nightly-work-hours-reconciliation": {
        "task": "attendance.reconcile_work_hours",
        "schedule": 86400,  # Daily
        "kwargs": {"days": 1},
    },
}

_RECONCILE_SCHEDULE = os.environ.get("CELERY_RECONCILE_SCHEDULE")
if _RECONCILE_SCHEDULE:
    try:
        CELERY_BEAT_SCHEDULE["nightly-work-hours-reconciliation"]["schedule"] = int(
            _RECONCILE_SCHEDULE
        )
    except ValueError:
        warnings.warn(
            f"Invalid CELERY_RECONCILE_SCHEDULE value: {_RECONCILE_SCHEDULE!r}. "
            "Expected an integer (seconds). Using default.",
            stacklevel=1,
        )


# --- System Check Silencing ---
# LocMemCache works fine for single-process deployments and CI/testing environments.
SILENCED_SYSTEM_CHECKS = [
    "django_ratelimit.E003",  # LocMemCache not a shared cache
    "django_ratelimit.W001",  # LocMemCache not officially supported
]


# --- Recognition & attendance policy ---

# Maximum Euclidean distance at which a probe descriptor is accepted as an
# enrolled employee. Enrollment and recognition share this single value.
RECOGNITION_DISTANCE_THRESHOLD = _get_float_env(
    "RECOGNITION_DISTANCE_THRESHOLD",
    default=0.4,
    minimum=0.0,
)

# Expected descriptor dimensionality; 0 disables the length check.
FACE_DESCRIPTOR_LENGTH = _parse_int_env("FACE_DESCRIPTOR_LENGTH", 128, minimum=0)

ATTENDANCE_REGULAR_HOURS_PER_DAY = _get_float_env(
    "ATTENDANCE_REGULAR_HOURS_PER_DAY",
    default=8.0,
    minimum=0.0,
)
ATTENDANCE_LATE_CUTOFF = _get_clock_env("ATTENDANCE_LATE_CUTOFF", "08:30")

# Minimum gap between two punches of the same employee; 0 disables the guard.
ATTENDANCE_PUNCH_COOLDOWN_SECONDS = _parse_int_env(
    "ATTENDANCE_PUNCH_COOLDOWN_SECONDS",
    0,
    minimum=0,
)

# Rate limiting configuration for the punch endpoints. Uses django-ratelimit's
# default cache to track request counts. An empty value disables the limit.
RATELIMIT_USE_CACHE = "default"
DEFAULT_ATTENDANCE_RATE_LIMIT = "30/m"
RECOGNITION_ATTENDANCE_RATE_LIMIT = os.environ.get(
    "RECOGNITION_ATTENDANCE_RATE_LIMIT", DEFAULT_ATTENDANCE_RATE_LIMIT
)
