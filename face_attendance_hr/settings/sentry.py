"""Sentry configuration helpers used by production deployments."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from typing import Any

from django.core.exceptions import ImproperlyConfigured

import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.django import DjangoIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from . import base as base_settings

__all__ = ["initialize_sentry"]

_SENSITIVE_HEADERS = {"authorization", "cookie", "set-cookie"}

# Request body keys that carry biometric data and must never leave the service.
_SENSITIVE_BODY_KEYS = {"faceDescriptor", "descriptor"}


def _get_sample_rate(var_name: str, default: float) -> float:
    """Return a tracing sample rate constrained between 0.0 and 1.0 inclusive."""

    raw_value = os.environ.get(var_name)
    if raw_value is None:
        return default
    try:
        value = float(raw_value)
    except ValueError as exc:
        raise ImproperlyConfigured(
            f"{var_name} must be a floating point number between 0.0 and 1.0."
        ) from exc
    if not 0.0 <= value <= 1.0:
        raise ImproperlyConfigured(f"{var_name} must be between 0.0 and 1.0 when provided.")
    return value


def _scrub_request(request: dict[str, Any]) -> None:
    """Remove sensitive headers and descriptor payloads from captured events in-place."""

    headers = request.get("headers")
    if isinstance(headers, Mapping):
        for header in _SENSITIVE_HEADERS:
            if header in headers:
                headers[header] = "[Filtered]"

    data = request.get("data")
    if isinstance(data, dict):
        for key in _SENSITIVE_BODY_KEYS & data.keys():
            data[key] = "[Filtered]"


def initialize_sentry() -> None:
    """Initialise Sentry SDK when a DSN is supplied via the environment."""

    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return

    send_default_pii = base_settings._get_bool_env("SENTRY_SEND_DEFAULT_PII", default=False)

    def _before_send(event: dict[str, Any], _hint: object | None) -> dict[str, Any] | None:
        request = event.get("request")
        if isinstance(request, dict):
            _scrub_request(request)
        if not send_default_pii:
            event.pop("user", None)
        return event

    sentry_sdk.init(
        dsn=dsn,
        environment=os.environ.get("SENTRY_ENVIRONMENT", "production"),
        release=os.environ.get("SENTRY_RELEASE"),
        integrations=[
            DjangoIntegration(transaction_style="url"),
            CeleryIntegration(),
            LoggingIntegration(level=None, event_level=logging.ERROR),
        ],
        traces_sample_rate=_get_sample_rate("SENTRY_TRACES_SAMPLE_RATE", default=0.0),
        send_default_pii=send_default_pii,
        before_send=_before_send,
    )
