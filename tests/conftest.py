import datetime as dt

from django.core.cache import cache
from django.utils import timezone

import numpy as np
import pytest

from recognition.descriptors import encode

DESCRIPTOR_LENGTH = 128


@pytest.fixture(autouse=True)
def clear_rate_limit_cache(settings):
    """Start every test with an empty cache and without the punch rate limit."""

    settings.RECOGNITION_ATTENDANCE_RATE_LIMIT = ""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def make_descriptor():
    """Return a factory producing reproducible 128-d descriptors."""

    def _make(seed: int) -> np.ndarray:
        rng = np.random.default_rng(seed)
        return rng.normal(0.0, 1.0, DESCRIPTOR_LENGTH)

    return _make


@pytest.fixture
def department(db):
    from employees.models import Department

    return Department.objects.create(name="Engineering")


@pytest.fixture
def employee_factory(db, department):
    from employees.models import Employee

    counter = {"value": 0}

    def _create(descriptor=None, **overrides) -> Employee:
        counter["value"] += 1
        index = counter["value"]
        fields = {
            "employee_code": f"EMP{index:03d}",
            "first_name": f"Employee{index}",
            "last_name": "Tester",
            "department": department,
        }
        fields.update(overrides)
        if descriptor is not None:
            fields["face_descriptor"] = encode(descriptor)
        return Employee.objects.create(**fields)

    return _create


@pytest.fixture
def local_dt():
    """Build aware datetimes in the project time zone."""

    def _build(year, month, day, hour=0, minute=0, second=0) -> dt.datetime:
        return timezone.make_aware(dt.datetime(year, month, day, hour, minute, second))

    return _build


@pytest.fixture
def staff_user(django_user_model):
    return django_user_model.objects.create_user("manager", password="password", is_staff=True)


@pytest.fixture
def regular_user(django_user_model):
    return django_user_model.objects.create_user("viewer", password="password")
