"""HTTP endpoints for face attendance, enrollment and work-hours reads."""

from __future__ import annotations

import logging
from functools import wraps

from django.conf import settings
from django.utils.translation import gettext as _

from django_ratelimit.core import is_ratelimited
from rest_framework import permissions, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from attendance.exceptions import AttendanceError, EmployeeNotFound
from attendance.work_hours import daily_work_hours, logs_for_day, summarize_work_hours
from employees.models import Employee
from recognition.attendance_flow import record_face_attendance, record_manual_attendance
from recognition.descriptors import normalize_for_storage

from .serializers import (
    FaceProfileSerializer,
    TimeLogCreateSerializer,
    TimeLogSerializer,
    VerifySerializer,
    WorkDateQuerySerializer,
    build_attendance_payload,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many attendance attempts. Please wait."


def attendance_rate_limited(handler):
    """Apply django-ratelimit protection to an attendance API handler."""

    @wraps(handler)
    def _wrapped(self, request, *args, **kwargs):
        rate = getattr(settings, "RECOGNITION_ATTENDANCE_RATE_LIMIT", "")
        if not rate:
            return handler(self, request, *args, **kwargs)

        was_limited = is_ratelimited(
            request=request,
            group="recognition.attendance",
            key="user_or_ip",
            rate=rate,
            method=("POST",),
            increment=True,
        )
        if was_limited:
            logger.warning(
                "Attendance rate limit triggered for %s via %s",
                (
                    request.user
                    if getattr(request, "user", None) and request.user.is_authenticated
                    else request.META.get("REMOTE_ADDR", "unknown")
                ),
                request.method,
            )
            return Response(
                {"success": False, "error": RATE_LIMIT_MESSAGE},
                status=status.HTTP_429_TOO_MANY_REQUESTS,
            )
        return handler(self, request, *args, **kwargs)

    return _wrapped


def _validation_error(serializer) -> Response:
    return _invalid_request(serializer.errors)


def _invalid_request(details) -> Response:
    return Response(
        {"success": False, "error": _("Invalid request data."), "details": details},
        status=status.HTTP_400_BAD_REQUEST,
    )


def _get_employee(employee_id: int) -> Employee:
    try:
        return Employee.objects.select_related("department").get(pk=employee_id)
    except Employee.DoesNotExist as exc:
        raise EmployeeNotFound() from exc


class AttendanceAPIView(APIView):
    """Base view translating attendance errors into JSON responses."""

    def handle_exception(self, exc):
        if isinstance(exc, AttendanceError):
            return Response(exc.as_payload(), status=exc.status_code)
        if isinstance(exc, ValidationError):
            return _invalid_request(exc.detail)
        return super().handle_exception(exc)


class TimeLogCreateAPI(AttendanceAPIView):
    """Record a check-in or check-out from a face descriptor or a staff entry."""

    permission_classes = [permissions.AllowAny]

    @attendance_rate_limited
    def post(self, request):
        serializer = TimeLogCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return _validation_error(serializer)

        data = serializer.validated_data
        if serializer.is_manual:
            if not (request.user and request.user.is_staff):
                return Response(
                    {
                        "success": False,
                        "error": _("Staff privileges are required for manual time logs."),
                    },
                    status=status.HTTP_403_FORBIDDEN,
                )
            outcome = record_manual_attendance(data["employeeId"], data["type"])
        else:
            outcome = record_face_attendance(data["faceDescriptor"], data["type"])

        return Response(build_attendance_payload(outcome), status=status.HTTP_201_CREATED)


class FaceVerifyAPI(AttendanceAPIView):
    """Live-mode variant of the punch endpoint: ``{descriptor, mode}``."""

    permission_classes = [permissions.AllowAny]

    @attendance_rate_limited
    def post(self, request):
        serializer = VerifySerializer(data=request.data)
        if not serializer.is_valid():
            return _validation_error(serializer)

        data = serializer.validated_data
        outcome = record_face_attendance(data["descriptor"], data["mode"])
        return Response(build_attendance_payload(outcome), status=status.HTTP_200_OK)


class FaceProfileAPI(AttendanceAPIView):
    """Enroll, replace, inspect or remove an employee's face descriptor."""

    permission_classes = [permissions.IsAdminUser]

    def get(self, request, employee_id: int):
        employee = _get_employee(employee_id)
        return Response(
            {
                "hasProfile": employee.is_enrolled,
                "employeeId": employee.pk,
                "employeeName": employee.full_name,
            }
        )

    def post(self, request, employee_id: int):
        employee = _get_employee(employee_id)
        serializer = FaceProfileSerializer(data=request.data)
        if not serializer.is_valid():
            return _validation_error(serializer)

        employee.face_descriptor = normalize_for_storage(serializer.validated_data["faceDescriptor"])
        employee.save(update_fields=["face_descriptor", "updated_at"])
        logger.info("Stored face profile", extra={"employee_id": employee.pk})
        return Response(
            {
                "success": True,
                "message": _("Face profile saved successfully."),
                "employeeId": employee.pk,
            }
        )

    put = post

    def delete(self, request, employee_id: int):
        employee = _get_employee(employee_id)
        employee.face_descriptor = None
        employee.save(update_fields=["face_descriptor", "updated_at"])
        logger.info("Removed face profile", extra={"employee_id": employee.pk})
        return Response(
            {
                "success": True,
                "message": _("Face profile deleted successfully."),
                "employeeId": employee.pk,
            }
        )


class _WorkDateMixin:
    def _work_date(self, request):
        query = WorkDateQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        return query.get_work_date()


class EmployeeWorkHoursAPI(_WorkDateMixin, AttendanceAPIView):
    def get(self, request, employee_id: int):
        employee = _get_employee(employee_id)
        return Response(summarize_work_hours(employee, self._work_date(request)))


class DailyWorkHoursAPI(_WorkDateMixin, AttendanceAPIView):
    def get(self, request):
        work_date = self._work_date(request)
        return Response({"date": work_date.isoformat(), "results": daily_work_hours(work_date)})


class EmployeeTimeLogsAPI(_WorkDateMixin, AttendanceAPIView):
    def get(self, request, employee_id: int):
        employee = _get_employee(employee_id)
        work_date = self._work_date(request)
        logs = logs_for_day(employee.pk, work_date)
        return Response(
            {
                "employeeId": employee.pk,
                "date": work_date.isoformat(),
                "results": TimeLogSerializer(logs, many=True).data,
            }
        )
