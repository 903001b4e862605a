from django.urls import path

from .views import (
    DailyWorkHoursAPI,
    EmployeeTimeLogsAPI,
    EmployeeWorkHoursAPI,
    FaceProfileAPI,
    FaceVerifyAPI,
    TimeLogCreateAPI,
)

urlpatterns = [
    path("time-logs", TimeLogCreateAPI.as_view(), name="time-log-create"),
    path("face-recognition/verify", FaceVerifyAPI.as_view(), name="face-verify"),
    path(
        "employees/<int:employee_id>/face-profile",
        FaceProfileAPI.as_view(),
        name="employee-face-profile",
    ),
    path("employees/<int:employee_id>/face", FaceProfileAPI.as_view(), name="employee-face"),
    path(
        "employees/<int:employee_id>/work-hours",
        EmployeeWorkHoursAPI.as_view(),
        name="employee-work-hours",
    ),
    path(
        "employees/<int:employee_id>/time-logs",
        EmployeeTimeLogsAPI.as_view(),
        name="employee-time-logs",
    ),
    path("work-hours/daily", DailyWorkHoursAPI.as_view(), name="daily-work-hours"),
]
