"""Admin registrations for the attendance app."""

from django.contrib import admin

from .models import TimeLog, WorkHours


@admin.register(TimeLog)
class TimeLogAdmin(admin.ModelAdmin):
    """Read-mostly view of the punch stream."""

    list_display = ("employee", "log_time", "type", "source")
    list_filter = ("type", "source")
    search_fields = ("employee__employee_code", "employee__first_name", "employee__last_name")
    date_hierarchy = "log_time"
    ordering = ("-log_time",)
    raw_id_fields = ("employee",)


@admin.register(WorkHours)
class WorkHoursAdmin(admin.ModelAdmin):
    list_display = (
        "employee",
        "work_date",
        "first_checkin",
        "last_checkout",
        "regular_hours",
        "ot_hours",
        "status",
    )
    list_filter = ("status", "work_date")
    search_fields = ("employee__employee_code", "employee__first_name", "employee__last_name")
    date_hierarchy = "work_date"
    readonly_fields = (
        "first_checkin",
        "last_checkout",
        "regular_hours",
        "ot_hours",
        "status",
        "updated_at",
    )
    raw_id_fields = ("employee",)
