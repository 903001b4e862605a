"""Admin registrations for the recognition app."""

from django.contrib import admin

from .models import RecognitionAttempt


@admin.register(RecognitionAttempt)
class RecognitionAttemptAdmin(admin.ModelAdmin):
    """Expose persisted recognition attempts for auditing."""

    list_display = (
        "created_at",
        "employee",
        "type",
        "source",
        "successful",
        "distance",
        "threshold",
        "latency_ms",
    )
    list_filter = ("successful", "type", "source")
    search_fields = ("employee__employee_code", "employee__first_name", "employee__last_name")
    ordering = ("-created_at",)
    readonly_fields = ("created_at",)
    raw_id_fields = ("employee", "time_log")
