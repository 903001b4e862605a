"""Admin registrations for the employees app."""

from django.contrib import admin

from .models import Department, Employee


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ("name", "created_at")
    search_fields = ("name",)


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    """Manage employees without exposing raw face descriptors."""

    list_display = (
        "employee_code",
        "first_name",
        "last_name",
        "department",
        "status",
        "enrolled",
    )
    list_filter = ("status", "department")
    search_fields = ("employee_code", "first_name", "last_name", "email")
    exclude = ("face_descriptor",)
    readonly_fields = ("created_at", "updated_at")

    @admin.display(boolean=True, description="Face enrolled")
    def enrolled(self, obj: Employee) -> bool:
        return obj.is_enrolled
