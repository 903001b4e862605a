import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("employees", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="TimeLog",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "log_time",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        help_text="The exact time of the event.",
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[("checkin", "Check-in"), ("checkout", "Check-out")],
                        max_length=8,
                    ),
                ),
                (
                    "source",
                    models.CharField(
                        choices=[("face", "Face recognition"), ("manual", "Manual entry")],
                        default="face",
                        max_length=8,
                    ),
                ),
                (
                    "employee",
                    models.ForeignKey(
                        help_text="The employee this time entry belongs to.",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="time_logs",
                        to="employees.employee",
                    ),
                ),
            ],
            options={
                "ordering": ["log_time", "id"],
                "indexes": [
                    models.Index(
                        fields=["employee", "log_time"], name="attendance_log_emp_time_idx"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="WorkHours",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("work_date", models.DateField(db_index=True)),
                ("first_checkin", models.DateTimeField()),
                ("last_checkout", models.DateTimeField(blank=True, null=True)),
                (
                    "regular_hours",
                    models.DecimalField(decimal_places=2, default=0, max_digits=5),
                ),
                ("ot_hours", models.DecimalField(decimal_places=2, default=0, max_digits=5)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("normal", "Normal"),
                            ("late", "Late"),
                            ("absent", "Absent"),
                            ("error", "Error"),
                        ],
                        default="normal",
                        max_length=8,
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "employee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="work_hours",
                        to="employees.employee",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Work hours",
                "ordering": ["-work_date", "employee_id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("employee", "work_date"),
                        name="attendance_workhours_employee_date_uniq",
                    )
                ],
            },
        ),
    ]
