import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("attendance", "0001_initial"),
        ("employees", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="RecognitionAttempt",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When the attempt was recorded.",
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[("checkin", "Check-in"), ("checkout", "Check-out")],
                        help_text="Whether the attempt was for a check-in or check-out.",
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
                    "successful",
                    models.BooleanField(
                        default=False, help_text="True when the attempt produced a time log."
                    ),
                ),
                (
                    "distance",
                    models.FloatField(
                        blank=True,
                        help_text="Best match distance observed for the probe.",
                        null=True,
                    ),
                ),
                (
                    "threshold",
                    models.FloatField(
                        blank=True,
                        help_text="Distance threshold in force for the attempt.",
                        null=True,
                    ),
                ),
                ("error_message", models.TextField(blank=True)),
                (
                    "latency_ms",
                    models.FloatField(
                        blank=True,
                        help_text="Processing time of the attempt in milliseconds.",
                        null=True,
                    ),
                ),
                (
                    "employee",
                    models.ForeignKey(
                        blank=True,
                        help_text="Resolved employee for the attempt, if any.",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="recognition_attempts",
                        to="employees.employee",
                    ),
                ),
                (
                    "time_log",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="recognition_attempts",
                        to="attendance.timelog",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["employee", "type"], name="recog_attempt_emp_type_idx"),
                    models.Index(
                        fields=["successful", "created_at"], name="recog_attempt_success_idx"
                    ),
                ],
            },
        ),
    ]
