"""
Django management command to re-derive daily work hours from the time logs.

Usage:
    python manage.py recalculate_work_hours
    python manage.py recalculate_work_hours --date 2024-05-02
    python manage.py recalculate_work_hours --days 7 --employee 12
"""

import datetime as dt

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from attendance.tasks import reconcile_range
from employees.models import Employee


class Command(BaseCommand):
    help = "Recalculate work hours summaries from the recorded time logs"

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            type=str,
            help="Last day to recalculate (YYYY-MM-DD). Defaults to today.",
        )
        parser.add_argument(
            "--days",
            type=int,
            default=0,
            help="Number of additional days before --date to include",
        )
        parser.add_argument(
            "--employee",
            type=int,
            help="Only recalculate the employee with this id",
        )

    def handle(self, *args, **options):
        if options["date"]:
            try:
                end_date = dt.date.fromisoformat(options["date"])
            except ValueError as exc:
                raise CommandError(f"Invalid --date value: {options['date']!r}") from exc
        else:
            end_date = timezone.localdate()

        days = options["days"]
        if days < 0:
            raise CommandError("--days must not be negative")

        employee_id = options["employee"]
        if employee_id is not None and not Employee.objects.filter(pk=employee_id).exists():
            raise CommandError(f"Employee {employee_id} does not exist")

        start_date = end_date - dt.timedelta(days=days)
        summary = reconcile_range(start_date, end_date, employee_id=employee_id)

        self.stdout.write(
            f"Processed {summary['processed']} employee-days "
            f"from {summary['start_date']} to {summary['end_date']}"
        )
        self.stdout.write(f"  Persisted: {summary['persisted']}")
        self.stdout.write(f"  Cleared:   {summary['cleared']}")
        if summary["failed"]:
            self.stdout.write(self.style.WARNING(f"  Failed:    {summary['failed']}"))
        else:
            self.stdout.write(self.style.SUCCESS("Work hours are up to date"))
