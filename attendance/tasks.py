"""Celery tasks that re-derive work-hours summaries from the time logs."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Optional

from django.utils import timezone

from celery import shared_task

from .work_hours import invalidate_work_hours, logged_days

logger = logging.getLogger(__name__)


def reconcile_range(
    start_date: dt.date,
    end_date: dt.date,
    employee_id: Optional[int] = None,
) -> dict[str, Any]:
    """Recompute every employee/day with logs between the two dates, inclusive.

    Each pair is processed independently; a failure is logged and counted
    without stopping the pass.
    """

    if end_date < start_date:
        raise ValueError("end_date must not precede start_date")

    summary: dict[str, Any] = {
        "start_date": start_date.isoformat(),
        "end_date": end_date.isoformat(),
        "processed": 0,
        "persisted": 0,
        "cleared": 0,
        "failed": 0,
    }
    for pk, work_date in logged_days(start_date, end_date, employee_id=employee_id):
        summary["processed"] += 1
        try:
            record = invalidate_work_hours(pk, work_date)
        except Exception:
            summary["failed"] += 1
            logger.exception(
                "Work hours reconciliation failed",
                extra={"employee_id": pk, "work_date": work_date.isoformat()},
            )
            continue
        if record is None:
            summary["cleared"] += 1
        else:
            summary["persisted"] += 1

    logger.info("Work hours reconciliation finished", extra=summary)
    return summary


@shared_task(bind=True, name="attendance.recalculate_work_hours")
def recalculate_work_hours(self, employee_id: int, work_date: str) -> dict[str, Any]:
    """Re-derive one employee's summary for ``work_date`` (ISO format)."""

    day = dt.date.fromisoformat(work_date)
    record = invalidate_work_hours(employee_id, day)
    return {
        "employee_id": employee_id,
        "work_date": day.isoformat(),
        "status": record.status if record is not None else None,
    }


@shared_task(bind=True, name="attendance.reconcile_work_hours")
def reconcile_work_hours(self, days: int = 1) -> dict[str, Any]:
    """Nightly pass over today and the previous ``days`` local calendar days."""

    today = timezone.localdate()
    start = today - dt.timedelta(days=max(int(days), 0))
    return reconcile_range(start, today)
