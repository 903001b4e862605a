"""Per-employee, per-day attendance state machine.

The current state is never stored: it is derived from the most recent time log
of the day every time a punch is requested. ``evaluate_transition`` returns a
decision and leaves writing the log to the caller.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Protocol, Sequence

from django.utils import timezone
from django.utils.translation import gettext as _

from .exceptions import (
    AlreadyCheckedIn,
    AlreadyCheckedOut,
    AttendanceDenied,
    NoCheckinYet,
    PunchTooSoon,
)
from .models import PunchType


class LogEntry(Protocol):
    log_time: datetime
    type: str


class AttendanceState(str, Enum):
    NO_LOG = "no_logs"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"


def order_entries(entries: Iterable[LogEntry]) -> list[LogEntry]:
    """Return entries sorted by ``log_time``; equal timestamps keep their given order."""

    return sorted(entries, key=lambda entry: entry.log_time)


def latest_entry(entries: Iterable[LogEntry]) -> Optional[LogEntry]:
    ordered = order_entries(entries)
    return ordered[-1] if ordered else None


def state_for(last_entry: Optional[LogEntry]) -> AttendanceState:
    if last_entry is None:
        return AttendanceState.NO_LOG
    if last_entry.type == PunchType.CHECKIN:
        return AttendanceState.CHECKED_IN
    return AttendanceState.CHECKED_OUT


def _clock(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return timezone.localtime(value).strftime("%H:%M")


@dataclass(frozen=True)
class TransitionDecision:
    """Outcome of validating one requested punch against the day's log stream."""

    action: str
    state: AttendanceState
    last_entry: Optional[LogEntry]
    denial: Optional[type[AttendanceDenied]] = None

    @property
    def allowed(self) -> bool:
        return self.denial is None

    def details(self) -> dict[str, Optional[str]]:
        return {
            "currentStatus": self.state.value,
            "lastAction": self.last_entry.type if self.last_entry is not None else "none",
            "lastActionTime": _clock(self.last_entry.log_time if self.last_entry else None),
        }

    def to_error(self, employee_name: str) -> AttendanceDenied:
        """Build the user-facing error for a denied decision."""

        if self.denial is None:
            raise ValueError("Allowed transitions have no error.")

        params = {"name": employee_name, "time": self.details()["lastActionTime"]}
        if self.denial is AlreadyCheckedIn:
            message = _(
                "%(name)s already checked in at %(time)s. "
                "Please check out before checking in again."
            ) % params
        elif self.denial is AlreadyCheckedOut:
            message = _(
                "%(name)s already checked out at %(time)s. "
                "Please check in before checking out again."
            ) % params
        else:
            message = _(
                "%(name)s has not checked in today. Please check in before checking out."
            ) % params

        return self.denial(message, details=self.details())


def evaluate_transition(entries: Sequence[LogEntry], action: str) -> TransitionDecision:
    """Decide whether ``action`` is legal given the day's time logs.

    Args:
        entries: Every time log of the employee for the day, in any order.
        action: ``"checkin"`` or ``"checkout"``.

    Returns:
        A :class:`TransitionDecision`; ``denial`` names the error class when the
        punch must be rejected.
    """

    if action not in PunchType.values:
        raise ValueError(f"Unsupported attendance action: {action!r}")

    last = latest_entry(entries)
    state = state_for(last)

    denial: Optional[type[AttendanceDenied]] = None
    if action == PunchType.CHECKIN:
        if state is AttendanceState.CHECKED_IN:
            denial = AlreadyCheckedIn
    elif state is AttendanceState.NO_LOG:
        denial = NoCheckinYet
    elif state is AttendanceState.CHECKED_OUT:
        denial = AlreadyCheckedOut

    return TransitionDecision(action=action, state=state, last_entry=last, denial=denial)


def enforce_cooldown(
    last_entry: Optional[LogEntry],
    now: datetime,
    cooldown_seconds: int,
    action: str,
) -> None:
    """Reject a punch that follows the previous one by less than ``cooldown_seconds``."""

    if last_entry is None or cooldown_seconds <= 0:
        return

    elapsed = (now - last_entry.log_time).total_seconds()
    if elapsed >= cooldown_seconds:
        return

    remaining = max(1, math.ceil(cooldown_seconds - elapsed))
    label = _("check-in") if action == PunchType.CHECKIN else _("check-out")
    raise PunchTooSoon(
        _("Please wait %(seconds)d seconds before the next %(action)s.")
        % {"seconds": remaining, "action": label},
        details={"timeLimitSeconds": remaining},
    )


__all__ = [
    "AttendanceState",
    "TransitionDecision",
    "enforce_cooldown",
    "evaluate_transition",
    "latest_entry",
    "order_entries",
    "state_for",
]
