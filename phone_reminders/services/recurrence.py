"""Recurrence calculation for reminder series.

Pure functions only: no database access, no clock reads. The scheduler
composes them to decide whether a delivered occurrence gets a successor.

Monthly normalization:
    relativedelta keeps the day of month when the target month has it and
    clamps to the target month's last day otherwise (Jan 31 -> Feb 28/29).
    Each occurrence is computed from its predecessor, so once a series has
    been clamped it stays on the clamped day (Jan 31 -> Feb 28 -> Mar 28).
"""

from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from phone_reminders.models.reminder import RecurrenceType
from phone_reminders.time_utils import to_utc

_STEPS: dict[RecurrenceType, timedelta | relativedelta] = {
    RecurrenceType.DAILY: timedelta(days=1),
    RecurrenceType.WEEKLY: timedelta(days=7),
    RecurrenceType.MONTHLY: relativedelta(months=1),
}


def next_occurrence(scheduled_for: datetime, rule: RecurrenceType) -> datetime:
    """Compute the next occurrence of a series.

    Args:
        scheduled_for: Timestamp of the current occurrence
        rule: Recurrence rule of the series

    Returns:
        The next occurrence timestamp, or scheduled_for unchanged for
        RecurrenceType.NONE. Callers must not create a successor in that case.
    """
    step = _STEPS.get(RecurrenceType(rule))
    if step is None:
        return scheduled_for
    return scheduled_for + step


def successor_schedule(
    scheduled_for: datetime,
    rule: RecurrenceType,
    end_date: datetime | None = None,
) -> datetime | None:
    """Return the successor's timestamp, or None when the series ends.

    The series ends when the rule is NONE or when the computed next
    occurrence is later than end_date. An occurrence exactly at end_date is
    still produced. Naive values are compared as UTC.
    """
    if RecurrenceType(rule) == RecurrenceType.NONE:
        return None

    candidate = next_occurrence(scheduled_for, rule)
    if end_date is not None and to_utc(candidate) > to_utc(end_date):
        return None
    return candidate
