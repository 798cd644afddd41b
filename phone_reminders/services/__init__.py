"""Services module.

Services:
- reminders.py: owner-scoped and scheduler repositories over Reminder rows
- recurrence.py: next-occurrence calculation for recurring series
"""

from phone_reminders.services.recurrence import next_occurrence, successor_schedule
from phone_reminders.services.reminders import (
    OwnerReminderRepository,
    SchedulerReminderRepository,
)

__all__ = [
    "OwnerReminderRepository",
    "SchedulerReminderRepository",
    "next_occurrence",
    "successor_schedule",
]
