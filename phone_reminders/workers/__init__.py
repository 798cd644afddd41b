"""Background scheduling for reminder delivery.

The scheduler can be driven via:
- ReminderScheduler.run_once(): single tick
- ReminderScheduler.start()/stop(): background thread inside the web app
- ReminderScheduler.run_forever(): foreground loop (scripts/run_scheduler.py)
"""

from phone_reminders.workers.base import (
    ItemOutcome,
    WorkerBase,
    WorkerResult,
    WorkerStatus,
)
from phone_reminders.workers.reminder_worker import ReminderDispatchWorker
from phone_reminders.workers.scheduler import ReminderScheduler, configure_logging

__all__ = [
    # Base classes
    "ItemOutcome",
    "WorkerBase",
    "WorkerResult",
    "WorkerStatus",
    # Workers
    "ReminderDispatchWorker",
    # Scheduler
    "ReminderScheduler",
    "configure_logging",
]
