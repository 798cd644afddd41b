"""Reminder dispatch worker.

Processes due Reminder records across all owners:
1. Fetches pending, not completed reminders with scheduled_for <= now
2. Sends each one through the Notifier (SMS or voice call)
3. Marks it SENT or FAILED with a conditional write
4. For delivered recurring reminders, creates the next occurrence

A failed delivery does not advance the series. A successor that cannot be
created is logged; the delivered reminder stays SENT and is never re-sent.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlmodel import Session

from phone_reminders.models.reminder import RecurrenceType, Reminder
from phone_reminders.notifications import Notifier, mask_phone_number
from phone_reminders.services.recurrence import successor_schedule
from phone_reminders.services.reminders import SchedulerReminderRepository
from phone_reminders.workers.base import ItemOutcome, WorkerBase, WorkerResult

logger = logging.getLogger(__name__)


class ReminderDispatchWorker(WorkerBase[Reminder]):
    """Worker that delivers due reminders and extends recurring series."""

    def __init__(self, notifier: Notifier, batch_size: int = 100) -> None:
        """Initialize the worker.

        Args:
            notifier: Notifier used to deliver reminders
            batch_size: Maximum reminders handled per cycle
        """
        super().__init__(batch_size=batch_size)
        self.notifier = notifier

    @property
    def worker_name(self) -> str:
        return "ReminderDispatchWorker"

    def fetch_pending(self, session: Session, now: datetime) -> list[Reminder]:
        return SchedulerReminderRepository(session).list_due(now, limit=self.batch_size)

    def is_ready(self, item: Reminder, now: datetime) -> bool:
        # The due query already filters on time; this guards against rows
        # that were rescheduled between the fetch and dispatch.
        return item.scheduled_for <= now and not item.completed

    def process_item(self, session: Session, item: Reminder) -> ItemOutcome:
        """Send the reminder through its notification method."""
        logger.info(
            f"Sending reminder via {item.notification_method.value}",
            extra={
                "reminder_id": str(item.id),
                "owner_id": str(item.owner_id),
                "to": mask_phone_number(item.phone_number),
                "scheduled_for": item.scheduled_for.isoformat(),
            },
        )

        delivery = self.notifier.send(
            item.phone_number,
            item.title,
            item.description,
            item.notification_method,
        )
        return ItemOutcome(
            success=delivery.success,
            error=delivery.cause,
            reference=delivery.provider_message_id,
        )

    def mark_completed(self, session: Session, item: Reminder, outcome: ItemOutcome) -> bool:
        return SchedulerReminderRepository(session).mark_sent(item.id, outcome.reference)

    def mark_failed(self, session: Session, item: Reminder, outcome: ItemOutcome) -> bool:
        return SchedulerReminderRepository(session).mark_failed(item.id, outcome.error)

    def after_completed(self, session: Session, item: Reminder, result: WorkerResult) -> None:
        """Create the next occurrence of a delivered recurring reminder."""
        if item.recurrence_type == RecurrenceType.NONE:
            return

        next_at = successor_schedule(
            item.scheduled_for,
            item.recurrence_type,
            item.recurrence_end_date,
        )
        if next_at is None:
            result.metadata["series_ended"] = result.metadata.get("series_ended", 0) + 1
            logger.info(
                "Recurrence ended",
                extra={
                    "reminder_id": str(item.id),
                    "recurrence_end_date": (
                        item.recurrence_end_date.isoformat() if item.recurrence_end_date else None
                    ),
                },
            )
            return

        successor = SchedulerReminderRepository(session).create_successor(item, next_at)
        result.metadata["successors_created"] = result.metadata.get("successors_created", 0) + 1

        logger.info(
            "Created next occurrence",
            extra={
                "reminder_id": str(item.id),
                "successor_id": str(successor.id),
                "scheduled_for": next_at.isoformat(),
                "recurrence_type": item.recurrence_type.value,
            },
        )

    def get_item_id(self, item: Reminder) -> UUID:
        return item.id
