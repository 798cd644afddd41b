"""Reminder repositories.

Two capability-scoped views over the same store:

- OwnerReminderRepository: everything a request handler may do, always
  filtered by the owner the request was authenticated as.
- SchedulerReminderRepository: the privileged, owner-unscoped view used by
  the dispatch worker (due scan, status transitions, successor creation).

Both return Reminder records. "Not found" is reported as None/False;
storage errors (sqlalchemy.exc.SQLAlchemyError) propagate to the caller.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import update
from sqlmodel import Session, func, select

from phone_reminders.models.reminder import (
    Reminder,
    ReminderCreate,
    ReminderStats,
    ReminderStatus,
    ReminderUpdate,
)
from phone_reminders.time_utils import to_utc, utc_now

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Owner-scoped view
# -----------------------------------------------------------------------------


class OwnerReminderRepository:
    """CRUD over the reminders of a single owner.

    Write methods commit; the session is request-scoped.
    """

    def __init__(self, session: Session, owner_id: UUID) -> None:
        self.session = session
        self.owner_id = owner_id

    def list_reminders(self) -> list[Reminder]:
        """List the owner's reminders, earliest scheduled first."""
        return list(
            self.session.exec(
                select(Reminder)
                .where(Reminder.owner_id == self.owner_id)
                .order_by(Reminder.scheduled_for)
            ).all()
        )

    def get_reminder(self, reminder_id: UUID) -> Reminder | None:
        """Get a reminder owned by this owner."""
        return self.session.exec(
            select(Reminder).where(
                Reminder.id == reminder_id,
                Reminder.owner_id == self.owner_id,
            )
        ).first()

    def create_reminder(self, data: ReminderCreate) -> Reminder:
        """Create a new pending reminder."""
        reminder = Reminder(
            owner_id=self.owner_id,
            title=data.title,
            description=data.description,
            phone_number=data.phone_number,
            scheduled_for=data.scheduled_for,
            recurrence_type=data.recurrence_type,
            recurrence_end_date=data.recurrence_end_date,
            notification_method=data.notification_method,
            status=ReminderStatus.PENDING,
            completed=False,
        )
        self.session.add(reminder)
        self.session.commit()
        self.session.refresh(reminder)

        logger.info(
            "Reminder created",
            extra={
                "reminder_id": str(reminder.id),
                "owner_id": str(self.owner_id),
                "scheduled_for": reminder.scheduled_for.isoformat(),
                "recurrence_type": reminder.recurrence_type.value,
            },
        )
        return reminder

    def update_reminder(self, reminder_id: UUID, data: ReminderUpdate) -> Reminder | None:
        """Apply a partial update; fields not set on data are left unchanged.

        Raises:
            ValueError: If the merged end date would precede the scheduled time
        """
        reminder = self.get_reminder(reminder_id)
        if reminder is None:
            return None

        update_data = data.model_dump(exclude_unset=True)
        scheduled_for = update_data.get("scheduled_for", reminder.scheduled_for)
        end_date = update_data.get("recurrence_end_date", reminder.recurrence_end_date)
        if end_date is not None and end_date < scheduled_for:
            raise ValueError("Recurrence end date must not be before the scheduled time")

        for key, value in update_data.items():
            setattr(reminder, key, value)

        reminder.updated_at = utc_now()
        self.session.add(reminder)
        self.session.commit()
        self.session.refresh(reminder)
        return reminder

    def delete_reminder(self, reminder_id: UUID) -> bool:
        """Delete a reminder. Other occurrences of its series are untouched."""
        reminder = self.get_reminder(reminder_id)
        if reminder is None:
            return False

        self.session.delete(reminder)
        self.session.commit()

        logger.info(
            "Reminder deleted",
            extra={"reminder_id": str(reminder_id), "owner_id": str(self.owner_id)},
        )
        return True

    def complete_reminder(self, reminder_id: UUID) -> Reminder | None:
        """Mark a reminder completed. Completing twice is a no-op."""
        reminder = self.get_reminder(reminder_id)
        if reminder is None:
            return None
        if reminder.completed:
            return reminder

        reminder.completed = True
        reminder.updated_at = utc_now()
        self.session.add(reminder)
        self.session.commit()
        self.session.refresh(reminder)
        return reminder

    def get_stats(self, now: datetime | None = None) -> ReminderStats:
        """Compute delivery counters for the owner."""
        now = to_utc(now) if now else utc_now()

        total = self._count()
        sent = self._count(Reminder.status == ReminderStatus.SENT)
        success_rate = round(sent / total * 100, 1) if total else 0.0

        return ReminderStats(
            total=total,
            sent=sent,
            failed=self._count(Reminder.status == ReminderStatus.FAILED),
            pending=self._count(
                Reminder.status == ReminderStatus.PENDING,
                Reminder.completed == False,  # noqa: E712
            ),
            upcoming=self._count(
                Reminder.completed == False,  # noqa: E712
                Reminder.scheduled_for > now,
            ),
            completed=self._count(Reminder.completed == True),  # noqa: E712
            sent_last_7_days=self._count(
                Reminder.status == ReminderStatus.SENT,
                Reminder.scheduled_for >= now - timedelta(days=7),
            ),
            sent_last_30_days=self._count(
                Reminder.status == ReminderStatus.SENT,
                Reminder.scheduled_for >= now - timedelta(days=30),
            ),
            success_rate=success_rate,
        )

    def _count(self, *conditions) -> int:
        query = (
            select(func.count())
            .select_from(Reminder)
            .where(Reminder.owner_id == self.owner_id, *conditions)
        )
        return self.session.exec(query).one()


# -----------------------------------------------------------------------------
# Scheduler (all owners) view
# -----------------------------------------------------------------------------


class SchedulerReminderRepository:
    """Owner-unscoped access for the dispatch worker.

    Methods flush but never commit; the worker owns the transaction
    boundaries so that each reminder is committed on its own.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    def list_due(self, as_of: datetime, limit: int = 100) -> list[Reminder]:
        """List due reminders across all owners, earliest first."""
        return list(
            self.session.exec(
                select(Reminder)
                .where(Reminder.status == ReminderStatus.PENDING)
                .where(Reminder.completed == False)  # noqa: E712
                .where(Reminder.scheduled_for <= as_of)
                .order_by(Reminder.scheduled_for)
                .limit(limit)
            ).all()
        )

    def mark_sent(self, reminder_id: UUID, provider_message_id: str | None = None) -> bool:
        """Transition pending -> sent. Returns False if the reminder is no longer pending."""
        return self._transition(
            reminder_id,
            ReminderStatus.SENT,
            provider_message_id=provider_message_id,
            failure_reason=None,
        )

    def mark_failed(self, reminder_id: UUID, reason: str | None = None) -> bool:
        """Transition pending -> failed. Returns False if the reminder is no longer pending."""
        return self._transition(
            reminder_id,
            ReminderStatus.FAILED,
            failure_reason=reason[:500] if reason else None,
        )

    def create_successor(self, predecessor: Reminder, scheduled_for: datetime) -> Reminder:
        """Insert the next occurrence of a recurring series."""
        if scheduled_for <= predecessor.scheduled_for:
            raise ValueError("Successor must be scheduled after its predecessor")

        successor = Reminder(
            owner_id=predecessor.owner_id,
            title=predecessor.title,
            description=predecessor.description,
            phone_number=predecessor.phone_number,
            scheduled_for=scheduled_for,
            recurrence_type=predecessor.recurrence_type,
            recurrence_end_date=predecessor.recurrence_end_date,
            notification_method=predecessor.notification_method,
            status=ReminderStatus.PENDING,
            completed=False,
            previous_occurrence_id=predecessor.id,
        )
        self.session.add(successor)
        self.session.flush()
        return successor

    def _transition(self, reminder_id: UUID, status: ReminderStatus, **values) -> bool:
        now = utc_now()
        result = self.session.exec(
            update(Reminder)
            .where(Reminder.id == reminder_id)
            .where(Reminder.status == ReminderStatus.PENDING)
            .values(status=status, sent_at=now, updated_at=now, **values)
        )
        if result.rowcount == 0:
            logger.warning(
                "Reminder is no longer pending, transition skipped",
                extra={"reminder_id": str(reminder_id), "target_status": status.value},
            )
            return False
        return True
