"""SQLModel entities for the Phone Reminders service."""

from phone_reminders.models.reminder import (
    NotificationMethod,
    RecurrenceType,
    Reminder,
    ReminderCreate,
    ReminderListResponse,
    ReminderResponse,
    ReminderStats,
    ReminderStatus,
    ReminderUpdate,
)

__all__ = [
    "Reminder",
    "ReminderCreate",
    "ReminderUpdate",
    "ReminderResponse",
    "ReminderListResponse",
    "ReminderStats",
    "ReminderStatus",
    "RecurrenceType",
    "NotificationMethod",
]
