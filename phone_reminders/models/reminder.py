"""Reminder entity model."""

import re
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from pydantic import field_validator, model_validator
from sqlmodel import Field, SQLModel

from phone_reminders.db.types import AwareDateTime
from phone_reminders.time_utils import to_utc, utc_now

# Loose E.164: optional "+", no leading zero, up to 15 digits
PHONE_NUMBER_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
PHONE_NUMBER_MIN_LENGTH = 10
TITLE_MAX_LENGTH = 200


class ReminderStatus(str, Enum):
    """Delivery status of a single occurrence."""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class RecurrenceType(str, Enum):
    """Recurrence rule of a reminder series."""
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class NotificationMethod(str, Enum):
    """Channel used to deliver a reminder."""
    SMS = "sms"
    CALL = "call"


def _check_title(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    if len(value) > TITLE_MAX_LENGTH:
        raise ValueError("Title too long")
    return value


def _check_phone_number(value: str) -> str:
    value = value.strip()
    if len(value) < PHONE_NUMBER_MIN_LENGTH:
        raise ValueError("Phone number must be at least 10 digits")
    if not PHONE_NUMBER_PATTERN.match(value):
        raise ValueError("Invalid phone number format (E.164 format recommended)")
    return value


class ReminderBase(SQLModel):
    """Base Reminder schema."""

    title: str = Field(max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=2000)
    phone_number: str = Field(max_length=16)
    scheduled_for: datetime
    recurrence_type: RecurrenceType = Field(default=RecurrenceType.NONE)
    recurrence_end_date: datetime | None = Field(default=None)
    notification_method: NotificationMethod = Field(default=NotificationMethod.SMS)


class Reminder(ReminderBase, table=True):
    """Reminder database model.

    One row is one occurrence. Recurring series are chains of rows linked
    through previous_occurrence_id; the link is informational only, so
    deleting one occurrence leaves the rest of the chain intact.
    """

    __tablename__ = "reminders"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(index=True)
    scheduled_for: datetime = Field(index=True, sa_type=AwareDateTime())
    recurrence_end_date: datetime | None = Field(default=None, sa_type=AwareDateTime())
    status: ReminderStatus = Field(default=ReminderStatus.PENDING, index=True)
    completed: bool = Field(default=False)
    previous_occurrence_id: UUID | None = Field(default=None, index=True)
    sent_at: datetime | None = Field(default=None, sa_type=AwareDateTime())
    failure_reason: str | None = Field(default=None, max_length=500)
    provider_message_id: str | None = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utc_now, sa_type=AwareDateTime())
    updated_at: datetime = Field(default_factory=utc_now, sa_type=AwareDateTime())


class ReminderCreate(SQLModel):
    """Schema for reminder creation."""

    title: str
    description: str | None = Field(default=None, max_length=2000)
    phone_number: str
    scheduled_for: datetime
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    recurrence_end_date: datetime | None = None
    notification_method: NotificationMethod = NotificationMethod.SMS

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _check_title(value)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, value: str) -> str:
        return _check_phone_number(value)

    @field_validator("scheduled_for", "recurrence_end_date")
    @classmethod
    def normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return to_utc(value)

    @model_validator(mode="after")
    def check_end_date(self) -> "ReminderCreate":
        if self.recurrence_end_date is not None and self.recurrence_end_date < self.scheduled_for:
            raise ValueError("Recurrence end date must not be before the scheduled time")
        return self


class ReminderUpdate(SQLModel):
    """Schema for partial reminder update.

    Status and completion are not editable here; they have dedicated
    transitions.
    """

    title: str | None = None
    description: str | None = Field(default=None, max_length=2000)
    phone_number: str | None = None
    scheduled_for: datetime | None = None
    recurrence_type: RecurrenceType | None = None
    recurrence_end_date: datetime | None = None
    notification_method: NotificationMethod | None = None

    @field_validator("scheduled_for", "recurrence_type", "notification_method")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("Title is required")
        return _check_title(value)

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, value: str | None) -> str:
        if value is None:
            raise ValueError("Phone number is required")
        return _check_phone_number(value)

    @field_validator("scheduled_for", "recurrence_end_date")
    @classmethod
    def normalize_timestamp(cls, value: datetime | None) -> datetime | None:
        return to_utc(value)

    @model_validator(mode="after")
    def check_end_date(self) -> "ReminderUpdate":
        if (
            self.scheduled_for is not None
            and self.recurrence_end_date is not None
            and self.recurrence_end_date < self.scheduled_for
        ):
            raise ValueError("Recurrence end date must not be before the scheduled time")
        return self


class ReminderResponse(SQLModel):
    """Schema for reminder response."""

    id: UUID
    title: str
    description: str | None
    phone_number: str
    scheduled_for: datetime
    status: ReminderStatus
    completed: bool
    recurrence_type: RecurrenceType
    recurrence_end_date: datetime | None
    notification_method: NotificationMethod
    previous_occurrence_id: UUID | None
    sent_at: datetime | None
    failure_reason: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReminderListResponse(SQLModel):
    """Schema for reminder list response."""

    reminders: list[ReminderResponse]
    total: int


class ReminderStats(SQLModel):
    """Aggregate counters for an owner's reminders."""

    total: int = 0
    sent: int = 0
    failed: int = 0
    pending: int = 0
    upcoming: int = 0
    completed: int = 0
    sent_last_7_days: int = 0
    sent_last_30_days: int = 0
    success_rate: float = 0.0
