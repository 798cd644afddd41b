"""Reminder delivery over SMS and voice calls."""

from phone_reminders.notifications.notifier import (
    DeliveryResult,
    Notifier,
    Transport,
    build_call_twiml,
    build_sms_body,
)
from phone_reminders.notifications.phone import mask_phone_number, normalize_phone_number
from phone_reminders.notifications.twilio import TransportError, TwilioTransport

__all__ = [
    "DeliveryResult",
    "Notifier",
    "Transport",
    "TransportError",
    "TwilioTransport",
    "build_call_twiml",
    "build_sms_body",
    "mask_phone_number",
    "normalize_phone_number",
]
