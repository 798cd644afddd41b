"""Reminder notifier.

Sends one reminder through the channel named by its notification method.
Methods are dispatched through a handler table: supporting a new method
means adding an enum value and a handler, nothing else.

send() never raises for delivery problems. Bad numbers, carrier
rejections and timeouts come back as DeliveryResult(success=False, cause=...).
Missing credentials fail earlier, in from_settings().
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol
from xml.sax.saxutils import escape

from phone_reminders.config import Settings, get_settings
from phone_reminders.models.reminder import NotificationMethod
from phone_reminders.notifications.phone import mask_phone_number, normalize_phone_number
from phone_reminders.notifications.twilio import TransportError, TwilioTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of a single send attempt."""

    success: bool
    cause: str | None = None
    provider_message_id: str | None = None

    @classmethod
    def ok(cls, provider_message_id: str | None = None) -> "DeliveryResult":
        return cls(success=True, provider_message_id=provider_message_id)

    @classmethod
    def failed(cls, cause: str) -> "DeliveryResult":
        return cls(success=False, cause=cause)


class Transport(Protocol):
    """What the notifier needs from a telephony provider."""

    def send_sms(self, to: str, body: str) -> str: ...

    def place_call(self, to: str, twiml: str) -> str: ...


def build_sms_body(title: str, description: str | None = None) -> str:
    """Text message body for a reminder."""
    body = f"Reminder: {title}"
    if description:
        body += f"\n\n{description}"
    return body


def build_call_twiml(title: str, description: str | None = None, voice: str = "alice") -> str:
    """TwiML document read out on a reminder call."""
    message = f"This is a reminder for: {title}."
    if description:
        message += f" Additional details: {description}"
    return f'<Response><Say voice="{escape(voice)}">{escape(message)}</Say></Response>'


class Notifier:
    """Delivers reminders by SMS or voice call."""

    def __init__(
        self,
        transport: Transport,
        default_country_code: str = "1",
        voice: str = "alice",
    ) -> None:
        self.transport = transport
        self.default_country_code = default_country_code
        self.voice = voice
        self._handlers: dict[NotificationMethod, Callable[[str, str, str | None], str]] = {
            NotificationMethod.SMS: self._send_sms,
            NotificationMethod.CALL: self._place_call,
        }

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Notifier":
        """Build a Twilio-backed notifier.

        Raises:
            NotifierConfigurationError: If Twilio credentials are missing
        """
        settings = settings or get_settings()
        settings.validate_notifier()

        transport = TwilioTransport(
            account_sid=settings.TWILIO_ACCOUNT_SID,
            auth_token=settings.TWILIO_AUTH_TOKEN,
            from_number=settings.TWILIO_PHONE_NUMBER,
            timeout=settings.NOTIFIER_TIMEOUT_SECONDS,
        )
        return cls(
            transport,
            default_country_code=settings.DEFAULT_COUNTRY_CODE,
            voice=settings.TWILIO_VOICE,
        )

    def send(
        self,
        destination: str,
        title: str,
        description: str | None,
        method: NotificationMethod | str,
    ) -> DeliveryResult:
        """Send one reminder notification.

        Args:
            destination: Phone number, normalized before dialing
            title: Reminder title
            description: Optional extra text
            method: NotificationMethod (or its string value)

        Returns:
            DeliveryResult describing success or the failure cause
        """
        try:
            handler = self._handlers[NotificationMethod(method)]
        except (ValueError, KeyError):
            logger.error("Unsupported notification method", extra={"method": str(method)})
            return DeliveryResult.failed("Unsupported notification method")

        to = normalize_phone_number(destination, self.default_country_code)
        masked = mask_phone_number(to)

        try:
            sid = handler(to, title, description)
        except TransportError as e:
            logger.warning(
                f"Reminder delivery via {NotificationMethod(method).value} failed",
                extra={"to": masked, "error": str(e), "code": e.code},
            )
            return DeliveryResult.failed(str(e))

        logger.info(
            f"Reminder delivered via {NotificationMethod(method).value}",
            extra={"to": masked, "provider_message_id": sid},
        )
        return DeliveryResult.ok(sid)

    def _send_sms(self, to: str, title: str, description: str | None) -> str:
        return self.transport.send_sms(to, build_sms_body(title, description))

    def _place_call(self, to: str, title: str, description: str | None) -> str:
        return self.transport.place_call(to, build_call_twiml(title, description, self.voice))

    def close(self) -> None:
        """Release transport resources, if the transport holds any."""
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()
