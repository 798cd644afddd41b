"""Twilio transport.

Wraps the Twilio REST client for the two resources reminders use:
- messages.create() for text messages
- calls.create() for voice calls (inline TwiML)

Every delivery problem (network error, timeout, rejected or malformed
response) is raised as TransportError; the Notifier turns it into a failed
DeliveryResult.
"""

import logging

from requests.exceptions import RequestException, Timeout
from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from phone_reminders.notifications.phone import mask_phone_number

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """A message or call could not be handed to the provider."""

    def __init__(self, message: str, code: int | str | None = None) -> None:
        super().__init__(message)
        self.code = code


class TwilioTransport:
    """Sends messages and places calls through a Twilio account."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = 10.0,
        client: Client | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            from_number: Twilio number the messages and calls originate from
            timeout: Per-request timeout in seconds
            client: Optional preconfigured Twilio client
        """
        self.account_sid = account_sid
        self.from_number = from_number
        self.client = client or Client(
            account_sid,
            auth_token,
            http_client=TwilioHttpClient(timeout=timeout),
        )

    def send_sms(self, to: str, body: str) -> str:
        """Send a text message. Returns the message SID."""
        return self._create("Messages", to, body=body)

    def place_call(self, to: str, twiml: str) -> str:
        """Start a voice call that plays the given TwiML. Returns the call SID."""
        return self._create("Calls", to, twiml=twiml)

    def _create(self, resource: str, to: str, **params: str) -> str:
        resources = self.client.messages if resource == "Messages" else self.client.calls
        try:
            instance = resources.create(to=to, from_=self.from_number, **params)
            sid = instance.sid
        except TwilioRestException as e:
            logger.error(
                "Twilio rejected request",
                extra={
                    "resource": resource,
                    "to": mask_phone_number(to),
                    "status_code": e.status,
                    "twilio_code": e.code,
                },
            )
            raise TransportError(e.msg or f"Twilio returned HTTP {e.status}", code=e.code) from e
        except Timeout as e:
            raise TransportError(f"Twilio request timed out: {e}") from e
        except (RequestException, TwilioException) as e:
            raise TransportError(f"Twilio request failed: {e}") from e
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            # Body that is not a JSON object
            raise TransportError(f"Unexpected Twilio response: {e}") from e

        if not sid:
            raise TransportError("Twilio response did not include a SID")
        return sid

    def close(self) -> None:
        """Close the pooled HTTP session, if any."""
        session = getattr(self.client.http_client, "session", None)
        if session is not None:
            session.close()
