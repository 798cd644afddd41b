"""Tests for the notifier and the Twilio transport."""

import doctest
import json
import logging

import pytest
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import ReadTimeout
from twilio.http import HttpClient
from twilio.http.response import Response
from twilio.rest import Client

from phone_reminders.config import NotifierConfigurationError, Settings
from phone_reminders.models.reminder import NotificationMethod
from phone_reminders.notifications import (
    DeliveryResult,
    Notifier,
    TransportError,
    TwilioTransport,
    build_call_twiml,
    build_sms_body,
    mask_phone_number,
    normalize_phone_number,
)
from phone_reminders.notifications import phone

from conftest import FakeTransport


# ============================================================================
# Phone numbers
# ============================================================================

class TestNormalizePhoneNumber:
    """normalize_phone_number() rules."""

    def test_ten_digits_get_country_code(self):
        assert normalize_phone_number("5551234567") == "+15551234567"

    def test_plus_prefixed_unchanged(self):
        assert normalize_phone_number("+447700900123") == "+447700900123"

    def test_eleven_digits_with_country_code_get_plus(self):
        assert normalize_phone_number("15551234567") == "+15551234567"

    def test_formatting_characters_stripped(self):
        assert normalize_phone_number("(555) 123-4567") == "+15551234567"
        assert normalize_phone_number("555.123.4567") == "+15551234567"

    def test_other_country_code(self):
        assert normalize_phone_number("7700900123", default_country_code="44") == "+447700900123"

    def test_docstring_examples(self):
        assert doctest.testmod(phone).failed == 0

    def test_mask_keeps_last_four(self):
        assert mask_phone_number("+15551234567") == "********4567"
        assert mask_phone_number("123") == "***"


# ============================================================================
# Message bodies
# ============================================================================

class TestMessageBodies:
    """SMS body and call TwiML."""

    def test_sms_body_title_only(self):
        assert build_sms_body("Dentist") == "Reminder: Dentist"

    def test_sms_body_with_description(self):
        assert build_sms_body("Dentist", "Bring X-rays") == "Reminder: Dentist\n\nBring X-rays"

    def test_call_twiml(self):
        twiml = build_call_twiml("Dentist", "Bring X-rays")
        assert twiml == (
            '<Response><Say voice="alice">This is a reminder for: Dentist. '
            "Additional details: Bring X-rays</Say></Response>"
        )

    def test_call_twiml_escapes_markup(self):
        twiml = build_call_twiml("Tom & Jerry <3")
        assert "Tom &amp; Jerry &lt;3" in twiml
        assert "<3" not in twiml


# ============================================================================
# Notifier
# ============================================================================

class TestNotifier:
    """Notifier.send() dispatch."""

    def test_sms_dispatch(self, notifier, fake_transport):
        """SMS goes to send_sms with a normalized number."""
        result = notifier.send("5551234567", "Dentist", None, NotificationMethod.SMS)

        assert result.success is True
        assert result.provider_message_id.startswith("SM")
        assert fake_transport.messages == [("+15551234567", "Reminder: Dentist")]
        assert fake_transport.calls == []

    def test_call_dispatch(self, notifier, fake_transport):
        result = notifier.send("+15551234567", "Dentist", "Bring X-rays", NotificationMethod.CALL)

        assert result.success is True
        assert result.provider_message_id.startswith("CA")
        assert len(fake_transport.calls) == 1
        to, twiml = fake_transport.calls[0]
        assert to == "+15551234567"
        assert "This is a reminder for: Dentist." in twiml

    def test_string_method_accepted(self, notifier, fake_transport):
        assert notifier.send("+15551234567", "Dentist", None, "sms").success is True

    def test_unknown_method(self, notifier, fake_transport):
        result = notifier.send("+15551234567", "Dentist", None, "carrier_pigeon")

        assert result == DeliveryResult(success=False, cause="Unsupported notification method")
        assert fake_transport.messages == []

    def test_transport_error_becomes_failure(self, failing_notifier):
        """Delivery problems never raise out of send()."""
        result = failing_notifier.send("+15551234567", "Dentist", None, NotificationMethod.SMS)

        assert result.success is False
        assert result.cause == "Carrier rejected message"
        assert result.provider_message_id is None

    def test_custom_voice(self):
        transport = FakeTransport()
        Notifier(transport, voice="woman").send("+15551234567", "Dentist", None, NotificationMethod.CALL)
        assert 'voice="woman"' in transport.calls[0][1]

    def test_close_without_transport_close(self, notifier):
        notifier.close()


class TestNotifierFromSettings:
    """Notifier.from_settings() configuration checks."""

    def _settings(self, **values) -> Settings:
        settings = Settings()
        settings.TWILIO_ACCOUNT_SID = "AC123"
        settings.TWILIO_AUTH_TOKEN = "token"
        settings.TWILIO_PHONE_NUMBER = "+15550000000"
        for key, value in values.items():
            setattr(settings, key, value)
        return settings

    def test_missing_credentials_raise(self):
        settings = self._settings(TWILIO_AUTH_TOKEN="", TWILIO_PHONE_NUMBER="")

        with pytest.raises(NotifierConfigurationError) as exc_info:
            Notifier.from_settings(settings)

        assert "TWILIO_AUTH_TOKEN" in str(exc_info.value)
        assert "TWILIO_PHONE_NUMBER" in str(exc_info.value)
        assert "TWILIO_ACCOUNT_SID" not in str(exc_info.value)

    def test_builds_twilio_transport(self):
        notifier = Notifier.from_settings(self._settings(DEFAULT_COUNTRY_CODE="44"))

        assert isinstance(notifier.transport, TwilioTransport)
        assert notifier.transport.from_number == "+15550000000"
        assert notifier.transport.account_sid == "AC123"
        assert notifier.transport.client.http_client.timeout == 10.0
        assert notifier.default_country_code == "44"


# ============================================================================
# Twilio transport
# ============================================================================

class StubHttpClient(HttpClient):
    """Twilio HTTP client answering every request with a canned response."""

    def __init__(self, handler) -> None:
        super().__init__(logger=logging.getLogger(__name__), is_async=False)
        self.handler = handler
        self.requests: list[dict] = []

    def request(self, method, url, params=None, data=None, headers=None, auth=None,
                timeout=None, allow_redirects=False, **kwargs):
        self.requests.append({"method": method, "url": url, "data": data, "auth": auth})
        return self.handler()


def _transport(handler) -> tuple[TwilioTransport, StubHttpClient]:
    http_client = StubHttpClient(handler)
    client = Client("AC123", "token", http_client=http_client)
    transport = TwilioTransport(
        account_sid="AC123",
        auth_token="token",
        from_number="+15550000000",
        client=client,
    )
    return transport, http_client


class TestTwilioTransport:
    """Request and error handling of TwilioTransport."""

    def test_send_sms_creates_message(self):
        transport, http_client = _transport(lambda: Response(201, json.dumps({"sid": "SM0001"})))

        sid = transport.send_sms("+15551234567", "Reminder: Dentist")

        assert sid == "SM0001"
        sent = http_client.requests[0]
        assert sent["method"] == "POST"
        assert sent["url"].endswith("/2010-04-01/Accounts/AC123/Messages.json")
        assert sent["data"]["To"] == "+15551234567"
        assert sent["data"]["From"] == "+15550000000"
        assert sent["data"]["Body"] == "Reminder: Dentist"

    def test_place_call_sends_twiml(self):
        transport, http_client = _transport(lambda: Response(201, json.dumps({"sid": "CA0001"})))

        sid = transport.place_call("+15551234567", "<Response/>")

        assert sid == "CA0001"
        assert http_client.requests[0]["url"].endswith("/Calls.json")
        assert http_client.requests[0]["data"]["Twiml"] == "<Response/>"

    def test_rejection_raises_with_twilio_message(self):
        body = {"code": 21211, "message": "The 'To' number is not a valid phone number."}
        transport, _ = _transport(lambda: Response(400, json.dumps(body)))

        with pytest.raises(TransportError) as exc_info:
            transport.send_sms("+15551234567", "hi")

        assert exc_info.value.code == 21211
        assert "not a valid phone number" in str(exc_info.value)

    @pytest.mark.parametrize("body", ['[{"message": "bad"}]', '"bad"', "Service Unavailable"])
    def test_rejection_with_non_object_body(self, body):
        transport, _ = _transport(lambda: Response(400, body))

        with pytest.raises(TransportError):
            transport.send_sms("+15551234567", "hi")

    @pytest.mark.parametrize("body", ['[{"sid": "SM1"}]', '"SM1"'])
    def test_success_with_non_object_body(self, body):
        transport, _ = _transport(lambda: Response(201, body))

        with pytest.raises(TransportError):
            transport.send_sms("+15551234567", "hi")

    def test_timeout_raises(self):
        def handler():
            raise ReadTimeout("timed out")

        transport, _ = _transport(handler)

        with pytest.raises(TransportError, match="timed out"):
            transport.send_sms("+15551234567", "hi")

    def test_connection_error_raises(self):
        def handler():
            raise RequestsConnectionError("connection refused")

        transport, _ = _transport(handler)

        with pytest.raises(TransportError, match="request failed"):
            transport.send_sms("+15551234567", "hi")

    def test_missing_sid_raises(self):
        transport, _ = _transport(lambda: Response(201, json.dumps({"status": "queued"})))

        with pytest.raises(TransportError, match="SID"):
            transport.send_sms("+15551234567", "hi")

    def test_notifier_over_rejection(self):
        """A rejected request ends as a failed DeliveryResult."""
        body = {"code": 21610, "message": "Unsubscribed recipient"}
        transport, _ = _transport(lambda: Response(400, json.dumps(body)))

        result = Notifier(transport).send("5551234567", "Dentist", None, NotificationMethod.SMS)

        assert result.success is False
        assert "Unsubscribed recipient" in result.cause

    def test_notifier_over_non_object_error_body(self):
        """A malformed error body is a failed delivery, not an exception."""
        transport, _ = _transport(lambda: Response(400, '[{"message": "bad"}]'))

        result = Notifier(transport).send("5551234567", "x", None, "sms")

        assert result.success is False
        assert result.cause

    def test_default_client_uses_timeout(self):
        transport = TwilioTransport("AC123", "token", "+15550000000", timeout=7.5)

        assert transport.client.http_client.timeout == 7.5
        transport.close()
