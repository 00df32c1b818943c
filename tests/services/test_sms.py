"""
Tests for the Twilio SMS sender. The Twilio client is always mocked.
"""

from unittest.mock import MagicMock, patch

import pytest
from twilio.base.exceptions import TwilioRestException

from vault.core.exceptions.types import AppException
from vault.core.services.sms import TwilioService


@pytest.fixture
def twilio_client():
    client = MagicMock()
    client.messages.create.return_value = MagicMock(sid="SM42")
    with patch.object(TwilioService, "_client", client), patch.object(
        TwilioService, "_account_sid", "AC123"
    ), patch.object(TwilioService, "_auth_token", "token"), patch.object(
        TwilioService, "_from_number", "+15550001111"
    ):
        yield client


class TestTwilioService:

    async def test_send_sms(self, twilio_client):
        sid = await TwilioService.send_sms("+15551230000", "Your code is 123456")

        assert sid == "SM42"
        twilio_client.messages.create.assert_called_once_with(
            to="+15551230000", from_="+15550001111", body="Your code is 123456"
        )

    async def test_provider_error_is_service_unavailable(self, twilio_client):
        twilio_client.messages.create.side_effect = TwilioRestException(
            status=401, uri="/Messages", msg="Authenticate"
        )

        with pytest.raises(AppException) as exc_info:
            await TwilioService.send_sms("+15551230000", "hi")

        assert exc_info.value.status_code == 503

    async def test_network_error_is_service_unavailable(self, twilio_client):
        twilio_client.messages.create.side_effect = ConnectionError("reset")

        with pytest.raises(AppException):
            await TwilioService.send_sms("+15551230000", "hi")

    def test_init_without_credentials_disables_channel(self):
        with patch.object(TwilioService, "_client", None):
            TwilioService.init(account_sid="", auth_token="", from_number="")

            assert TwilioService.is_configured() is False
            assert TwilioService._client is None

    def test_init_with_credentials_builds_client(self):
        with patch.object(TwilioService, "_client", None), patch.object(
            TwilioService, "_account_sid", ""
        ), patch.object(TwilioService, "_auth_token", ""), patch.object(
            TwilioService, "_from_number", ""
        ):
            TwilioService.init(
                account_sid="AC123", auth_token="token", from_number="+15550001111"
            )

            assert TwilioService.is_configured() is True
            assert TwilioService._client is not None
