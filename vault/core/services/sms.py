from anyio.to_thread import run_sync
from fastapi import status
from twilio.base.exceptions import TwilioException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client as TwilioClient

from vault.core.config import settings, sms_logger
from vault.core.exceptions.types import AppException
from vault.core.services.base import SingletonService


class TwilioService(SingletonService):
    """
    SMS sender backed by the Twilio REST client.

    The Twilio SDK is synchronous, so each send runs in a worker thread.
    A missing account SID, auth token or sender number leaves the service
    unconfigured rather than failing at startup.
    """

    _account_sid: str = settings.TWILIO_ACCOUNT_SID
    _auth_token: str = settings.TWILIO_AUTH_TOKEN
    _from_number: str = settings.TWILIO_PHONE_NUMBER
    _timeout: float = settings.DELIVERY_TIMEOUT_SECONDS
    _client: TwilioClient | None = None

    @classmethod
    def init(
        cls,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Configure credentials and build the REST client when they are complete.

        Args:
            account_sid: Twilio account SID.
            auth_token: Twilio auth token.
            from_number: Sender phone number in E.164 format.
            timeout: Per-request timeout in seconds.
        """
        if account_sid is not None:
            cls._account_sid = account_sid
        if auth_token is not None:
            cls._auth_token = auth_token
        if from_number is not None:
            cls._from_number = from_number
        if timeout is not None:
            cls._timeout = timeout

        cls._client = None
        if cls.is_configured():
            cls._client = TwilioClient(
                cls._account_sid,
                cls._auth_token,
                http_client=TwilioHttpClient(timeout=cls._timeout),
            )
            sms_logger.info("Twilio client initialized")
        else:
            sms_logger.warning("Twilio credentials missing; SMS channel disabled")

        cls._initialized = True

    @classmethod
    def is_configured(cls) -> bool:
        return bool(cls._account_sid and cls._auth_token and cls._from_number)

    @classmethod
    def _reset(cls) -> None:
        super()._reset()
        cls._client = None

    @classmethod
    async def send_sms(cls, to: str, body: str) -> str:
        """
        Send one SMS.

        Args:
            to: Destination number, already normalized to ``+<digits>``.
            body: Message text.

        Returns:
            str: The Twilio message SID.

        Raises:
            AppException: 503 if the service is not configured or Twilio
                rejects the message.
        """
        if cls._client is None:
            if not cls.is_configured():
                raise AppException(
                    "SMS service not configured",
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                )
            cls.init()
        client = cls._client
        assert client is not None, "Twilio client should be initialized"

        def create() -> str:
            message = client.messages.create(
                to=to, from_=cls._from_number, body=body
            )
            return message.sid

        try:
            sid = await run_sync(create)
        except (TwilioException, OSError) as e:
            sms_logger.error(f"Twilio send failed: {str(e)}")
            raise AppException(
                f"SMS provider error: {str(e)}",
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            ) from e

        sms_logger.info(f"SMS accepted by Twilio, sid={sid}")
        return sid


__all__ = ["TwilioService"]
