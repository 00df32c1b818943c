from typing import Any

from fastapi import status as http_status
import httpx
from pydantic import BaseModel

from vault.core.config import brevo_logger, settings
from vault.core.exceptions.types import AppException


class Contact(BaseModel):
    email: str
    name: str | None = None


class ListContact(BaseModel):
    to: list[Contact]


class BrevoService:
    """
    Thin client over the Brevo transactional email API.

    Each send is a single attempt: failures surface as ``AppException`` and
    the caller decides what a failed channel means.
    """

    _base_url: str = settings.BREVO_BASE_URL
    _api_key: str = settings.BREVO_API_KEY
    _sender_email: str = settings.BREVO_SENDER_EMAIL
    _sender_name: str = settings.BREVO_SENDER_NAME
    _timeout: float = settings.DELIVERY_TIMEOUT_SECONDS
    _client: httpx.AsyncClient | None = None

    @classmethod
    def is_configured(cls) -> bool:
        """Whether an API key and sender are available."""
        return bool(cls._api_key and cls._sender_email)

    @classmethod
    def _init_client(cls) -> None:
        """
        Initializes the Brevo HTTP client if it has not already been initialized.

        Returns:
            None
        """
        if cls._client is None:
            cls._client = httpx.AsyncClient(
                base_url=cls._base_url,
                timeout=httpx.Timeout(cls._timeout),
            )
            brevo_logger.info("Brevo HTTP client initialized")

    @classmethod
    async def aclose(cls) -> None:
        """
        Asynchronously closes the Brevo HTTP client if it is initialized.

        Raises:
            Any exception raised while closing the HTTP client propagates.
        """
        if cls._client is not None:
            try:
                await cls._client.aclose()
            finally:
                cls._client = None
                brevo_logger.info("Brevo HTTP client closed")

    @classmethod
    async def init(
        cls,
        api_key: str | None = None,
        sender_email: str | None = None,
        sender_name: str | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Initializes the Brevo service with the provided configuration.

        Parameters left as None keep their current value. Any existing
        client is closed before a new one is created.

        Args:
            api_key (str | None): The API key for authenticating requests.
            sender_email (str | None): The email address of the sender.
            sender_name (str | None): The name of the sender.
            timeout (float | None): Per-request timeout in seconds.
        """
        if api_key is not None:
            cls._api_key = api_key
        if sender_email is not None:
            cls._sender_email = sender_email
        if sender_name is not None:
            cls._sender_name = sender_name
        if timeout is not None:
            cls._timeout = timeout
        await cls.aclose()
        cls._init_client()

    @classmethod
    def _auth_headers(cls, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {
            "api-key": cls._api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    @classmethod
    async def _request(
        cls,
        method: str,
        endpoint: str,
        *,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any] | str:
        """
        Perform one HTTP request against the Brevo API.

        Args:
            method: HTTP method to use (e.g. "POST").
            endpoint: Endpoint path relative to the configured base URL.
            json: Optional JSON body.
            headers: Optional headers merged over the authentication headers.

        Returns:
            Parsed JSON body, or the raw text when the body is not JSON.

        Raises:
            AppException: With the provider status for HTTP errors, or 503 for
                timeouts and transport errors.
        """
        if cls._client is None:
            cls._init_client()
        assert cls._client is not None, "HTTP client should be initialized"

        try:
            resp: httpx.Response = await cls._client.request(
                method, endpoint, headers=cls._auth_headers(headers), json=json
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            try:
                err_body = exc.response.json()
            except ValueError:
                err_body = exc.response.text
            brevo_logger.error(f"Brevo HTTP error {status}: {err_body}")
            raise AppException(
                message=f"HTTP error {status}: {err_body}", status_code=status
            ) from exc
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            brevo_logger.error(f"Brevo network error: {type(exc).__name__}: {exc}")
            raise AppException(
                message="Brevo network error",
                status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE,
            ) from exc

        try:
            body = resp.json()
        except ValueError:
            body = resp.text

        brevo_logger.info(f"Brevo response: {body}")
        return body

    @classmethod
    async def send_transactional_email(
        cls,
        subject: str,
        to: ListContact,
        sender: Contact | None = None,
        textContent: str | None = None,
        htmlContent: str | None = None,
    ) -> dict[str, Any] | str:
        """
        Sends a transactional email via the Brevo API.

        Args:
            subject (str): Subject of the email.
            to (ListContact): Recipients.
            sender (Contact | None): Sender; defaults to the configured sender.
            textContent (str | None): Plain text body.
            htmlContent (str | None): HTML body.

        Returns:
            dict[str, Any] | str: The Brevo API response (contains ``messageId``).

        Raises:
            ValueError: If neither body is given.
            AppException: If the provider call fails.
        """
        if not htmlContent and not textContent:
            raise ValueError("Either htmlContent or textContent must be provided")

        sender = sender or Contact(email=cls._sender_email, name=cls._sender_name)
        payload: dict[str, Any] = {
            "sender": sender.model_dump(exclude_none=True),
            "subject": subject,
            **to.model_dump(exclude_none=True),
        }
        if textContent:
            payload["textContent"] = textContent
        if htmlContent:
            payload["htmlContent"] = htmlContent

        return await cls._request(method="POST", endpoint="/smtp/email", json=payload)


__all__ = ["BrevoService", "Contact", "ListContact"]
