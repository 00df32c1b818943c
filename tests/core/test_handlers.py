"""
Tests for exception handlers and the error body they produce.
"""

import json
from unittest.mock import MagicMock

from vault.core.exceptions.handlers import (
    INTERNAL_ERROR_MESSAGE,
    app_exception_handler,
    authentication_exception_handler,
    database_exception_handler,
    rate_limit_exception_handler,
    unhandled_exception_handler,
)
from vault.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    NotFoundException,
    ServiceUnavailableException,
    TooManyAttemptsException,
)


def _request() -> MagicMock:
    request = MagicMock()
    request.method = "GET"
    request.url.path = "/test"
    return request


def _body(response) -> dict:
    return json.loads(response.body)


class TestHandlers:

    async def test_client_error_keeps_message(self):
        response = await app_exception_handler(
            _request(), NotFoundException("Document not found")
        )

        assert response.status_code == 404
        assert _body(response) == {"success": False, "message": "Document not found"}

    async def test_service_unavailable_keeps_message_and_details(self):
        exc = ServiceUnavailableException(
            "Failed to send OTP", details={"email": "down", "sms": "down"}
        )

        response = await app_exception_handler(_request(), exc)

        assert response.status_code == 503
        assert _body(response) == {
            "success": False,
            "message": "Failed to send OTP",
            "details": {"email": "down", "sms": "down"},
        }

    async def test_server_error_is_hidden(self):
        response = await app_exception_handler(
            _request(), AppException("secret internals")
        )

        assert response.status_code == 500
        assert _body(response)["message"] == INTERNAL_ERROR_MESSAGE

    async def test_database_error_is_hidden(self):
        response = await database_exception_handler(
            _request(), DatabaseException("relation does not exist")
        )

        assert response.status_code == 500
        assert _body(response)["message"] == INTERNAL_ERROR_MESSAGE

    async def test_authentication_advertises_bearer(self):
        response = await authentication_exception_handler(
            _request(), AuthenticationException()
        )

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_retry_after(self):
        response = await rate_limit_exception_handler(
            _request(), TooManyAttemptsException(retry_after=42)
        )

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "42"

    async def test_unhandled(self):
        response = await unhandled_exception_handler(_request(), RuntimeError("boom"))

        assert response.status_code == 500
        assert _body(response) == {"success": False, "message": INTERNAL_ERROR_MESSAGE}
