from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vault.core.config import request_logger
from vault.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    RateLimitExceededException,
    TooManyAttemptsException,
)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _error_response(
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
    **extra,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
        headers=headers,
    )


async def app_exception_handler(request: Request, exc: AppException):
    """
    Turns any ``AppException`` into a ``{success: false, message}`` body.

    Server-side failures (5xx other than 503) are logged with their detail
    but answered with a generic message.

    Args:
        request: The request object.
        exc (AppException): The exception instance.

    Returns:
        JSONResponse: The error body with the exception's status code.
    """
    if (
        exc.status_code >= 500
        and exc.status_code != status.HTTP_503_SERVICE_UNAVAILABLE
    ):
        request_logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}"
        )
        return _error_response(exc.status_code, INTERNAL_ERROR_MESSAGE)

    request_logger.warning(
        f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}"
    )
    if exc.details:
        return _error_response(
            exc.status_code, exc.message, details=jsonable_encoder(exc.details)
        )
    return _error_response(exc.status_code, exc.message)


async def database_exception_handler(request: Request, exc: DatabaseException):
    """
    Handles database exceptions without leaking the underlying error.

    Args:
        request: The request object.
        exc (DatabaseException): The database exception instance.

    Returns:
        JSONResponse: A generic error body with status code 500.
    """
    request_logger.error(f"DatabaseException: {exc}")
    return _error_response(exc.status_code, INTERNAL_ERROR_MESSAGE)


async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
):
    """
    Handles authentication exceptions, advertising the Bearer scheme.

    Args:
        request: The request object.
        exc (AuthenticationException): The authentication exception instance.

    Returns:
        JSONResponse: The error body with status code 401.
    """
    request_logger.warning(f"{type(exc).__name__}: {exc}")
    return _error_response(
        exc.status_code, exc.message, headers={"WWW-Authenticate": "Bearer"}
    )


async def rate_limit_exception_handler(
    request: Request, exc: RateLimitExceededException | TooManyAttemptsException
):
    """
    Handles throttling exceptions, with an optional Retry-After header.

    Args:
        request: The request object.
        exc: The rate limit or lockout exception instance.

    Returns:
        JSONResponse: The error body with status code 429.
    """
    request_logger.warning(f"{type(exc).__name__}: {exc}")
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    return _error_response(exc.status_code, exc.message, headers=headers)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    request_logger.warning(
        f"Validation failed on {request.method} {request.url.path}: {exc.errors()}"
    )
    errors = jsonable_encoder(exc.errors(), exclude={"input", "ctx", "url"})
    first = (
        errors[0]["msg"].removeprefix("Value error, ") if errors else "Invalid request."
    )
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, first, errors=errors
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last-resort handler; logs the traceback and hides the detail."""
    request_logger.exception(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}"
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE
    )


exception_schema = {
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "description": "Internal Server Error",
        "content": {
            "application/json": {
                "example": {"success": False, "message": INTERNAL_ERROR_MESSAGE},
            }
        },
    },
    status.HTTP_401_UNAUTHORIZED: {
        "description": "Authentication Error",
        "content": {
            "application/json": {
                "example": {"success": False, "message": "Authentication required."},
            }
        },
    },
    status.HTTP_429_TOO_MANY_REQUESTS: {
        "description": "Rate Limit Exceeded",
        "content": {
            "application/json": {
                "example": {
                    "success": False,
                    "message": "Rate limit exceeded. Please try again later.",
                },
            }
        },
    },
}


__all__ = [
    "INTERNAL_ERROR_MESSAGE",
    "app_exception_handler",
    "database_exception_handler",
    "authentication_exception_handler",
    "rate_limit_exception_handler",
    "validation_exception_handler",
    "unhandled_exception_handler",
    "exception_schema",
]
