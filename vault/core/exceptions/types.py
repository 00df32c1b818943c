from fastapi import status


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code or status.HTTP_500_INTERNAL_SERVER_ERROR
        self.details = details
        super().__init__(message)


class DatabaseException(AppException):
    """Exception raised for database-related errors."""

    def __init__(self, message: str = "A database error occurred."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class AuthenticationException(AppException):
    """Raised when the caller has no valid session bearer."""

    def __init__(self, message: str = "Authentication required."):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class InvalidCredentialsException(AuthenticationException):
    """Raised for a wrong password or an unknown account.

    Both cases share one message so callers cannot probe for accounts.
    """

    def __init__(self, message: str = "Invalid credentials."):
        super().__init__(message)


class ServiceUnavailableException(AppException):
    """Raised when no delivery channel could place the code."""

    def __init__(
        self,
        message: str = "Service temporarily unavailable.",
        details: dict | None = None,
    ):
        super().__init__(message, status.HTTP_503_SERVICE_UNAVAILABLE, details)


class OTPInvalidException(AppException):
    """Raised when no unconsumed, unexpired code matches the submission."""

    def __init__(
        self,
        message: str = "Invalid or expired OTP. Please verify your password again.",
    ):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class TooManyAttemptsException(AppException):
    """Exception raised when too many code verification attempts failed."""

    def __init__(
        self,
        message: str = "Too many failed attempts. Please try again later.",
        retry_after: int | None = None,
    ):
        super().__init__(message, status.HTTP_429_TOO_MANY_REQUESTS)
        self.retry_after = retry_after


class RateLimitExceededException(AppException):
    """Exception raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        retry_after: int | None = None,
    ):
        super().__init__(message, status.HTTP_429_TOO_MANY_REQUESTS)
        self.retry_after = retry_after


class NotFoundException(AppException):
    """Exception raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found."):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ConflictException(AppException):
    """Exception raised when there's a conflict with existing resources."""

    def __init__(self, message: str = "Resource conflict."):
        super().__init__(message, status.HTTP_409_CONFLICT)


class AccountAlreadyExistsException(ConflictException):
    """Exception raised when the email is already registered."""

    def __init__(
        self, message: str = "An account already exists with this email address"
    ):
        super().__init__(message)


class BadRequestException(AppException):
    """Exception raised for bad request errors."""

    def __init__(self, message: str = "Bad request."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class ForbiddenException(AppException):
    """Exception raised when access is forbidden."""

    def __init__(self, message: str = "Access denied."):
        super().__init__(message, status.HTTP_403_FORBIDDEN)


__all__ = [
    "AppException",
    "DatabaseException",
    "AuthenticationException",
    "InvalidCredentialsException",
    "ServiceUnavailableException",
    "OTPInvalidException",
    "TooManyAttemptsException",
    "RateLimitExceededException",
    "NotFoundException",
    "ConflictException",
    "AccountAlreadyExistsException",
    "BadRequestException",
    "ForbiddenException",
]
