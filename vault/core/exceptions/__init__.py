from vault.core.exceptions.types import (
    AccountAlreadyExistsException,
    AppException,
    AuthenticationException,
    BadRequestException,
    ConflictException,
    DatabaseException,
    ForbiddenException,
    InvalidCredentialsException,
    NotFoundException,
    OTPInvalidException,
    RateLimitExceededException,
    ServiceUnavailableException,
    TooManyAttemptsException,
)

__all__ = [
    "AccountAlreadyExistsException",
    "AppException",
    "AuthenticationException",
    "BadRequestException",
    "ConflictException",
    "DatabaseException",
    "ForbiddenException",
    "InvalidCredentialsException",
    "NotFoundException",
    "OTPInvalidException",
    "RateLimitExceededException",
    "ServiceUnavailableException",
    "TooManyAttemptsException",
]
