"""
Utility functions for the application.

- Password hashing and verification using bcrypt
- JWT session token creation and decoding
- One-time code generation, masking and HMAC hashing
- Contact normalization and masking for delivery logs
- File size formatting and OpenAPI export
"""

from datetime import datetime, timedelta, timezone
import hashlib
import hmac
import json
import re
import secrets
from typing import Any
import uuid

import aiofiles
import bcrypt
from fastapi import FastAPI
import jwt

from vault.core.config import settings, utils_logger


def hash_password(password: str | None) -> str:
    """
    Hash a password using bcrypt with a random salt.

    Args:
        password: The plain text password to hash. Cannot be None.

    Returns:
        str: The bcrypt hash (60 characters, ``$2b$`` prefix).

    Raises:
        ValueError: If password is None.

    Examples:
        >>> hashed = hash_password("MySecurePassword123")
        >>> hashed.startswith("$2b$")
        True
    """
    if password is None:
        utils_logger.error("Attempted to hash None password")
        raise ValueError("Password cannot be None")

    password_bytes = password.encode("utf-8")

    # Bcrypt only looks at the first 72 bytes
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(password: str | None, hashed_password: str | None) -> bool:
    """
    Verify a password against a bcrypt hash.

    Never raises: any malformed input simply fails verification.

    Args:
        password: The plain text password to verify.
        hashed_password: The bcrypt hash to verify against.

    Returns:
        bool: True if password matches the hash, False otherwise.

    Examples:
        >>> hashed = hash_password("MyPassword123")
        >>> verify_password("MyPassword123", hashed)
        True
        >>> verify_password("WrongPassword", hashed)
        False
    """
    if password is None or hashed_password is None:
        utils_logger.warning("Password verification attempted with None value(s)")
        return False

    try:
        password_bytes = password.encode("utf-8")
        if len(password_bytes) > 72:
            password_bytes = password_bytes[:72]

        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))

    except (ValueError, AttributeError) as e:
        utils_logger.warning(
            f"Password verification failed due to invalid hash format: {type(e).__name__}"
        )
        return False


def create_jwt_token(
    data: dict[str, Any] | None,
    expires_delta: timedelta | None = None,
    secret: str | None = None,
) -> str:
    """
    Create an HS256 JWT carrying ``data`` plus ``exp``, ``iat`` and ``jti``.

    Args:
        data: Claims to encode. Cannot be None.
        expires_delta: Lifetime of the token. Defaults to 15 minutes.
            Can be negative for immediate expiration (testing only).
        secret: Signing key. Defaults to ``settings.JWT_SECRET_KEY``.

    Returns:
        str: Encoded JWT token string in the format header.payload.signature

    Raises:
        ValueError: If data is None.

    Examples:
        >>> token = create_jwt_token({"sub": "123", "type": "access"})
        >>> len(token.split("."))
        3
    """
    if data is None:
        utils_logger.error("Attempted to create JWT token with None data")
        raise ValueError("Data cannot be None")

    to_encode = data.copy()

    if expires_delta is None:
        expires_delta = timedelta(minutes=15)

    now = datetime.now(timezone.utc)
    to_encode["exp"] = now + expires_delta
    to_encode["iat"] = now
    to_encode["jti"] = str(uuid.uuid4())

    return jwt.encode(
        to_encode,
        secret or settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_jwt_token(
    token: str | None, secret: str | None = None
) -> dict[str, Any] | None:
    """
    Decode and validate a JWT token.

    Signature and expiration are checked. Returns None for any invalid,
    expired, or tampered token.

    Args:
        token: The JWT token string to decode. Can be None or empty.
        secret: Verification key. Defaults to ``settings.JWT_SECRET_KEY``.

    Returns:
        dict[str, Any] | None: The decoded claims, or None if the token is unusable.

    Examples:
        >>> decode_jwt_token("invalid.token.here") is None
        True
    """
    if not token:
        return None

    try:
        return jwt.decode(
            token,
            secret or settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        utils_logger.info("JWT token decoding failed: token has expired")
        return None
    except jwt.InvalidTokenError as e:
        utils_logger.warning(
            f"JWT token decoding failed: invalid token - {type(e).__name__}"
        )
        return None


def generate_otp_code(length: int | None = None) -> str:
    """
    Generate a numeric one-time code, uniform over all codes of that length
    without a leading zero (``[100000, 999999]`` for six digits).

    Args:
        length: Number of digits. Defaults to ``settings.OTP_LENGTH``.

    Returns:
        The code as a string of ASCII digits.
    """
    if length is None:
        length = settings.OTP_LENGTH
    if length < 1:
        raise ValueError("OTP length must be positive")

    low = 10 ** (length - 1)
    high = 10**length
    return str(low + secrets.randbelow(high - low))


def mask_otp(otp: str) -> str:
    """
    Mask an OTP code for logging purposes, showing only first and last digit.

    Examples:
        >>> mask_otp("123456")
        '1****6'
        >>> mask_otp("12")
        '12'
    """
    if len(otp) <= 2:
        return otp

    return f"{otp[0]}{'*' * (len(otp) - 2)}{otp[-1]}"


def hmac_hash_otp(otp: str | None, secret: str | None = None) -> str:
    """
    Hash an OTP using HMAC-SHA256 for secure, queryable storage.

    HMAC is deterministic, so the digest can be used directly in a WHERE
    clause; two codes match exactly when their digests do.

    Args:
        otp: The code to hash. Cannot be None or empty.
        secret: HMAC key. Defaults to ``settings.OTP_HMAC_SECRET``.

    Returns:
        str: 64-character hexadecimal digest.

    Raises:
        ValueError: If otp or secret is None or empty.

    Examples:
        >>> len(hmac_hash_otp("123456", "my_secret_key"))
        64
    """
    if not otp:
        raise ValueError("OTP cannot be None or empty")

    secret = secret if secret is not None else settings.OTP_HMAC_SECRET
    if not secret:
        raise ValueError("Secret cannot be None or empty")

    return hmac.new(
        secret.encode("utf-8"), otp.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def normalize_phone(phone: str) -> str:
    """
    Normalize a phone number to the international format SMS providers expect.

    Every non-digit is dropped and a single leading ``+`` is added.

    Examples:
        >>> normalize_phone("+1 555 123 0000")
        '+15551230000'
        >>> normalize_phone("(555) 123-0000")
        '+5551230000'
    """
    return "+" + re.sub(r"\D", "", phone)


def mask_email(email: str) -> str:
    """
    Examples:
        >>> mask_email("student@example.com")
        's*****t@example.com'
    """
    local, _, domain = email.partition("@")
    if not domain:
        return mask_otp(email)
    return f"{mask_otp(local)}@{domain}"


def mask_phone(phone: str) -> str:
    """Keep only the last four digits of a phone number."""
    digits = re.sub(r"\D", "", phone)
    if len(digits) <= 4:
        return "*" * len(digits)
    return f"{'*' * (len(digits) - 4)}{digits[-4:]}"


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite returns them without tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_file_size(size: int) -> str:
    """
    Render a byte count with a binary unit, rounded to two decimals.

    Examples:
        >>> format_file_size(0)
        '0 B'
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(1234567)
        '1.18 MB'
    """
    if size <= 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1

    rounded = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{rounded} {units[index]}"


def generate_openapi_json(app: FastAPI) -> str:
    """Serialize the application's OpenAPI schema."""
    return json.dumps(app.openapi(), indent=2)


async def write_to_file_async(file_path: str, content: str) -> None:
    """Write text content to a file without blocking the event loop."""
    async with aiofiles.open(file_path, "w", encoding="utf-8") as f:
        await f.write(content)
