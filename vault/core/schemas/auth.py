"""
Account and session schemas for request validation and response serialization.

- Registration and login
- Profile read and update
- Password change
"""

from datetime import datetime
import re
from typing import Annotated
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
)

PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)]{10,}$")

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 6


def _validate_name(value: str) -> str:
    value = value.strip()
    if len(value) < MIN_NAME_LENGTH:
        raise ValueError(
            f"Name must be at least {MIN_NAME_LENGTH} characters long"
        )
    return value


def _validate_phone(value: str) -> str:
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Please enter a valid phone number")
    return value


def _validate_password(value: str, label: str = "Password") -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(
            f"{label} must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return value


class MessageResponse(BaseModel):
    """Generic message response."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"success": True, "message": "Operation completed successfully"}
        }
    )

    success: bool = True
    message: str


class AccountResponse(BaseModel):
    """Public view of an account. Never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: EmailStr
    phone: str
    created_at: datetime


class RegisterRequest(BaseModel):
    """Request schema for account registration."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Ada Student",
                "email": "ada@college.edu",
                "phone": "+1 555 123 0000",
                "password": "secret123",
            }
        }
    )

    name: Annotated[str, Field(max_length=255, description="Display name")]
    email: Annotated[EmailStr, Field(description="Login email, case-insensitive")]
    phone: Annotated[str, Field(max_length=32, description="Phone number for SMS codes")]
    password: Annotated[str, Field(max_length=128, description="At least 6 characters")]

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _validate_name(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _validate_phone(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _validate_password(v)


class LoginRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "ada@college.edu", "password": "secret123"}
        }
    )

    email: EmailStr
    password: Annotated[str, Field(min_length=1, max_length=128)]

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class AuthResponse(BaseModel):
    """Response for register and login: the account plus a session token."""

    success: bool = True
    message: str
    user: AccountResponse
    token: str


class ProfileResponse(BaseModel):
    success: bool = True
    message: str = "Profile retrieved successfully"
    user: AccountResponse


class UpdateProfileRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    name: Annotated[str | None, Field(max_length=255)] = None
    email: EmailStr | None = None
    phone: Annotated[str | None, Field(max_length=32)] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return None if v is None else _validate_name(v)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return None if v is None else v.strip().lower()

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        return None if v is None else _validate_phone(v)


class ChangePasswordRequest(BaseModel):
    current_password: Annotated[str, Field(min_length=1, max_length=128)]
    new_password: Annotated[str, Field(max_length=128)]

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _validate_password(v, label="New password")


__all__ = [
    "PHONE_PATTERN",
    "MessageResponse",
    "AccountResponse",
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "ProfileResponse",
    "UpdateProfileRequest",
    "ChangePasswordRequest",
]
