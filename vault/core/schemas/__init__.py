"""
Shared schemas for API request validation and response serialization.

"""

from vault.core.schemas.auth import (
    MessageResponse,
    AccountResponse,
    RegisterRequest,
    LoginRequest,
    AuthResponse,
    ProfileResponse,
    UpdateProfileRequest,
    ChangePasswordRequest,
)
from vault.core.schemas.step_up import (
    StepUpRequest,
    StepUpChannels,
    StepUpResponse,
    StepUpVerifyRequest,
    StepUpVerifyResponse,
)

__all__ = [
    "MessageResponse",
    "AccountResponse",
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "ProfileResponse",
    "UpdateProfileRequest",
    "ChangePasswordRequest",
    "StepUpRequest",
    "StepUpChannels",
    "StepUpResponse",
    "StepUpVerifyRequest",
    "StepUpVerifyResponse",
]
