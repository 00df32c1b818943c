"""Step-up authentication schemas."""

from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StepUpRequest(BaseModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "password": "secret123",
                "document_id": "3f2b8c1e-4a5d-4e6f-8a9b-0c1d2e3f4a5b",
            }
        }
    )

    password: Annotated[str, Field(min_length=1, max_length=128)]
    document_id: Annotated[
        UUID, Field(description="Secure document the download is for")
    ]


class StepUpChannels(BaseModel):
    email: bool
    sms: bool


class StepUpResponse(BaseModel):
    success: bool = True
    message: str
    channels: StepUpChannels
    expires_in: Annotated[int, Field(description="Code lifetime in seconds")]


class StepUpVerifyRequest(BaseModel):
    """
    Code submission.

    The code is compared as an exact string, surrounding whitespace included;
    anything that is not the issued code fails the same way a wrong code does.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"code": "482913"}})

    code: Annotated[str, Field(max_length=32, description="Code from email or SMS")]

    @field_validator("code")
    @classmethod
    def require_code(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("OTP is required")
        return v


class StepUpVerifyResponse(BaseModel):
    success: bool = True
    message: str = "OTP verified successfully"
    document_id: UUID
    download_token: str
    download_url: str
    expires_in: Annotated[
        int, Field(description="Download token lifetime in seconds")
    ]


__all__ = [
    "StepUpRequest",
    "StepUpChannels",
    "StepUpResponse",
    "StepUpVerifyRequest",
    "StepUpVerifyResponse",
]
