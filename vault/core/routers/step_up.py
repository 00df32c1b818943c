"""
Step-up router: password re-entry plus a one-time code, exchanged for a
short-lived download token.

Mounted under /auth.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from vault.core.config import settings
from vault.core.dependencies import CurrentUser, get_async_session
from vault.core.schemas.step_up import (
    StepUpChannels,
    StepUpRequest,
    StepUpResponse,
    StepUpVerifyRequest,
    StepUpVerifyResponse,
)
from vault.core.services.rate_limit import rate_limit_by_ip
from vault.core.services.step_up import StepUpService

router = APIRouter(prefix="/step-up")


@router.post(
    "",
    response_model=StepUpResponse,
    summary="Start step-up for a secure download",
    dependencies=[
        Depends(
            rate_limit_by_ip(
                limit=settings.AUTH_RATE_LIMIT_REQUESTS,
                window=settings.AUTH_RATE_LIMIT_WINDOW,
            )
        )
    ],
    description="""
## Request a Step-up Code

Re-enter your password for a document you own. A **6-digit code**, valid for
**5 minutes**, is sent to your email and phone at the same time.

### Request Body

| Field | Type | Required | Description |
|-------|------|----------|-------------|
| `password` | string | ✅ | Your current password |
| `document_id` | UUID | ✅ | The document you want to download |

### Delivery

The request succeeds when **at least one** channel delivers the code;
`channels` shows which did.

| `message` | Meaning |
|-----------|---------|
| OTP sent successfully to both email and phone | Both channels delivered |
| OTP sent successfully to your email. SMS delivery failed. | Email only |
| OTP sent successfully to your phone. Email delivery failed. | SMS only |

### Error Responses

| Status | Reason |
|--------|--------|
| `401 Unauthorized` | Missing session, or invalid credentials |
| `404 Not Found` | Document not found |
| `429 Too Many Requests` | Too many requests from this IP |
| `503 Service Unavailable` | Neither channel could deliver the code |

### Notes

- Requesting again issues a new code; no channel is retried automatically
""",
)
async def request_step_up(
    request_data: StepUpRequest,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> StepUpResponse:
    challenge = await StepUpService.request_step_up(
        session=session,
        account=user,
        password=request_data.password,
        document_id=request_data.document_id,
    )
    return StepUpResponse(
        message=challenge.delivery.message,
        channels=StepUpChannels(**challenge.delivery.channels()),
        expires_in=challenge.expires_in,
    )


@router.post(
    "/verify",
    response_model=StepUpVerifyResponse,
    summary="Verify the step-up code",
    description="""
## Verify a Step-up Code

Submit the code you received. On success the code is used up and you get a
`download_url` for the document named in the step-up request, valid for
a few minutes.

### Error Responses

| Status | Reason |
|--------|--------|
| `400 Bad Request` | Invalid or expired OTP (the two are not distinguished) |
| `401 Unauthorized` | Missing or invalid session |
| `429 Too Many Requests` | Too many failed codes; wait and start over |
""",
)
async def verify_step_up(
    request_data: StepUpVerifyRequest,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> StepUpVerifyResponse:
    grant = await StepUpService.verify_step_up(
        session=session, account=user, code=request_data.code
    )
    return StepUpVerifyResponse(
        document_id=grant.document_id,
        download_token=grant.download_token,
        download_url=grant.download_url,
        expires_in=grant.expires_in,
    )
