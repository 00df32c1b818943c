"""
Step-up authentication for secure document downloads.

Flow:
1. ``request_step_up``: re-check the password, record a fresh one-time code
   in the ledger, then deliver it by email and SMS concurrently. One
   delivered channel is enough.
2. ``verify_step_up``: find an unconsumed, unexpired code for the account,
   consume it, and mint a download token for the document the flow was
   started for.

Failed verifications are counted per account; after
``OTP_MAX_FAILED_ATTEMPTS`` within ``OTP_ATTEMPT_WINDOW_SECONDS`` further
attempts are refused until the window closes. A success clears the count.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from vault.apps.documents.db.crud import document_db
from vault.core.config import settings, step_up_logger
from vault.core.db.crud import one_time_code_db
from vault.core.db.models import Account
from vault.core.enums import OTPPurpose
from vault.core.exceptions.types import (
    InvalidCredentialsException,
    NotFoundException,
    OTPInvalidException,
    ServiceUnavailableException,
    TooManyAttemptsException,
)
from vault.core.services.delivery import DeliveryGateway, DeliveryResult
from vault.core.services.download_token import DownloadTokenService
from vault.core.services.rate_limit import RateLimiter, format_rate_limit_key
from vault.core.utils import ensure_utc, generate_otp_code, mask_otp, verify_password


@dataclass
class StepUpChallenge:
    """A code that was issued and delivered on at least one channel."""

    code_id: UUID
    document_id: UUID
    expires_at: datetime
    delivery: DeliveryResult

    @property
    def expires_in(self) -> int:
        return settings.OTP_EXPIRY_MINUTES * 60


@dataclass
class StepUpGrant:
    """Download authorization handed out after a successful verification."""

    document_id: UUID
    download_token: str
    download_url: str
    expires_in: int


class StepUpService:
    PURPOSE: OTPPurpose = OTPPurpose.DOCUMENT_DOWNLOAD

    @classmethod
    def _failure_key(cls, account_id: UUID) -> str:
        return format_rate_limit_key(
            "account", str(account_id), f"step-up:{cls.PURPOSE.value}"
        )

    @classmethod
    async def request_step_up(
        cls,
        session: AsyncSession,
        account: Account,
        password: str,
        document_id: UUID,
        now: datetime | None = None,
    ) -> StepUpChallenge:
        """
        Re-verify the password, issue a code and deliver it on both channels.

        The ledger row is committed before delivery starts, so any code that
        reaches the user can be found by ``verify_step_up``.

        Args:
            session: The database session.
            account: The caller, already authenticated by session token.
            password: Password candidate.
            document_id: Document the download authorization will be scoped to.
            now: Issue instant. Defaults to the current UTC time.

        Returns:
            StepUpChallenge: The issued code's ledger id, expiry and delivery outcome.

        Raises:
            InvalidCredentialsException: Wrong password. No code is issued.
            NotFoundException: The caller does not own ``document_id``.
            ServiceUnavailableException: Neither channel delivered the code.
        """
        if not verify_password(password, account.password_hash):
            step_up_logger.warning(f"Step-up refused for {account.id}: wrong password")
            raise InvalidCredentialsException()

        document = await document_db.get_owned(session, document_id, account.id)
        if document is None:
            step_up_logger.warning(
                f"Step-up refused for {account.id}: document {document_id} not found"
            )
            raise NotFoundException("Document not found")

        now = ensure_utc(now or datetime.now(timezone.utc))
        expires_at = now + timedelta(minutes=settings.OTP_EXPIRY_MINUTES)

        if settings.STEP_UP_INVALIDATE_PREVIOUS_CODES:
            invalidated = await one_time_code_db.invalidate_previous(
                session=session,
                account_id=account.id,
                purpose=cls.PURPOSE,
                commit_self=False,
            )
            if invalidated:
                step_up_logger.info(
                    f"Invalidated {invalidated} outstanding code(s) for {account.id}"
                )

        code = generate_otp_code()
        row = await one_time_code_db.issue(
            session=session,
            account_id=account.id,
            code=code,
            purpose=cls.PURPOSE,
            expires_at=expires_at,
            document_id=document.id,
        )
        step_up_logger.info(
            f"Issued step-up code {mask_otp(code)} ({row.id}) for {account.id}, "
            f"document {document.id}"
        )

        delivery = await DeliveryGateway.send_both(
            email=account.email, phone=account.phone, code=code, purpose=cls.PURPOSE
        )
        if not delivery.delivered:
            step_up_logger.error(
                f"Step-up code {row.id} undeliverable: "
                f"email={delivery.email.detail}, sms={delivery.sms.detail}"
            )
            raise ServiceUnavailableException(
                delivery.message,
                details={
                    "email": delivery.email.detail,
                    "sms": delivery.sms.detail,
                },
            )

        return StepUpChallenge(
            code_id=row.id,
            document_id=document.id,
            expires_at=expires_at,
            delivery=delivery,
        )

    @classmethod
    async def verify_step_up(
        cls,
        session: AsyncSession,
        account: Account,
        code: str,
        now: datetime | None = None,
    ) -> StepUpGrant:
        """
        Redeem a code and mint a download token.

        Wrong and expired codes fail identically. Of two concurrent
        verifications of the same code only one wins the consume.

        Args:
            session: The database session.
            account: The caller.
            code: The submitted code, compared as an exact string.
            now: Reference instant for expiry. Defaults to the current UTC time.

        Returns:
            StepUpGrant: Token and URL for the document the flow was started for.

        Raises:
            TooManyAttemptsException: Too many recent failures for this account.
            OTPInvalidException: No unconsumed, unexpired code matches.
        """
        limiter = RateLimiter()
        key = cls._failure_key(account.id)
        max_failures = settings.OTP_MAX_FAILED_ATTEMPTS
        window = settings.OTP_ATTEMPT_WINDOW_SECONDS

        if await limiter.get_remaining(key, max_failures, window) == 0:
            retry_after = await limiter.retry_after(key, window)
            step_up_logger.warning(f"Step-up verify locked for {account.id}")
            raise TooManyAttemptsException(retry_after=retry_after or None)

        row = await one_time_code_db.find_active(
            session=session,
            account_id=account.id,
            code=code,
            purpose=cls.PURPOSE,
            now=now,
        )
        if row is None or not await one_time_code_db.consume(session, row.id):
            await limiter.check(key, max_failures, window)
            step_up_logger.warning(f"Step-up verify failed for {account.id}")
            raise OTPInvalidException()

        await limiter.reset(key)

        if row.document_id is None:
            step_up_logger.error(f"Step-up code {row.id} has no document context")
            raise OTPInvalidException()

        token = DownloadTokenService.mint(row.document_id)
        step_up_logger.info(
            f"Step-up verified for {account.id}, code {row.id}, document {row.document_id}"
        )
        return StepUpGrant(
            document_id=row.document_id,
            download_token=token,
            download_url=DownloadTokenService.download_url(row.document_id, token),
            expires_in=DownloadTokenService.expires_in(),
        )


__all__ = ["StepUpService", "StepUpChallenge", "StepUpGrant"]
