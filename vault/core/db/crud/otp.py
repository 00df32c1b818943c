"""
Ledger operations for one-time codes.

Issue, look up, consume and sweep codes. Every read filters on
``consumed`` and ``expires_at`` itself, so the sweep is pure hygiene.
"""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from vault.core.db.crud.base import BaseDB
from vault.core.db.models import OneTimeCode
from vault.core.enums import OTPPurpose
from vault.core.utils import ensure_utc, hmac_hash_otp


class OneTimeCodeDB(BaseDB[OneTimeCode]):
    """
    CRUD operations for the OneTimeCode ledger.

    Codes are addressed by their HMAC digest; the clear code never reaches
    the database.
    """

    def __init__(self):
        super().__init__(model=OneTimeCode)

    async def issue(
        self,
        session: AsyncSession,
        account_id: UUID,
        code: str,
        purpose: OTPPurpose,
        expires_at: datetime,
        document_id: UUID | None = None,
        commit_self: bool = True,
    ) -> OneTimeCode:
        """
        Record a newly issued code. Pure insert: no uniqueness is enforced
        beyond the generated id.

        Args:
            session: The async database session.
            account_id: Owner of the code.
            code: The clear numeric code.
            purpose: What the code unlocks.
            expires_at: Instant after which the code is rejected.
            document_id: Resource context of the step-up, if any.
            commit_self: Whether to commit after inserting.

        Returns:
            The created ledger row; its ``id`` is the ledger id.
        """
        return await self.create(
            session=session,
            data={
                "account_id": account_id,
                "code_hash": hmac_hash_otp(code),
                "purpose": purpose,
                "document_id": document_id,
                "expires_at": ensure_utc(expires_at),
            },
            commit_self=commit_self,
        )

    async def find_active(
        self,
        session: AsyncSession,
        account_id: UUID,
        code: str,
        purpose: OTPPurpose,
        now: datetime | None = None,
    ) -> OneTimeCode | None:
        """
        Return the newest unconsumed row matching account, code and purpose
        whose ``expires_at`` is strictly after ``now``.

        Args:
            session: The async database session.
            account_id: Owner of the code.
            code: The code as submitted.
            purpose: What the code unlocks.
            now: Reference instant. Defaults to the current UTC time.

        Returns:
            The matching row, or None.
        """
        if not code:
            return None

        now = ensure_utc(now or datetime.now(timezone.utc))
        return await self.get_one_by_conditions(
            session=session,
            conditions=[
                self.model.account_id == account_id,
                self.model.code_hash == hmac_hash_otp(code),
                self.model.purpose == purpose,
                self.model.consumed.is_(False),
                self.model.expires_at > now,
            ],
            order_by=[self.model.created_at.desc()],
        )

    async def consume(
        self,
        session: AsyncSession,
        code_id: UUID,
        commit_self: bool = True,
    ) -> bool:
        """
        Flip a row to consumed.

        The UPDATE is guarded on ``consumed = false``, so of two racing
        consumers only one sees a changed row.

        Returns:
            True if this call consumed the row, False if it was already
            consumed or does not exist.
        """
        changed = await self.update_by_conditions(
            session=session,
            conditions=[
                self.model.id == code_id,
                self.model.consumed.is_(False),
            ],
            updates={
                "consumed": True,
                "consumed_at": datetime.now(timezone.utc),
            },
            commit_self=commit_self,
        )
        return changed > 0

    async def invalidate_previous(
        self,
        session: AsyncSession,
        account_id: UUID,
        purpose: OTPPurpose,
        commit_self: bool = True,
    ) -> int:
        """
        Consume every outstanding code for (account, purpose).

        Returns:
            The number of codes invalidated.
        """
        return await self.update_by_conditions(
            session=session,
            conditions=[
                self.model.account_id == account_id,
                self.model.purpose == purpose,
                self.model.consumed.is_(False),
            ],
            updates={
                "consumed": True,
                "consumed_at": datetime.now(timezone.utc),
            },
            commit_self=commit_self,
        )

    async def sweep(
        self,
        session: AsyncSession,
        now: datetime | None = None,
        commit_self: bool = True,
    ) -> int:
        """
        Delete every consumed or expired row.

        Returns:
            The number of rows deleted.
        """
        now = ensure_utc(now or datetime.now(timezone.utc))
        return await self.delete_by_conditions(
            session=session,
            conditions=[
                or_(
                    self.model.consumed.is_(True),
                    self.model.expires_at <= now,
                )
            ],
            commit_self=commit_self,
        )


__all__ = ["OneTimeCodeDB"]
