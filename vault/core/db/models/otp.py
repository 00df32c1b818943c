"""
One-time code ledger model.

"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vault.core.db.models.account import Account
from vault.core.db.models.base import BaseModel
from vault.core.enums import OTPPurpose


class OneTimeCode(BaseModel):
    """
    A step-up code issued to an account.

    Codes are stored as HMAC-SHA256 digests so the table stays queryable by
    code without holding the code itself. A row is authoritative while it is
    unconsumed and ``expires_at`` lies in the future; once consumed or
    expired it only waits for the periodic sweep.

    Attributes:
        account_id: Owning account.
        code_hash: HMAC-SHA256 digest of the numeric code.
        purpose: What the code unlocks.
        document_id: Resource the step-up was started for, if any.
        expires_at: Instant after which the code is rejected.
        consumed: Set exactly once, by a successful verification.
        consumed_at: When the code was consumed.
    """

    __tablename__ = "one_time_codes"
    __table_args__ = (
        Index("ix_one_time_codes_lookup", "account_id", "purpose", "code_hash"),
    )

    account_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey(
            "accounts.id",
            ondelete="CASCADE",
        ),
        nullable=False,
        index=True,
    )

    code_hash: Mapped[str] = mapped_column(
        String(64),  # SHA256 hex digest is 64 characters
        nullable=False,
    )

    purpose: Mapped[OTPPurpose] = mapped_column(
        Enum(OTPPurpose, native_enum=False, name="otp_purpose"),
        nullable=False,
    )

    document_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    consumed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    consumed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    account: Mapped[Account] = relationship(
        "Account",
        foreign_keys=[account_id],
    )


__all__ = ["OneTimeCode"]
