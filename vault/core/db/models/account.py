from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from vault.core.db.models.base import BaseModel


class Account(BaseModel):
    """
    A vault account holder.

    Email is stored trimmed and lowercased, which keeps the unique index
    case-insensitive on every backend. The phone number is kept as entered;
    it is normalized to E.164 only when an SMS is sent.
    """

    __tablename__ = "accounts"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )

    phone: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )


__all__ = ["Account"]
