"""
Document model.

Metadata for one uploaded student document. The bytes live on disk under
``UPLOAD_DIR``; ``file_path`` is relative to it and may be empty for
metadata-only entries.

"""

from datetime import datetime, timezone
from typing import Any, TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    JSON,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vault.core.db.models.base import BaseModel
from vault.core.enums import DocumentType

if TYPE_CHECKING:
    from vault.core.db.models.account import Account


class Document(BaseModel):
    """
    A document in an account's vault.

    Attributes:
        account_id: Owner of the document.
        name: Display name, unique per owner ignoring case.
        type: Category the document is filed under.
        semester: Free-form semester label (e.g. "3").
        year: Academic year label (e.g. "2024").
        upload_date: When the document was added.
        size_bytes: Size of the stored file in bytes.
        size: Human-readable size (e.g. "1.5 KB").
        is_secure: Downloads require step-up authentication.
        file_path: Stored file, relative to the upload directory.
        doc_metadata: ``mime_type``, ``original_name``, ``tags`` and ``description``.
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_account_upload", "account_id", "upload_date"),
    )

    account_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    type: Mapped[DocumentType] = mapped_column(
        Enum(
            DocumentType,
            native_enum=False,
            name="document_type",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )

    semester: Mapped[str] = mapped_column(String(32), nullable=False)
    year: Mapped[str] = mapped_column(String(16), nullable=False)

    upload_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    size_bytes: Mapped[int] = mapped_column(
        BigInteger, default=0, nullable=False
    )
    size: Mapped[str] = mapped_column(String(32), default="0 B", nullable=False)

    is_secure: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    file_path: Mapped[str | None] = mapped_column(String(512), nullable=True)

    doc_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, default=dict, nullable=False
    )

    account: Mapped["Account"] = relationship("Account", foreign_keys=[account_id])

    @property
    def mime_type(self) -> str | None:
        return (self.doc_metadata or {}).get("mime_type")

    @property
    def original_name(self) -> str | None:
        return (self.doc_metadata or {}).get("original_name")

    @property
    def description(self) -> str | None:
        return (self.doc_metadata or {}).get("description")

    @property
    def tags(self) -> list[str]:
        return list((self.doc_metadata or {}).get("tags") or [])

    def matches(self, term: str) -> bool:
        """Whether ``term`` occurs in the name, the description or one tag, ignoring case."""
        needle = term.casefold()
        fields = [self.name, self.description or "", *self.tags]
        return any(needle in str(field).casefold() for field in fields)


__all__ = ["Document"]
