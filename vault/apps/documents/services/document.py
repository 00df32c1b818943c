"""
Document directory service.

- Upload with per-owner unique names and a storage quota
- Filtered listing and deletion
- Storage usage summary
- Resolving what the file endpoint serves, gated by download tokens for
  secure documents
"""

from dataclasses import dataclass
from pathlib import Path
import re
from typing import Sequence
from uuid import UUID, uuid4

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from vault.apps.documents.db.crud import document_db
from vault.apps.documents.db.crud.document import ALL
from vault.apps.documents.db.models import Document
from vault.apps.documents.services.storage import FileStorage
from vault.core.config import document_logger, settings
from vault.core.db.models import Account
from vault.core.enums import DocumentType
from vault.core.exceptions.types import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from vault.core.services.download_token import DownloadTokenService
from vault.core.utils import format_file_size

MIN_DOCUMENT_NAME_LENGTH = 3
DUPLICATE_NAME_MESSAGE = (
    "A document with this name already exists. Please choose a different name."
)
_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9\-_. ]")


@dataclass
class StorageInfo:
    used: int
    total: int
    documents_count: int

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 100
        return min(100, round(self.used / self.total * 100))


@dataclass
class DownloadPayload:
    """What the file endpoint sends: a stored file, or generated text."""

    filename: str
    media_type: str
    path: Path | None = None
    content: str | None = None


def safe_filename(name: str) -> str:
    """Strip characters unsafe in a Content-Disposition filename."""
    return _UNSAFE_FILENAME_CHARS.sub("", name).strip() or "document"


def render_export(document: Document) -> str:
    """Plain-text stand-in served for documents without a stored file."""
    lines = [
        f"{settings.APP_NAME} Export",
        "--------------------------------",
        f"Name: {document.name}",
        f"Type: {document.type.value}",
        f"Semester: {document.semester}",
        f"Year: {document.year}",
        f"Uploaded: {document.upload_date.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Size: {document.size}",
        f"Secure: {'Yes' if document.is_secure else 'No'}",
        "",
        "This is a generated file representing your document.",
        "In a real deployment, this endpoint would stream the actual file contents.",
    ]
    return "\n".join(lines)


def parse_tags(tags: str | None) -> list[str]:
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


class DocumentService:
    @classmethod
    async def upload(
        cls,
        session: AsyncSession,
        account: Account,
        name: str,
        type: DocumentType,
        semester: str,
        year: str,
        is_secure: bool = False,
        description: str | None = None,
        tags: list[str] | None = None,
        file: UploadFile | None = None,
    ) -> Document:
        """
        Add a document, storing its file when one is given.

        Raises:
            BadRequestException: Name too short, file too large or quota exceeded.
            ConflictException: The owner already has a document with this name.
        """
        name = name.strip()
        if len(name) < MIN_DOCUMENT_NAME_LENGTH:
            raise BadRequestException(
                f"Document name must be at least {MIN_DOCUMENT_NAME_LENGTH} characters long"
            )
        if await document_db.name_taken(session, account.id, name):
            document_logger.info(f"Duplicate document name rejected for {account.id}")
            raise ConflictException(DUPLICATE_NAME_MESSAGE)

        document_id = uuid4()
        metadata: dict = {"tags": tags or [], "description": description or None}
        file_path: str | None = None
        size_bytes = 0

        if file is not None and file.filename:
            file_path, size_bytes = await FileStorage.save(account.id, document_id, file)
            used = await document_db.storage_used(session, account.id)
            if used + size_bytes > settings.STORAGE_QUOTA_BYTES:
                await FileStorage.delete(file_path)
                raise BadRequestException("Storage quota exceeded")
            metadata["mime_type"] = file.content_type or "application/octet-stream"
            metadata["original_name"] = file.filename

        try:
            document = await document_db.create(
                session=session,
                data={
                    "id": document_id,
                    "account_id": account.id,
                    "name": name,
                    "type": type,
                    "semester": semester.strip(),
                    "year": year.strip(),
                    "size_bytes": size_bytes,
                    "size": format_file_size(size_bytes),
                    "is_secure": is_secure,
                    "file_path": file_path,
                    "doc_metadata": metadata,
                },
            )
        except Exception:
            await FileStorage.delete(file_path)
            raise

        document_logger.info(
            f"Document {document.id} uploaded by {account.id} "
            f"({document.size}, secure={document.is_secure})"
        )
        return document

    @classmethod
    async def list_documents(
        cls,
        session: AsyncSession,
        account: Account,
        type: str | None = None,
        semester: str | None = None,
        year: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[Document]:
        """
        List the caller's documents. ``"all"`` disables a filter.

        Raises:
            BadRequestException: Unknown document type.
        """
        document_type: DocumentType | None = None
        if type and type != ALL:
            try:
                document_type = DocumentType(type)
            except ValueError:
                raise BadRequestException(f"Invalid document type: {type}")

        return await document_db.list_for_account(
            session=session,
            account_id=account.id,
            type=document_type,
            semester=semester,
            year=year,
            search=search,
            limit=limit,
            offset=offset,
        )

    @classmethod
    async def delete_document(
        cls, session: AsyncSession, account: Account, document_id: UUID
    ) -> None:
        """
        Delete one of the caller's documents and its stored file.

        Raises:
            NotFoundException: Missing, or owned by someone else.
        """
        document = await document_db.get_owned(session, document_id, account.id)
        if document is None:
            raise NotFoundException("Document not found")

        file_path = document.file_path
        await document_db.delete(session=session, id=document.id)
        await FileStorage.delete(file_path)
        document_logger.info(f"Document {document_id} deleted by {account.id}")

    @classmethod
    async def storage_info(cls, session: AsyncSession, account: Account) -> StorageInfo:
        used = await document_db.storage_used(session, account.id)
        count = await document_db.count(
            session, [document_db.model.account_id == account.id]
        )
        return StorageInfo(
            used=used, total=settings.STORAGE_QUOTA_BYTES, documents_count=count
        )

    @classmethod
    async def resolve_download(
        cls, session: AsyncSession, document_id: UUID, token: str | None
    ) -> DownloadPayload:
        """
        Decide what ``GET /files/{document_id}`` returns.

        Non-secure documents are served unconditionally. Secure documents
        need a live download token for this exact document.

        Raises:
            ForbiddenException: Unknown document, or a secure document
                without a valid token. The two are indistinguishable.
        """
        document = await document_db.get_by_id(session=session, id=document_id)
        if document is None:
            document_logger.warning(f"File request for unknown document {document_id}")
            raise ForbiddenException()

        if document.is_secure and not DownloadTokenService.verify(token, document.id):
            document_logger.warning(
                f"File request for secure document {document_id} without valid token"
            )
            raise ForbiddenException()

        if await FileStorage.exists(document.file_path):
            assert document.file_path is not None
            return DownloadPayload(
                filename=document.original_name or document.name,
                media_type=document.mime_type or "application/octet-stream",
                path=FileStorage.resolve(document.file_path),
            )

        return DownloadPayload(
            filename=f"{safe_filename(document.name)}.txt",
            media_type="text/plain; charset=utf-8",
            content=render_export(document),
        )


__all__ = [
    "DocumentService",
    "DownloadPayload",
    "StorageInfo",
    "DUPLICATE_NAME_MESSAGE",
    "parse_tags",
    "render_export",
    "safe_filename",
]
