"""
CRUD operations for the Document model.

"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from vault.apps.documents.db.models.document import Document
from vault.core.db.crud.base import BaseDB
from vault.core.enums import DocumentType
from vault.core.exceptions.types import DatabaseException

# Query value meaning "do not filter on this field"
ALL = "all"


class DocumentDB(BaseDB[Document]):
    """
    CRUD operations for Document.

    Every lookup is scoped to an owning account.
    """

    def __init__(self):
        super().__init__(Document)

    async def get_owned(
        self, session: AsyncSession, document_id: UUID, account_id: UUID
    ) -> Document | None:
        """Fetch a document only if ``account_id`` owns it."""
        return await self.get_one_by_conditions(
            session=session,
            conditions=[
                self.model.id == document_id,
                self.model.account_id == account_id,
            ],
        )

    async def name_taken(
        self, session: AsyncSession, account_id: UUID, name: str
    ) -> bool:
        """Whether the owner already has a document with this name, ignoring case."""
        existing = await self.get_one_by_conditions(
            session=session,
            conditions=[
                self.model.account_id == account_id,
                func.lower(self.model.name) == name.strip().lower(),
            ],
        )
        return existing is not None

    async def list_for_account(
        self,
        session: AsyncSession,
        account_id: UUID,
        type: DocumentType | str | None = None,
        semester: str | None = None,
        year: str | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[Document]:
        """
        List an account's documents, newest first.

        ``None``, empty strings and ``"all"`` disable a filter. ``search``
        matches the name, the description or any single tag, ignoring case.
        Search is applied to the filtered rows with ``str.casefold``, so it
        folds non-ASCII text the same way on every backend.

        Args:
            session: Database session.
            account_id: Owner whose documents are listed.
            type: Document category filter.
            semester: Semester filter.
            year: Year filter.
            search: Free-text filter.
            limit: Page size.
            offset: Rows to skip.

        Returns:
            The page of documents.
        """
        filters = [self.model.account_id == account_id]

        if type and type != ALL:
            filters.append(self.model.type == DocumentType(type))
        if semester and semester != ALL:
            filters.append(self.model.semester == semester)
        if year and year != ALL:
            filters.append(self.model.year == year)

        term = search.strip() if search else ""
        if not term:
            return await self.get_all(
                session=session,
                filters=filters,
                order_by=[self.model.created_at.desc()],
                limit=limit,
                offset=offset,
            )

        candidates = await self.get_all(
            session=session,
            filters=filters,
            order_by=[self.model.created_at.desc()],
        )
        matches = [document for document in candidates if document.matches(term)]
        return matches[offset : offset + limit]

    async def storage_used(self, session: AsyncSession, account_id: UUID) -> int:
        """Total bytes stored by an account."""
        try:
            stmt = select(func.coalesce(func.sum(self.model.size_bytes), 0)).where(
                self.model.account_id == account_id
            )
            result = await session.execute(stmt)
            return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error computing storage usage for account {account_id}: {str(e)}"
            ) from e


__all__ = ["DocumentDB", "ALL"]
