from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from vault.core.db.crud.base import BaseDB
from vault.core.db.models import Account


class AccountDB(BaseDB[Account]):
    def __init__(self):
        super().__init__(model=Account)

    async def get_by_email(self, session: AsyncSession, email: str) -> Account | None:
        """
        Look an account up by email, ignoring case and surrounding whitespace.

        Args:
            session: The async database session.
            email: The email address as typed by the user.

        Returns:
            The matching Account, or None.
        """
        return await self.get_one_by_conditions(
            session=session,
            conditions=[func.lower(self.model.email) == email.strip().lower()],
        )

    async def email_taken(
        self, session: AsyncSession, email: str, exclude_id=None
    ) -> bool:
        account = await self.get_by_email(session, email)
        if account is None:
            return False
        return exclude_id is None or account.id != exclude_id


__all__ = ["AccountDB"]
