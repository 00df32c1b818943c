"""
Authentication service for account and session management.

This module provides:
- Registration with bcrypt password hashing
- Email/password login issuing JWT session tokens
- Profile updates and password changes
- Account deletion, cascading to documents, stored files and one-time codes

Example usage:
    from vault.core.services.auth import AuthService

    account = await AuthService.register(
        session=db_session,
        name="Ada Student",
        email="ada@college.edu",
        phone="+1 555 123 0000",
        password="secret123",
    )
    token = AuthService.create_session_token(account)
"""

from datetime import timedelta
from functools import lru_cache
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from vault.apps.documents.db.crud import document_db
from vault.apps.documents.services.storage import FileStorage
from vault.core.config import auth_logger, settings
from vault.core.db.crud import account_db, one_time_code_db
from vault.core.db.models import Account
from vault.core.exceptions.types import (
    AccountAlreadyExistsException,
    InvalidCredentialsException,
)
from vault.core.utils import (
    create_jwt_token,
    hash_password,
    mask_email,
    verify_password,
)


@lru_cache()
def _dummy_password_hash() -> str:
    """A hash no password matches, checked when the account does not exist."""
    return hash_password(secrets.token_urlsafe(32))


class AuthService:
    """
    Account and session operations.

    Unknown accounts and wrong passwords raise the same
    ``InvalidCredentialsException`` everywhere, so responses never reveal
    whether an email is registered.
    """

    @classmethod
    def create_session_token(cls, account: Account) -> str:
        """Issue a bearer session token for ``account``."""
        return create_jwt_token(
            {"sub": str(account.id), "type": "access"},
            expires_delta=timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS),
        )

    @classmethod
    async def register(
        cls,
        session: AsyncSession,
        name: str,
        email: str,
        phone: str,
        password: str,
        commit_self: bool = True,
    ) -> Account:
        """
        Create an account.

        Args:
            session: The database session.
            name: Display name, already trimmed.
            email: Email address; stored trimmed and lowercased.
            phone: Phone number as entered.
            password: Plain password; only its bcrypt hash is stored.
            commit_self: If True, commits the transaction.

        Returns:
            Account: The created account.

        Raises:
            AccountAlreadyExistsException: If the email is taken (ignoring case).
        """
        email = email.strip().lower()
        if await account_db.email_taken(session, email):
            auth_logger.warning(f"Registration failed: email exists {mask_email(email)}")
            raise AccountAlreadyExistsException()

        account = await account_db.create(
            session=session,
            data={
                "name": name.strip(),
                "email": email,
                "phone": phone.strip(),
                "password_hash": hash_password(password),
            },
            commit_self=commit_self,
        )
        auth_logger.info(f"Account registered: {account.id}")
        return account

    @classmethod
    async def login(cls, session: AsyncSession, email: str, password: str) -> Account:
        """
        Authenticate with email and password.

        Raises:
            InvalidCredentialsException: For an unknown email or a wrong password.
        """
        account = await account_db.get_by_email(session, email)
        if account is None:
            # Same bcrypt cost as a wrong password
            verify_password(password, _dummy_password_hash())
            auth_logger.warning(f"Login failed: unknown account {mask_email(email)}")
            raise InvalidCredentialsException()

        if not verify_password(password, account.password_hash):
            auth_logger.warning(f"Login failed: wrong password for {account.id}")
            raise InvalidCredentialsException()

        auth_logger.info(f"Login: {account.id}")
        return account

    @classmethod
    async def update_profile(
        cls,
        session: AsyncSession,
        account: Account,
        name: str | None = None,
        email: str | None = None,
        phone: str | None = None,
    ) -> Account:
        """
        Apply a partial profile update.

        Raises:
            AccountAlreadyExistsException: If the new email belongs to another account.
        """
        updates: dict[str, str] = {}
        if name is not None:
            updates["name"] = name.strip()
        if email is not None:
            email = email.strip().lower()
            if await account_db.email_taken(session, email, exclude_id=account.id):
                auth_logger.warning(
                    f"Profile update failed for {account.id}: email in use"
                )
                raise AccountAlreadyExistsException()
            updates["email"] = email
        if phone is not None:
            updates["phone"] = phone.strip()

        if not updates:
            return account

        updated = await account_db.update(session=session, id=account.id, updates=updates)
        auth_logger.info(f"Profile updated: {account.id} fields={sorted(updates)}")
        return updated or account

    @classmethod
    async def change_password(
        cls,
        session: AsyncSession,
        account: Account,
        current_password: str,
        new_password: str,
    ) -> bool:
        """
        Change the account password after checking the current one.

        Raises:
            InvalidCredentialsException: If ``current_password`` is wrong.
        """
        if not verify_password(current_password, account.password_hash):
            auth_logger.warning(
                f"Password change failed: wrong current password for {account.id}"
            )
            raise InvalidCredentialsException()

        await account_db.update(
            session=session,
            id=account.id,
            updates={"password_hash": hash_password(new_password)},
        )
        auth_logger.info(f"Password changed: {account.id}")
        return True

    @classmethod
    async def delete_account(cls, session: AsyncSession, account: Account) -> None:
        """
        Delete an account with its documents, stored files and one-time codes.

        Rows are removed in one transaction; files are removed after the
        commit so a failed delete never leaves rows pointing at missing files.
        """
        documents = await document_db.get_by_conditions(
            session=session,
            conditions=[document_db.model.account_id == account.id],
        )
        file_paths = [doc.file_path for doc in documents if doc.file_path]

        await document_db.delete_by_conditions(
            session=session,
            conditions=[document_db.model.account_id == account.id],
            commit_self=False,
        )
        await one_time_code_db.delete_by_conditions(
            session=session,
            conditions=[one_time_code_db.model.account_id == account.id],
            commit_self=False,
        )
        await account_db.delete(session=session, id=account.id, commit_self=False)
        await session.commit()

        for path in file_paths:
            await FileStorage.delete(path)

        auth_logger.info(
            f"Account deleted: {account.id} ({len(documents)} documents removed)"
        )


__all__ = ["AuthService"]
