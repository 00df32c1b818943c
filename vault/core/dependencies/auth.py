"""
Authentication dependencies for FastAPI endpoints.

- Extracting and validating JWT session tokens from requests
- Resolving the current account before any step-up logic runs

Example usage:
    from vault.core.dependencies.auth import CurrentUser

    @router.get("/me")
    async def get_profile(user: CurrentUser):
        return user
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from vault.core.config import auth_logger
from vault.core.db.crud import account_db
from vault.core.db.models import Account
from vault.core.dependencies.db import get_async_session
from vault.core.exceptions.types import AuthenticationException
from vault.core.utils import decode_jwt_token

# auto_error=False so a missing header goes through AuthenticationException
# and gets the same 401 body as a bad token
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> Account:
    """
    Extract and validate the JWT session token from the Authorization header.

    This dependency:
    1. Extracts the Bearer token from the Authorization header
    2. Decodes and validates the JWT token
    3. Fetches the account from the database

    Args:
        credentials: The HTTP Bearer credentials, if any.
        session: The database session.

    Returns:
        Account: The authenticated account.

    Raises:
        AuthenticationException: 401 if the token is missing, invalid,
            expired, or its account no longer exists.
    """
    if credentials is None:
        auth_logger.info("Authentication failed: no bearer token")
        raise AuthenticationException()

    payload = decode_jwt_token(credentials.credentials)
    if payload is None:
        auth_logger.warning("Authentication failed: invalid or expired token")
        raise AuthenticationException("Invalid or expired access token")

    account_id_str = payload.get("sub")
    token_type = payload.get("type")
    if not account_id_str or token_type != "access":
        auth_logger.warning(f"Authentication failed: wrong token type '{token_type}'")
        raise AuthenticationException("Invalid access token")

    try:
        account_id = UUID(account_id_str)
    except ValueError:
        auth_logger.warning(
            f"Authentication failed: invalid account ID format '{account_id_str}'"
        )
        raise AuthenticationException("Invalid access token")

    account = await account_db.get_by_id(session=session, id=account_id)
    if account is None:
        auth_logger.warning(f"Authentication failed: account not found {account_id}")
        raise AuthenticationException("Invalid access token")

    auth_logger.debug(f"Account authenticated: {account.id}")
    return account


CurrentUser = Annotated[Account, Depends(get_current_user)]


__all__ = [
    "get_current_user",
    "CurrentUser",
    "bearer_scheme",
]
