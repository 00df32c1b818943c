"""
Shared dependencies for FastAPI endpoints.

"""

from vault.core.dependencies.auth import (
    get_current_user,
    CurrentUser,
    bearer_scheme,
)
from vault.core.dependencies.db import get_async_session

__all__ = [
    "get_current_user",
    "CurrentUser",
    "bearer_scheme",
    "get_async_session",
]
