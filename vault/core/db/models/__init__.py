from vault.core.db.models.base import BaseModel
from vault.core.db.models.account import Account
from vault.core.db.models.otp import OneTimeCode

__all__ = [
    "BaseModel",
    "Account",
    "OneTimeCode",
]
