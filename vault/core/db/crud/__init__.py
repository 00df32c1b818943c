from vault.core.db.crud.base import BaseDB
from vault.core.db.crud.account import AccountDB
from vault.core.db.crud.otp import OneTimeCodeDB

# Global CRUD instances - use these instead of creating new instances
account_db = AccountDB()
one_time_code_db = OneTimeCodeDB()

__all__ = [
    "BaseDB",
    "AccountDB",
    "OneTimeCodeDB",
    "account_db",
    "one_time_code_db",
]
