from datetime import datetime, timezone

from vault.core.config import scheduler_logger
from vault.core.db import AsyncSessionLocal
from vault.core.db.crud import one_time_code_db


async def sweep_one_time_codes() -> int:
    """
    Periodic task that deletes consumed and expired one-time codes.

    Removing them never changes which codes can still be verified, since
    verification already ignores both kinds.

    Returns:
        int: The number of rows deleted.
    """
    now = datetime.now(timezone.utc)
    async with AsyncSessionLocal.begin() as session:
        scheduler_logger.info(f"Starting sweep of spent one-time codes (now: {now})")
        deleted = await one_time_code_db.sweep(session, now=now, commit_self=False)
        scheduler_logger.info(
            f"Completed sweep of one-time codes. Deleted {deleted} record(s)."
        )
    return deleted
