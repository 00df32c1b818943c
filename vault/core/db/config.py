from typing import Any

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    async_sessionmaker,
    AsyncAttrs,
)
from sqlalchemy.orm import DeclarativeBase

from vault.core.config import database_logger, settings

ASYNC_SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def _engine_options(url: str) -> dict[str, Any]:
    """Pool options for the configured backend; SQLite manages its own pool."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 20,
        "max_overflow": 30,
        "pool_pre_ping": True,  # Validate connections before use
        "pool_recycle": 3600,
    }


async_engine: AsyncEngine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(ASYNC_SQLALCHEMY_DATABASE_URL),
)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    autoflush=False,
    expire_on_commit=False,
    autobegin=True,
)


# Base class for declarative_base
class Base(AsyncAttrs, DeclarativeBase):
    pass


async def init_db() -> None:
    """
    Initializes the database by creating all the tables defined in the metadata.

    Every model module must be imported before this runs so its table is
    registered on ``Base.metadata``.

    Returns:
        None
    """
    # Register every mapped table
    import vault.core.db.models  # noqa: F401
    import vault.apps.documents.db.models  # noqa: F401

    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    database_logger.info("Database tables ensured")


async def dispose_db() -> None:
    """
    Dispose the database connection pool.

    Returns:
        None
    """
    await async_engine.dispose()
    database_logger.info("Database engine disposed")
