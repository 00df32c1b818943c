"""
Pytest configuration and core fixtures.

Every test gets its own SQLite database file with the full schema, an HTTP
client wired to that database, and a clean set of rate-limit counters.
External delivery providers are never called; tests that need them
configured patch them through the ``channels`` fixture.
"""

import os
import tempfile
from datetime import timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

TEST_PASSWORD = "secret123"


def pytest_configure(config):
    """Point settings at throwaway locations before the app is imported."""
    workdir = tempfile.mkdtemp(prefix="vault-tests-")

    os.environ["ENVIRONMENT"] = "test"
    os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{workdir}/vault.db"
    os.environ["LOG_DIR"] = f"{workdir}/logs"
    os.environ["UPLOAD_DIR"] = f"{workdir}/uploads"
    os.environ["ENABLE_SCHEDULER"] = "false"
    os.environ["RATE_LIMIT_BACKEND"] = "memory"
    os.environ["SENTRY_DSN"] = ""
    os.environ["BREVO_API_KEY"] = ""
    os.environ["TWILIO_ACCOUNT_SID"] = ""
    os.environ["TWILIO_AUTH_TOKEN"] = ""
    os.environ["TWILIO_PHONE_NUMBER"] = ""
    os.environ["API_DOMAIN"] = "http://test"


def create_test_access_token(account) -> str:
    """Create a session token for an account."""
    from vault.core.utils import create_jwt_token

    return create_jwt_token(
        data={"sub": str(account.id), "type": "access"},
        expires_delta=timedelta(minutes=15),
    )


@pytest.fixture
async def db_engine(tmp_path):
    """A fresh SQLite database with every table created."""
    import vault.apps.documents.db.models  # noqa: F401
    import vault.core.db.models  # noqa: F401
    from vault.core.db import Base

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(
        bind=db_engine, autoflush=False, expire_on_commit=False
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def app():
    """Create FastAPI application for testing."""
    from vault.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
async def client(app, db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client sharing the test session with fixtures."""
    from vault.core.dependencies import get_async_session

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_async_session, None)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    from vault.core.services.rate_limit import reset_memory_backend

    reset_memory_backend()
    yield
    reset_memory_backend()


@pytest.fixture(autouse=True)
async def storage_root(tmp_path):
    """Keep stored files inside the test's temporary directory."""
    from vault.apps.documents.services import FileStorage

    root = tmp_path / "uploads"
    await FileStorage.init(str(root), 1024 * 1024)
    return root


@pytest.fixture
def channels():
    """
    Configure both delivery channels with mocked providers.

    Yields a dict with the ``email`` and ``sms`` send mocks; set their
    ``side_effect`` to simulate provider failures.
    """
    from vault.core.services import BrevoService, TwilioService

    email_send = AsyncMock(return_value={"messageId": "<test@brevo>"})
    sms_send = AsyncMock(return_value="SM123")

    with patch.object(BrevoService, "is_configured", return_value=True), patch.object(
        BrevoService, "send_transactional_email", email_send
    ), patch.object(TwilioService, "is_configured", return_value=True), patch.object(
        TwilioService, "send_sms", sms_send
    ):
        yield {"email": email_send, "sms": sms_send}


@pytest.fixture
async def test_account(db_session: AsyncSession):
    from vault.core.services import AuthService

    return await AuthService.register(
        db_session,
        name="Ada Student",
        email="ada@college.edu",
        phone="+1 555 123 0000",
        password=TEST_PASSWORD,
    )


@pytest.fixture
async def other_account(db_session: AsyncSession):
    from vault.core.services import AuthService

    return await AuthService.register(
        db_session,
        name="Grace Student",
        email="grace@college.edu",
        phone="+1 555 987 0000",
        password=TEST_PASSWORD,
    )


@pytest.fixture
def auth_headers(test_account) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_test_access_token(test_account)}"}


@pytest.fixture
def other_auth_headers(other_account) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_test_access_token(other_account)}"}


@pytest.fixture
async def secure_document(db_session: AsyncSession, test_account):
    from vault.apps.documents.services import DocumentService
    from vault.core.enums import DocumentType

    return await DocumentService.upload(
        db_session,
        account=test_account,
        name="Final Transcript",
        type=DocumentType.TRANSCRIPT,
        semester="Fall",
        year="2024",
        is_secure=True,
        description="Official transcript",
        tags=["official", "grades"],
    )


@pytest.fixture
async def public_document(db_session: AsyncSession, test_account):
    from vault.apps.documents.services import DocumentService
    from vault.core.enums import DocumentType

    return await DocumentService.upload(
        db_session,
        account=test_account,
        name="Fee Receipt Spring",
        type=DocumentType.FEE_RECEIPT,
        semester="Spring",
        year="2024",
        is_secure=False,
    )
