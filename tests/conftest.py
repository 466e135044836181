"""Shared test fixtures for tokensmith."""

from collections.abc import AsyncIterator

import pytest
from cryptography.fernet import Fernet
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tokensmith.core.app import create_app
from tokensmith.core.settings import IssuerSettings
from tokensmith.db.engine import create_schema, get_session
from tokensmith.signing.key_manager import KeyManager

FERNET_KEY = Fernet.generate_key().decode()
API_TOKEN = "test-api-token"


@pytest.fixture(autouse=True)
def _set_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for test settings."""
    monkeypatch.setenv("TOKENSMITH_API_TOKEN", API_TOKEN)
    monkeypatch.setenv("TOKENSMITH_SIGNING_KEY_ENCRYPTION_KEY", FERNET_KEY)
    monkeypatch.setenv("TOKENSMITH_CREATE_SCHEMA", "false")


@pytest.fixture
def settings() -> IssuerSettings:
    return IssuerSettings()


@pytest.fixture
async def db_session() -> AsyncIterator[AsyncSession]:
    """Create an in-memory SQLite async session for tests."""
    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    await create_schema(engine)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def key_manager(db_session: AsyncSession, settings: IssuerSettings) -> KeyManager:
    return KeyManager(db_session, settings)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncIterator[AsyncClient]:
    """Create an httpx test client with DB session override."""
    app = create_app()

    async def _override_session() -> AsyncIterator[AsyncSession]:
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
