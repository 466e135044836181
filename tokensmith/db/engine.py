"""Async SQLAlchemy engine and session management."""

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tokensmith.core.settings import DatabaseSettings
from tokensmith.db.base import BaseEntity
from tokensmith.db.models_keys import SigningKeyEntity
from tokensmith.db.models_policy import PolicyConfigEntity, RoleEntity

_registered = (SigningKeyEntity, RoleEntity, PolicyConfigEntity)


class _EngineHolder:
    """Lazy singleton for the engine and async session factory."""

    engine: AsyncEngine | None = None
    factory: async_sessionmaker[AsyncSession] | None = None


_holder = _EngineHolder()


def _get_engine() -> AsyncEngine:
    """Lazily create the async engine."""
    if _holder.engine is None:
        db = DatabaseSettings()
        if db.async_url.startswith("sqlite"):
            _holder.engine = create_async_engine(db.async_url)
        else:
            _holder.engine = create_async_engine(
                db.async_url,
                pool_size=db.pool_size,
                max_overflow=db.max_overflow,
            )
    return _holder.engine


def _get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create the async session factory."""
    if _holder.factory is None:
        _holder.factory = async_sessionmaker(
            _get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _holder.factory


async def create_schema(engine: AsyncEngine | None = None) -> None:
    """Create any missing tables."""
    target = engine or _get_engine()
    async with target.begin() as conn:
        await conn.run_sync(BaseEntity.metadata.create_all)


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async database session.

    Everything a request writes commits together here or is rolled back
    together. Key rotation is the exception: it commits on its own.
    """
    factory = _get_session_factory()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
