"""Database operations for signing key management."""

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.db.models_keys import SigningKeyEntity


async def get_active_key(
    session: AsyncSession,
) -> SigningKeyEntity | None:
    """Return the currently active signing key, refreshed from the database."""
    stmt = (
        select(SigningKeyEntity)
        .where(SigningKeyEntity.is_active.is_(True))
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_all_keys(
    session: AsyncSession,
) -> list[SigningKeyEntity]:
    """Return all retained signing keys (active + retired), oldest first."""
    stmt = select(SigningKeyEntity).order_by(
        SigningKeyEntity.created_at.asc(), SigningKeyEntity.kid.asc()
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_key(session: AsyncSession, kid: str) -> SigningKeyEntity | None:
    """Look up a retained key by identifier."""
    stmt = select(SigningKeyEntity).where(SigningKeyEntity.kid == kid)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def store_key(
    session: AsyncSession, entity: SigningKeyEntity
) -> SigningKeyEntity:
    """Persist a new signing key."""
    session.add(entity)
    await session.flush()
    return entity


async def retire_active(session: AsyncSession, retired_at: datetime) -> None:
    """Mark the active key as retired."""
    stmt = (
        update(SigningKeyEntity)
        .where(SigningKeyEntity.is_active.is_(True))
        .values(is_active=False, rotated_at=retired_at)
        .execution_options(synchronize_session="fetch")
    )
    await session.execute(stmt)
    await session.flush()


async def purge_retired(session: AsyncSession, cutoff: datetime) -> list[str]:
    """Delete retired keys whose retirement predates the cutoff."""
    condition = (
        SigningKeyEntity.is_active.is_(False),
        SigningKeyEntity.rotated_at.is_not(None),
        SigningKeyEntity.rotated_at < cutoff,
    )
    result = await session.execute(select(SigningKeyEntity.kid).where(*condition))
    kids = list(result.scalars().all())
    if kids:
        await session.execute(
            delete(SigningKeyEntity)
            .where(SigningKeyEntity.kid.in_(kids))
            .execution_options(synchronize_session="fetch")
        )
        await session.flush()
    return kids
