"""Storage for the singleton issuer policy config."""

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.db.models_policy import POLICY_CONFIG_ID, PolicyConfigEntity
from tokensmith.policy.types import PolicyConfig


async def _get_entity(session: AsyncSession) -> PolicyConfigEntity | None:
    stmt = select(PolicyConfigEntity).where(PolicyConfigEntity.id == POLICY_CONFIG_ID)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def load_config(session: AsyncSession) -> PolicyConfig:
    """Return the stored config, or the defaults if none was ever written."""
    entity = await _get_entity(session)
    if entity is None:
        return PolicyConfig()
    return PolicyConfig(
        allowed_claims=list(entity.allowed_claims or []),
        audience_pattern=entity.audience_pattern,
        max_audiences=entity.max_audiences,
        token_ttl=entity.token_ttl,
    )


async def save_config(session: AsyncSession, config: PolicyConfig) -> PolicyConfig:
    """Overwrite the singleton config row."""
    entity = await _get_entity(session)
    if entity is None:
        entity = PolicyConfigEntity(id=POLICY_CONFIG_ID)
        session.add(entity)
    entity.allowed_claims = list(config.allowed_claims)
    entity.audience_pattern = config.audience_pattern
    entity.max_audiences = config.max_audiences
    entity.token_ttl = config.token_ttl
    entity.updated_at = datetime.now(UTC)
    await session.flush()
    return config
