"""Role repository for database CRUD operations."""

from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.db.models_policy import RoleEntity
from tokensmith.policy.types import Role


def role_from_entity(entity: RoleEntity) -> Role:
    """Rebuild the domain role from its stored row."""
    return Role(
        issuer=entity.issuer,
        claims=dict(entity.claims or {}),
        subject_pattern=entity.subject_pattern,
        audience_pattern=entity.audience_pattern,
        max_audiences=entity.max_audiences,
    )


async def get_role_entity(session: AsyncSession, name: str) -> RoleEntity | None:
    """Look up a role row by name."""
    stmt = select(RoleEntity).where(RoleEntity.name == name)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_role(session: AsyncSession, name: str) -> Role | None:
    """Load a role by name, or None if it does not exist."""
    entity = await get_role_entity(session, name)
    if entity is None:
        return None
    return role_from_entity(entity)


async def list_role_names(session: AsyncSession) -> list[str]:
    """Return every stored role name, sorted."""
    stmt = select(RoleEntity.name).order_by(RoleEntity.name)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def put_role(session: AsyncSession, name: str, role: Role) -> bool:
    """Create or overwrite a role. Returns True when the role is new."""
    existing = await get_role_entity(session, name)
    if existing is not None:
        existing.issuer = role.issuer
        existing.claims = dict(role.claims)
        existing.subject_pattern = role.subject_pattern
        existing.audience_pattern = role.audience_pattern
        existing.max_audiences = role.max_audiences
        existing.updated_at = datetime.now(UTC)
        await session.flush()
        return False

    session.add(
        RoleEntity(
            name=name,
            issuer=role.issuer,
            claims=dict(role.claims),
            subject_pattern=role.subject_pattern,
            audience_pattern=role.audience_pattern,
            max_audiences=role.max_audiences,
        )
    )
    await session.flush()
    return True


async def delete_role(session: AsyncSession, name: str) -> None:
    """Delete a role; deleting a missing role is not an error."""
    await session.execute(delete(RoleEntity).where(RoleEntity.name == name))
    await session.flush()
