"""Role and config write paths, with the policy checks that run at write time."""

import logging
from typing import Any

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.errors import (
    AudienceViolationError,
    DisallowedClaimError,
    ReservedClaimError,
)
from tokensmith.db.repo_config import load_config, save_config
from tokensmith.db.repo_roles import delete_role, get_role, put_role
from tokensmith.policy.merge import validate_audience
from tokensmith.policy.types import (
    RESERVED_CLAIMS,
    UNBOUNDED_AUDIENCES,
    PolicyConfig,
    Role,
)

logger = logging.getLogger(__name__)


class RoleUpdateData(BaseModel):
    """Fields supplied on a role write; None means keep the stored value."""

    issuer: str | None = None
    claims: dict[str, Any] | None = None
    subject_pattern: str | None = None
    audience_pattern: str | None = None
    max_audiences: int | None = None


class ConfigUpdateData(BaseModel):
    """Fields supplied on a config write; None means keep the stored value."""

    allowed_claims: list[str] | None = None
    audience_pattern: str | None = None
    max_audiences: int | None = None
    token_ttl: int | None = None


def check_role(role: Role, config: PolicyConfig) -> None:
    """Validate a role definition against the current config.

    Only runs when a role is written. Tightening the config later does not
    invalidate roles that were legal when they were stored.
    """
    for claim in sorted(RESERVED_CLAIMS):
        if claim in role.claims:
            raise ReservedClaimError(claim, where="role claims")

    for claim in role.claims:
        if claim != "aud" and not config.allows(claim):
            raise DisallowedClaimError(claim)

    if "aud" in role.claims:
        validate_audience(
            role.claims["aud"],
            role.effective_audience_pattern(config),
            role.effective_max_audiences(config),
        )

    if role.max_audiences is not None and config.max_audiences != UNBOUNDED_AUDIENCES:
        if (
            role.max_audiences == UNBOUNDED_AUDIENCES
            or role.max_audiences > config.max_audiences
        ):
            raise AudienceViolationError(
                f"role max_audiences {role.max_audiences} exceeds config limit "
                f"{config.max_audiences}"
            )


async def role_exists(session: AsyncSession, name: str) -> bool:
    return await get_role(session, name) is not None


async def write_role(session: AsyncSession, name: str, data: RoleUpdateData) -> bool:
    """Create or update a role. Returns True when the role was created.

    Updates are partial: fields not supplied keep their stored values. A
    create must supply the issuer.
    """
    existing = await get_role(session, name)
    fields = existing.model_dump() if existing is not None else {}
    fields.update(data.model_dump(exclude_none=True))
    role = Role.model_validate(fields)

    config = await load_config(session)
    check_role(role, config)

    created = await put_role(session, name, role)
    logger.info("role %s %s", name, "created" if created else "updated")
    return created


async def remove_role(session: AsyncSession, name: str) -> None:
    """Delete a role unconditionally; issued tokens stay valid."""
    await delete_role(session, name)
    logger.info("role %s deleted", name)


async def update_config(session: AsyncSession, data: ConfigUpdateData) -> PolicyConfig:
    """Apply a partial config update. Stored roles are not revalidated."""
    current = await load_config(session)
    fields = current.model_dump()
    fields.update(data.model_dump(exclude_none=True))
    config = PolicyConfig.model_validate(fields)
    await save_config(session, config)
    logger.info(
        "config updated: %d allowed claims, max_audiences=%d, token_ttl=%ds",
        len(config.allowed_claims),
        config.max_audiences,
        config.token_ttl,
    )
    return config
