"""Tests for role/config write paths and write-time policy checks."""

import pytest
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.errors import (
    AudienceViolationError,
    ClaimTypeError,
    DisallowedClaimError,
    ReservedClaimError,
)
from tokensmith.db.repo_config import load_config
from tokensmith.db.repo_roles import get_role
from tokensmith.policy.service import (
    ConfigUpdateData,
    RoleUpdateData,
    check_role,
    remove_role,
    role_exists,
    update_config,
    write_role,
)
from tokensmith.policy.types import PolicyConfig, Role


class TestCheckRole:
    @pytest.mark.parametrize("claim", ["iss", "sub", "exp", "iat", "nbf", "jti"])
    def test_reserved_claims_rejected_even_when_allow_listed(self, claim: str) -> None:
        config = PolicyConfig(allowed_claims=[claim])
        with pytest.raises(ReservedClaimError):
            check_role(Role(issuer="iss", claims={claim: "x"}), config)

    def test_unlisted_claim_rejected(self) -> None:
        with pytest.raises(DisallowedClaimError):
            check_role(Role(issuer="iss", claims={"foo": "bar"}), PolicyConfig())

    def test_aud_needs_no_allow_listing(self) -> None:
        check_role(Role(issuer="iss", claims={"aud": "an audience"}), PolicyConfig())

    def test_static_aud_checked_against_config_pattern(self) -> None:
        config = PolicyConfig(audience_pattern="^api-")
        with pytest.raises(AudienceViolationError):
            check_role(Role(issuer="iss", claims={"aud": "web"}), config)

    def test_static_aud_list_checked_against_count(self) -> None:
        config = PolicyConfig(max_audiences=1)
        with pytest.raises(AudienceViolationError):
            check_role(Role(issuer="iss", claims={"aud": ["a", "b"]}), config)

    def test_static_aud_type(self) -> None:
        with pytest.raises(ClaimTypeError):
            check_role(Role(issuer="iss", claims={"aud": 5}), PolicyConfig())

    @pytest.mark.parametrize("role_max", [-1, 4])
    def test_role_max_cannot_loosen_config(self, role_max: int) -> None:
        config = PolicyConfig(max_audiences=3)
        with pytest.raises(AudienceViolationError):
            check_role(Role(issuer="iss", max_audiences=role_max), config)

    def test_role_max_may_tighten_config(self) -> None:
        check_role(Role(issuer="iss", max_audiences=2), PolicyConfig(max_audiences=3))


class TestWriteRole:
    async def test_create_then_update_is_partial(self, db_session: AsyncSession) -> None:
        created = await write_role(
            db_session,
            "tester",
            RoleUpdateData(issuer="tester.example.com", subject_pattern="^svc-"),
        )
        assert created is True
        assert await role_exists(db_session, "tester")

        created = await write_role(
            db_session, "tester", RoleUpdateData(audience_pattern="^aud-")
        )
        assert created is False
        role = await get_role(db_session, "tester")
        assert role is not None
        assert role.issuer == "tester.example.com"
        assert role.subject_pattern == "^svc-"
        assert role.audience_pattern == "^aud-"

    async def test_create_requires_issuer(self, db_session: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await write_role(db_session, "tester", RoleUpdateData(claims={}))
        assert not await role_exists(db_session, "tester")

    async def test_rejected_write_stores_nothing(self, db_session: AsyncSession) -> None:
        with pytest.raises(ReservedClaimError):
            await write_role(
                db_session,
                "tester",
                RoleUpdateData(issuer="iss", claims={"exp": 1}),
            )
        assert await get_role(db_session, "tester") is None

    async def test_uses_config_at_write_time(self, db_session: AsyncSession) -> None:
        await update_config(db_session, ConfigUpdateData(allowed_claims=["team"]))
        await write_role(
            db_session, "tester", RoleUpdateData(issuer="iss", claims={"team": "core"})
        )

        await update_config(db_session, ConfigUpdateData(allowed_claims=[]))
        role = await get_role(db_session, "tester")
        assert role is not None
        assert role.claims == {"team": "core"}

    async def test_remove_is_idempotent(self, db_session: AsyncSession) -> None:
        await write_role(db_session, "tester", RoleUpdateData(issuer="iss"))
        await remove_role(db_session, "tester")
        await remove_role(db_session, "tester")
        assert not await role_exists(db_session, "tester")


class TestUpdateConfig:
    async def test_partial_update(self, db_session: AsyncSession) -> None:
        await update_config(
            db_session, ConfigUpdateData(allowed_claims=["foo"], max_audiences=3)
        )
        updated = await update_config(db_session, ConfigUpdateData(token_ttl=600))
        assert updated.allowed_claims == ["foo"]
        assert updated.max_audiences == 3
        assert updated.token_ttl == 600
        assert await load_config(db_session) == updated

    async def test_invalid_pattern_rejected(self, db_session: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await update_config(db_session, ConfigUpdateData(audience_pattern="(x"))
        assert await load_config(db_session) == PolicyConfig()

    async def test_max_audiences_floor(self, db_session: AsyncSession) -> None:
        with pytest.raises(ValidationError):
            await update_config(db_session, ConfigUpdateData(max_audiences=-5))
