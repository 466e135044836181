"""Request and response bodies for the tokensmith HTTP API."""

from typing import Any

from pydantic import BaseModel, Field

from tokensmith.policy.types import PolicyConfig, Role


class SignRequest(BaseModel):
    """Body of POST /sign/{role}."""

    claims: dict[str, Any] = Field(default_factory=dict)


class SignResponse(BaseModel):
    token: str


class RoleWritePayload(BaseModel):
    """Body of POST /roles/{name}; omitted fields keep their stored value."""

    issuer: str | None = None
    claims: dict[str, Any] | None = None
    subject_pattern: str | None = None
    audience_pattern: str | None = None
    max_audiences: int | None = None


class RoleResponse(BaseModel):
    name: str
    issuer: str
    claims: dict[str, Any]
    subject_pattern: str | None = None
    audience_pattern: str | None = None
    max_audiences: int | None = None

    @classmethod
    def from_role(cls, name: str, role: Role) -> "RoleResponse":
        return cls(name=name, **role.model_dump())


class RoleListResponse(BaseModel):
    """Role names, in the same shape as a storage list."""

    keys: list[str] = Field(default_factory=list)


class ConfigWritePayload(BaseModel):
    """Body of POST /config; omitted fields keep their stored value."""

    allowed_claims: list[str] | None = None
    audience_pattern: str | None = None
    max_audiences: int | None = None
    token_ttl: int | None = None


class ConfigResponse(BaseModel):
    allowed_claims: list[str]
    audience_pattern: str
    max_audiences: int
    token_ttl: int

    @classmethod
    def from_config(cls, config: PolicyConfig) -> "ConfigResponse":
        return cls(**config.model_dump())


class RotateResponse(BaseModel):
    kid: str
