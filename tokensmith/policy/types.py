"""Domain models for roles and the issuer-wide claim policy."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tokensmith.policy.patterns import check_pattern

RESERVED_CLAIMS = frozenset({"iss", "sub", "exp", "iat", "nbf", "jti"})
# 'sub' is reserved for roles but may be requested, subject to the role pattern.
REQUEST_RESERVED_CLAIMS = RESERVED_CLAIMS - {"sub"}
POLICY_CONTROLLED_CLAIMS = frozenset({"aud", "sub"})

DEFAULT_AUDIENCE_PATTERN = ".*"
UNBOUNDED_AUDIENCES = -1
DEFAULT_TOKEN_TTL = 180
ROLE_NAME_PATTERN = r"^\w(([\w.-]+)?\w)?$"


class PolicyConfig(BaseModel):
    """Issuer-wide policy: extra claims, audience defaults, token lifetime."""

    model_config = ConfigDict(frozen=True)

    allowed_claims: list[str] = Field(default_factory=list)
    audience_pattern: str = DEFAULT_AUDIENCE_PATTERN
    max_audiences: int = Field(default=UNBOUNDED_AUDIENCES, ge=UNBOUNDED_AUDIENCES)
    token_ttl: int = Field(default=DEFAULT_TOKEN_TTL, gt=0)

    @field_validator("audience_pattern")
    @classmethod
    def _audience_pattern_compiles(cls, value: str) -> str:
        return check_pattern(value)

    def allows(self, claim: str) -> bool:
        return claim in self.allowed_claims


class Role(BaseModel):
    """Named template binding an issuer and fixed or constrained claims."""

    model_config = ConfigDict(frozen=True)

    issuer: str = Field(min_length=1)
    claims: dict[str, Any] = Field(default_factory=dict)
    subject_pattern: str | None = None
    audience_pattern: str | None = None
    max_audiences: int | None = Field(default=None, ge=UNBOUNDED_AUDIENCES)

    @field_validator("subject_pattern", "audience_pattern")
    @classmethod
    def _pattern_compiles(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return check_pattern(value)

    def effective_audience_pattern(self, config: PolicyConfig) -> str:
        """Role pattern wins outright over the config pattern."""
        if self.audience_pattern is not None:
            return self.audience_pattern
        return config.audience_pattern

    def effective_max_audiences(self, config: PolicyConfig) -> int:
        if self.max_audiences is not None:
            return self.max_audiences
        return config.max_audiences
