"""Claim merge and validation engine.

Combines a role, the issuer policy config, and caller-supplied claims into the
final claim set that gets signed. Pure: no storage, no clock unless the caller
leaves ``now`` unset.

Checks run in a fixed order and stop at the first failure:

1. structural claims (``iss exp iat nbf jti``) in the request
2. request claims that collide with role claims, then the allow-list
3. ``sub`` against the role subject pattern
4. ``aud`` against the effective audience pattern and count

Computed claims are written last so nothing upstream can shadow them.
"""

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import uuid_utils

from tokensmith.core.errors import (
    AudienceViolationError,
    ClaimTypeError,
    DisallowedClaimError,
    ReservedClaimError,
    RoleClaimOverrideError,
    SubjectViolationError,
)
from tokensmith.policy.patterns import pattern_matches
from tokensmith.policy.types import (
    POLICY_CONTROLLED_CLAIMS,
    REQUEST_RESERVED_CLAIMS,
    UNBOUNDED_AUDIENCES,
    PolicyConfig,
    Role,
)


def validate_audience(aud: Any, pattern: str, max_audiences: int) -> None:
    """Check a string or list-of-strings audience against pattern and count."""
    if isinstance(aud, str):
        if not pattern_matches(pattern, aud):
            raise AudienceViolationError("validation of 'aud' claim failed")
        return
    if not isinstance(aud, list):
        raise ClaimTypeError(
            f"'aud' claim was {type(aud).__name__}, not string or list of strings"
        )
    if any(not isinstance(entry, str) for entry in aud):
        raise ClaimTypeError("'aud' claim list may only contain strings")
    if max_audiences != UNBOUNDED_AUDIENCES and len(aud) > max_audiences:
        raise AudienceViolationError(f"too many audience claims: {len(aud)}")
    for entry in aud:
        if not pattern_matches(pattern, entry):
            raise AudienceViolationError("validation of 'aud' claim failed")


def _check_reserved(request_claims: Mapping[str, Any]) -> None:
    for claim in sorted(REQUEST_RESERVED_CLAIMS):
        if claim in request_claims:
            raise ReservedClaimError(claim)


def _check_membership(
    role: Role, config: PolicyConfig, request_claims: Mapping[str, Any]
) -> None:
    for claim in request_claims:
        if claim in role.claims:
            raise RoleClaimOverrideError(claim)
        if claim not in POLICY_CONTROLLED_CLAIMS and not config.allows(claim):
            raise DisallowedClaimError(claim)


def _check_subject(role: Role, sub: Any) -> None:
    if not isinstance(sub, str):
        raise ClaimTypeError(f"'sub' claim was {type(sub).__name__}, not string")
    if role.subject_pattern is not None and not pattern_matches(
        role.subject_pattern, sub
    ):
        raise SubjectViolationError("validation of 'sub' claim failed")


def merge_claims(
    role: Role,
    config: PolicyConfig,
    request_claims: Mapping[str, Any],
    *,
    now: datetime | None = None,
    jti: str | None = None,
) -> dict[str, Any]:
    """Return the validated, fully merged claim set for one token."""
    _check_reserved(request_claims)
    _check_membership(role, config, request_claims)
    if "sub" in request_claims:
        _check_subject(role, request_claims["sub"])
    if "aud" in request_claims:
        validate_audience(
            request_claims["aud"],
            role.effective_audience_pattern(config),
            role.effective_max_audiences(config),
        )

    issued = now or datetime.now(UTC)
    issued_at = int(issued.timestamp())
    expires_at = int((issued + timedelta(seconds=config.token_ttl)).timestamp())

    claims: dict[str, Any] = dict(role.claims)
    for claim in ("aud", "sub"):
        if claim in request_claims:
            claims[claim] = request_claims[claim]
    claims.update(
        (claim, value)
        for claim, value in request_claims.items()
        if claim not in POLICY_CONTROLLED_CLAIMS
    )
    claims.update(
        iss=role.issuer,
        iat=issued_at,
        nbf=issued_at,
        exp=expires_at,
        jti=jti or str(uuid_utils.uuid7()),
    )
    return claims
