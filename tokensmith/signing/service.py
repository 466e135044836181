"""Sign requests: role lookup, claim merge, signing."""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tokensmith.core.errors import IssuanceError, RoleNotFoundError
from tokensmith.crypto.types import SignedToken
from tokensmith.db.repo_config import load_config
from tokensmith.db.repo_roles import get_role
from tokensmith.policy.merge import merge_claims
from tokensmith.signing.signer import TokenSigner

logger = logging.getLogger(__name__)


async def sign_for_role(
    session: AsyncSession,
    role_name: str,
    request_claims: Mapping[str, Any],
    signer: TokenSigner,
) -> SignedToken:
    """Issue a token for a role. Nothing is signed unless every check passes."""
    role = await get_role(session, role_name)
    if role is None:
        raise RoleNotFoundError(role_name)
    config = await load_config(session)

    try:
        claims = merge_claims(role, config, request_claims)
    except IssuanceError as exc:
        logger.info("sign request for role %s rejected: %s", role_name, exc)
        raise

    signed = await signer.sign(claims)
    logger.info(
        "issued token for role %s with key %s (jti %s)",
        role_name,
        signed.kid,
        claims["jti"],
    )
    return signed
