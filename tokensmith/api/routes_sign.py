"""Token sign endpoint."""

from typing import Annotated

from fastapi import APIRouter, Path

from tokensmith.api.deps import ApiToken, DbSession, Signer
from tokensmith.api.schemas import SignRequest, SignResponse
from tokensmith.policy.types import ROLE_NAME_PATTERN
from tokensmith.signing.service import sign_for_role

router = APIRouter(tags=["sign"])


@router.post("/sign/{role}")
async def sign(
    role: Annotated[str, Path(pattern=ROLE_NAME_PATTERN)],
    payload: SignRequest,
    db: DbSession,
    signer: Signer,
    _token: ApiToken,
) -> SignResponse:
    """POST /sign/{role} -- issue a JWT for the role and requested claims."""
    signed = await sign_for_role(db, role.lower(), payload.claims, signer)
    return SignResponse(token=signed.token)
