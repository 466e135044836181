"""JWKS publication and explicit key rotation endpoints."""

from fastapi import APIRouter, Response

from tokensmith.api.deps import ApiToken, Keys, Settings
from tokensmith.api.schemas import RotateResponse
from tokensmith.crypto.types import JWKSResponse
from tokensmith.signing.jwks import publish_key_set

router = APIRouter(tags=["keys"])


@router.get("/jwks")
async def jwks(
    response: Response,
    key_manager: Keys,
    settings: Settings,
) -> JWKSResponse:
    """JSON Web Key Set endpoint."""
    document = await publish_key_set(key_manager)
    response.headers["Cache-Control"] = f"public, max-age={settings.jwks_max_age}"
    return document


@router.post("/keys/rotate")
async def rotate_keys(key_manager: Keys, _token: ApiToken) -> RotateResponse:
    """POST /keys/rotate -- activate a new signing key now."""
    key = await key_manager.rotate()
    return RotateResponse(kid=key.kid)
