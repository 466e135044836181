"""JWKS document built from the verification key set."""

from tokensmith.crypto.keys import pem_to_jwk_entry
from tokensmith.crypto.types import JWKSResponse
from tokensmith.signing.key_manager import KeyManager


async def publish_key_set(key_manager: KeyManager) -> JWKSResponse:
    """One JWK per retained key. Reads public material only."""
    keys = await key_manager.verification_key_set()
    return JWKSResponse(
        keys=[pem_to_jwk_entry(key.public_key_pem, key.kid) for key in keys]
    )
