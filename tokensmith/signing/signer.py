"""Token signing with the Key Manager's active key."""

from typing import Any

from tokensmith.crypto.jwt_codec import encode_claims
from tokensmith.crypto.keys import decrypt_private_key
from tokensmith.crypto.types import SignedToken
from tokensmith.signing.key_manager import KeyManager


class TokenSigner:
    """Signs finished claim sets; the header names the key that signed."""

    def __init__(self, key_manager: KeyManager, encryption_key: str) -> None:
        self._key_manager = key_manager
        self._encryption_key = encryption_key

    async def sign(self, claims: dict[str, Any]) -> SignedToken:
        """Sign with the current key, bootstrapping one if none exists yet."""
        key = await self._key_manager.current_signing_key()
        private_pem = decrypt_private_key(key.private_key_pem, self._encryption_key)
        token = encode_claims(claims, private_pem, key.kid, key.algorithm)
        return SignedToken(token=token, kid=key.kid)
