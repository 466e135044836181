"""JWT encoding and JWKS-based verification using RS256."""

from typing import Any

import jwt
from jwt.types import Options

from tokensmith.core.errors import NoSigningKeysError, UnknownKeyError
from tokensmith.crypto.keys import SIGNING_ALGORITHM
from tokensmith.crypto.types import JWKEntry, JWKSResponse


def encode_claims(
    claims: dict[str, Any],
    private_key_pem: str,
    kid: str,
    algorithm: str = SIGNING_ALGORITHM,
) -> str:
    """Sign a finished claim set; the header carries the key identifier."""
    return jwt.encode(
        claims,
        private_key_pem,
        algorithm=algorithm,
        headers={"kid": kid},
    )


def select_jwk(jwks: JWKSResponse, kid: str | None) -> JWKEntry:
    """Pick the newest JWKS entry for a key identifier."""
    if not jwks.keys:
        raise NoSigningKeysError()
    matches = [entry for entry in jwks.keys if entry.kid == kid]
    if not matches:
        raise UnknownKeyError(kid)
    return matches[-1]


def verify_token(token: str, jwks: JWKSResponse) -> dict[str, Any]:
    """Verify a token against a published key set and return its claims.

    Audience is not checked; the caller decides which audiences it accepts.
    """
    header = jwt.get_unverified_header(token)
    entry = select_jwk(jwks, header.get("kid"))
    public_key = jwt.PyJWK(entry.model_dump()).key
    opts: Options = {"verify_aud": False}
    return jwt.decode(
        token,
        public_key,
        algorithms=[entry.alg],
        options=opts,
    )
