"""Type definitions for signing keys, JWKS documents, and signed tokens."""

from pydantic import BaseModel


class SigningKeyData(BaseModel):
    """A freshly generated RSA keypair, before it is stored."""

    kid: str
    private_key_pem: str
    public_key_pem: str


class JWKEntry(BaseModel):
    """Single JWK entry in a JWKS response."""

    kty: str = "RSA"
    use: str = "sig"
    alg: str = "RS256"
    kid: str
    n: str
    e: str


class JWKSResponse(BaseModel):
    """JSON Web Key Set response."""

    keys: list[JWKEntry]


class SignedToken(BaseModel):
    """Compact JWT plus the identifier of the key that signed it."""

    token: str
    kid: str
