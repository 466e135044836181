"""Signing keypairs: creation, at-rest encryption, and public JWK export."""

import base64

import uuid_utils
from cryptography.fernet import Fernet
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from tokensmith.core.errors import KeyGenerationError
from tokensmith.crypto.types import JWKEntry, SigningKeyData

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537
SIGNING_ALGORITHM = "RS256"


def _new_private_key() -> RSAPrivateKey:
    # Backend failures surface as KeyGenerationError and are not retried.
    try:
        return rsa.generate_private_key(
            public_exponent=RSA_PUBLIC_EXPONENT,
            key_size=RSA_KEY_SIZE,
        )
    except (ValueError, TypeError, OSError) as exc:
        raise KeyGenerationError(f"RSA key generation failed: {exc}") from exc


def generate_rsa_keypair() -> SigningKeyData:
    """Create a fresh RS256 keypair under a new time-ordered kid."""
    private_key = _new_private_key()
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return SigningKeyData(
        kid=str(uuid_utils.uuid7()),
        private_key_pem=private_pem.decode(),
        public_key_pem=public_pem.decode(),
    )


def _fernet(fernet_key: str) -> Fernet:
    return Fernet(fernet_key.encode())


def encrypt_private_key(private_pem: str, fernet_key: str) -> str:
    """Seal a private PEM so only ciphertext reaches the keys table."""
    return _fernet(fernet_key).encrypt(private_pem.encode()).decode()


def decrypt_private_key(encrypted: str, fernet_key: str) -> str:
    return _fernet(fernet_key).decrypt(encrypted.encode()).decode()


def _b64url_uint(value: int) -> str:
    # RFC 7518 section 6.3.1: big-endian, minimal length, unpadded
    length = max(1, (value.bit_length() + 7) // 8)
    encoded = base64.urlsafe_b64encode(value.to_bytes(length, "big"))
    return encoded.rstrip(b"=").decode()


def pem_to_jwk_entry(public_key_pem: str, kid: str) -> JWKEntry:
    """Describe a stored public key as a JWKS entry (modulus and exponent only)."""
    public_key = serialization.load_pem_public_key(public_key_pem.encode())
    if not isinstance(public_key, RSAPublicKey):
        raise TypeError(f"key {kid} is not an RSA public key")
    numbers = public_key.public_numbers()
    return JWKEntry(
        kid=kid,
        alg=SIGNING_ALGORITHM,
        n=_b64url_uint(numbers.n),
        e=_b64url_uint(numbers.e),
    )
