"""RSA key loading, generation, and JWK conversion."""

import base64
import binascii
from pathlib import Path

import uuid_utils
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from jwtmint.core.errors import (
    InvalidKeyFormat,
    KeyDecodeError,
    KeyFileUnreadable,
    UnsupportedKeyType,
)
from jwtmint.crypto.types import JWKEntry, SigningKeyData

RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


def generate_rsa_keypair(kid: str | None = None) -> SigningKeyData:
    """Generate a new RSA-2048 keypair for JWT signing."""
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT,
        key_size=RSA_KEY_SIZE,
    )
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    return SigningKeyData(
        kid=kid or str(uuid_utils.uuid7()),
        private_key_pem=private_pem,
        public_key_pem=_public_pem(private_key.public_key()),
    )


def load_private_key(path: str | Path) -> RSAPrivateKey:
    """Load a PEM RSA private key (PKCS#1 or PKCS#8) from disk."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        raise KeyFileUnreadable(f"cannot read private key {path}: {exc}") from exc
    try:
        key = serialization.load_pem_private_key(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise InvalidKeyFormat(f"{path} is not a PEM private key: {exc}") from exc
    if not isinstance(key, RSAPrivateKey):
        raise InvalidKeyFormat(f"{path} holds a {type(key).__name__}, not an RSA key")
    return key


def _public_pem(key: RSAPublicKey) -> str:
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()


def _int_to_base64url(value: int) -> str:
    """Encode an integer as base64url without padding."""
    byte_length = (value.bit_length() + 7) // 8
    raw = value.to_bytes(byte_length, byteorder="big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _base64url_to_int(value: str) -> int:
    """Decode an unpadded base64url string into a big-endian integer."""
    padded = value + "=" * (-len(value) % 4)
    raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    if not raw:
        raise ValueError("empty value")
    return int.from_bytes(raw, byteorder="big")


def jwk_to_public_pem(entry: JWKEntry) -> str:
    """Rebuild an RSA public key from a JWK and encode it as PEM."""
    if entry.kty != "RSA":
        raise UnsupportedKeyType(f"key {entry.kid!r} has kty {entry.kty!r}, need RSA")
    if not entry.n or not entry.e:
        raise KeyDecodeError(f"key {entry.kid!r} is missing n or e")
    try:
        numbers = rsa.RSAPublicNumbers(
            e=_base64url_to_int(entry.e),
            n=_base64url_to_int(entry.n),
        )
        public_key = numbers.public_key()
    except (ValueError, binascii.Error) as exc:
        raise KeyDecodeError(f"key {entry.kid!r} has bad n/e: {exc}") from exc
    return _public_pem(public_key)


def pem_to_jwk_entry(public_key_pem: str, kid: str) -> JWKEntry:
    """Convert a PEM public key to JWK format."""
    loaded = serialization.load_pem_public_key(public_key_pem.encode())
    assert isinstance(loaded, RSAPublicKey)
    numbers = loaded.public_numbers()
    return JWKEntry(
        kty="RSA",
        kid=kid,
        n=_int_to_base64url(numbers.n),
        e=_int_to_base64url(numbers.e),
    )
