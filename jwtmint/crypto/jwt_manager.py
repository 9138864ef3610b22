"""JWT creation and verification using RS256."""

import base64
import binascii
import json
import logging
import secrets
from datetime import UTC, datetime, timedelta
from pathlib import Path

import jwt
from jwt.api_jwt import decode_complete
from jwt.types import Options

from jwtmint.core.errors import (
    KeyDecodeError,
    MalformedToken,
    SignatureInvalid,
    SigningFailure,
    TokenExpired,
    UnacceptableAlgorithm,
)
from jwtmint.crypto.keys import load_private_key
from jwtmint.crypto.types import ClaimSet, DecodedToken

logger = logging.getLogger(__name__)

SIGNING_ALGORITHM = "RS256"
ACCEPTED_ALGORITHMS = ("RS256", "RS384", "RS512")
DEFAULT_TOKEN_TTL = timedelta(hours=24)
JTI_BYTES = 16


def generate_jti() -> str:
    """Random URL-safe token id from 16 bytes of entropy."""
    return secrets.token_urlsafe(JTI_BYTES)


def apply_default_claims(claims: ClaimSet, now: datetime | None = None) -> ClaimSet:
    """Fill in exp, iat and jti when absent. Present values are kept."""
    now = now or datetime.now(UTC)
    if claims.exp is None:
        claims.exp = int((now + DEFAULT_TOKEN_TTL).timestamp())
    if claims.iat is None:
        claims.iat = int(now.timestamp())
    if claims.jti is None:
        claims.jti = generate_jti()
    return claims


def sign_token(
    claims: ClaimSet,
    headers: dict[str, str | None] | None,
    private_key_path: str | Path,
) -> str:
    """Default the claims and sign them with the RSA key at private_key_path."""
    apply_default_claims(claims)
    private_key = load_private_key(private_key_path)

    extra_headers: dict[str, str] = {}
    kid = (headers or {}).get("kid")
    if kid:
        extra_headers["kid"] = kid

    try:
        token = jwt.encode(
            claims.to_payload(),
            private_key,
            algorithm=SIGNING_ALGORITHM,
            headers=extra_headers or None,
        )
    except (jwt.PyJWTError, ValueError, TypeError) as exc:
        raise SigningFailure(f"could not sign token: {exc}") from exc
    logger.debug("Signed %s token jti=%s kid=%s", SIGNING_ALGORITHM, claims.jti, kid)
    return token


def _b64url_decode(segment: str) -> bytes:
    padded = segment + "=" * (-len(segment) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


def _decode_json_segment(segment: str, name: str) -> dict:
    try:
        data = json.loads(_b64url_decode(segment))
    except (binascii.Error, ValueError) as exc:
        raise MalformedToken(f"token {name} segment is unreadable: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedToken(f"token {name} segment is not a JSON object")
    return data


def _check_signature_segment(segment: str) -> None:
    # Non-canonical base64url (stray padding bits) counts as a tampered signature.
    try:
        raw = _b64url_decode(segment)
    except (binascii.Error, ValueError) as exc:
        raise SignatureInvalid(f"token signature segment is unreadable: {exc}") from exc
    if base64.urlsafe_b64encode(raw).rstrip(b"=").decode() != segment:
        raise SignatureInvalid("token signature segment is not canonical base64url")


def verify_token(token: str, public_key_pem: str, *, strict: bool = False) -> DecodedToken:
    """Check the RSA signature and return the decoded header and claims.

    Only the signature and algorithm are checked by default. ``strict``
    additionally enforces exp, nbf and iat. Audience and issuer are never
    checked here; relying parties do that.
    """
    segments = token.split(".")
    if len(segments) != 3:
        raise MalformedToken("token must have three dot-separated segments")
    header_segment, payload_segment, signature_segment = segments

    header = _decode_json_segment(header_segment, "header")
    _decode_json_segment(payload_segment, "payload")
    alg = header.get("alg")
    if alg not in ACCEPTED_ALGORITHMS:
        raise UnacceptableAlgorithm(f"unexpected signing method: {alg}")
    _check_signature_segment(signature_segment)

    opts: Options = {
        "verify_signature": True,
        "verify_exp": strict,
        "verify_nbf": strict,
        "verify_iat": strict,
        "verify_aud": False,
        "verify_iss": False,
        "verify_sub": False,
        "verify_jti": False,
    }
    try:
        decoded = decode_complete(
            token,
            public_key_pem,
            algorithms=list(ACCEPTED_ALGORITHMS),
            options=opts,
        )
    except jwt.InvalidSignatureError as exc:
        raise SignatureInvalid("signature does not match the public key") from exc
    except jwt.InvalidAlgorithmError as exc:
        raise UnacceptableAlgorithm(str(exc)) from exc
    except (
        jwt.ExpiredSignatureError,
        jwt.ImmatureSignatureError,
        jwt.InvalidIssuedAtError,
    ) as exc:
        raise TokenExpired(str(exc)) from exc
    except (jwt.InvalidKeyError, ValueError) as exc:
        raise KeyDecodeError(f"public key is unusable: {exc}", stage="verify") from exc
    except jwt.DecodeError as exc:
        raise MalformedToken(f"token is not a valid JWT: {exc}") from exc
    except jwt.InvalidTokenError as exc:
        raise MalformedToken(str(exc)) from exc

    return DecodedToken(header=decoded["header"], claims=decoded["payload"])
