"""Type definitions for claim sets, JWKS documents, and decoded tokens."""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

_OPTIONAL_CLAIMS = ("client_id", "azp", "exp", "iat", "jti")

class SigningKeyData(BaseModel):
    """An RSA keypair for local JWT signing."""

    kid: str
    private_key_pem: str
    public_key_pem: str


class JWKEntry(BaseModel):
    """Single JWK entry in a JWKS document."""

    model_config = ConfigDict(extra="allow")

    kty: str | None = None
    use: str | None = "sig"
    alg: str | None = "RS256"
    kid: str | None = None
    n: str | None = None
    e: str | None = None
    x5t: str | None = None
    x5c: list[str] | str | None = None


class JWKSResponse(BaseModel):
    """JSON Web Key Set document."""

    keys: list[JWKEntry]


class KeySelection(BaseModel):
    """The JWK picked from a set, and whether its kid matched exactly."""

    key: JWKEntry
    matched: bool
    fallback_reason: str | None = None


class ClaimSet(BaseModel):
    """Claims for a custom token; unknown claims pass through untouched."""

    model_config = ConfigDict(extra="allow")

    iss: str
    aud: str | list[str]
    sub: str
    client_id: str | None = None
    azp: str | None = None
    exp: int | float | None = None
    iat: int | float | None = None
    jti: Any = None

    @model_validator(mode="after")
    def _require_client(self) -> "ClaimSet":
        if not self.client_id and not self.azp:
            raise ValueError("client_id or azp claim is required")
        return self

    def to_payload(self) -> dict[str, Any]:
        """Claims as a JWT payload, dropping unset optional claims."""
        payload = self.model_dump()
        for name in _OPTIONAL_CLAIMS:
            if payload.get(name) is None:
                payload.pop(name, None)
        return payload


class DecodedToken(BaseModel):
    """Header and claims of a verified JWT."""

    header: dict[str, Any]
    claims: dict[str, Any]
