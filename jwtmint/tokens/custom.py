"""Custom token flow: validate config, sign, resolve the JWK, self-verify."""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from jwtmint.core.errors import ConfigIncomplete, JWTMintError, VerificationFailed
from jwtmint.core.logs import log_json
from jwtmint.core.settings import CustomTokenSettings, MintSettings
from jwtmint.crypto.jwks import KeySource, resolve_key
from jwtmint.crypto.jwt_manager import sign_token, verify_token
from jwtmint.crypto.types import ClaimSet, DecodedToken, KeySelection

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("iss", "aud", "sub")


class CustomTokenResult(BaseModel):
    """A signed token that passed self-verification."""

    token: str
    decoded: DecodedToken
    selection: KeySelection


def _present(claims: dict[str, Any], name: str) -> bool:
    return claims.get(name) not in (None, "")


def check_custom_config(custom: CustomTokenSettings) -> ClaimSet:
    """Validate required fields without touching files or the network."""
    for name in REQUIRED_CLAIMS:
        if not _present(custom.claims, name):
            raise ConfigIncomplete(name, f"{name} claim is required in your config file")
    if not (_present(custom.claims, "client_id") or _present(custom.claims, "azp")):
        raise ConfigIncomplete(
            "client_id", "client_id (or azp) claim is required in your config file"
        )
    if not custom.well_known_endpoint and not custom.jwk_local_file:
        raise ConfigIncomplete(
            "well_known_endpoint",
            "well_known_endpoint or jwk_local_file is required in your config file",
        )
    if not custom.private_key_file_path:
        raise ConfigIncomplete("private_key_file_path")
    try:
        return ClaimSet.model_validate(custom.claims)
    except ValidationError as exc:
        raise ConfigIncomplete("claims", f"invalid claims: {exc}") from exc


def handle_custom_token(
    settings: MintSettings, *, client: httpx.Client | None = None
) -> CustomTokenResult:
    """Sign a token from config and return it once it verifies against the JWK."""
    custom = settings.custom
    claims = check_custom_config(custom)
    assert custom.private_key_file_path is not None

    token = sign_token(claims, custom.header, custom.private_key_file_path)

    resolved = resolve_key(
        KeySource(jwk_file=custom.jwk_local_file, url=custom.well_known_endpoint),
        custom.header.get("kid") or None,
        debug=settings.debug,
        timeout=settings.http_timeout,
        client=client,
    )

    try:
        decoded = verify_token(
            token, resolved.public_key_pem, strict=settings.strict_verify
        )
    except JWTMintError as exc:
        raise VerificationFailed(exc) from exc

    if settings.debug:
        log_json(logger, "DEBUG VERIFIED TOKEN", decoded.model_dump())

    return CustomTokenResult(token=token, decoded=decoded, selection=resolved.selection)
