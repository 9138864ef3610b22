"""JWK set retrieval, key selection, and public key reconstruction."""

import json
import logging
from pathlib import Path

import httpx
from pydantic import BaseModel, ValidationError

from jwtmint.core.errors import MalformedKeySet, NoKeysAvailable, SourceUnavailable
from jwtmint.core.logs import log_json
from jwtmint.crypto.keys import jwk_to_public_pem
from jwtmint.crypto.types import JWKSResponse, KeySelection

logger = logging.getLogger(__name__)

DEFAULT_HTTP_TIMEOUT = 10.0


class KeySource(BaseModel):
    """Where to read the JWK set from. A local file wins over the URL."""

    jwk_file: str | None = None
    url: str | None = None

    def describe(self) -> str:
        return self.jwk_file or self.url or "<none>"


class ResolvedKey(BaseModel):
    """PEM public key plus the JWK selection it came from."""

    public_key_pem: str
    selection: KeySelection


def _read_file(path: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise SourceUnavailable(f"cannot read JWK file {path}: {exc}") from exc


def _fetch_url(url: str, timeout: float, client: httpx.Client | None) -> bytes:
    try:
        if client is None:
            with httpx.Client(timeout=timeout, follow_redirects=True) as owned:
                response = owned.get(url)
        else:
            response = client.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SourceUnavailable(
            f"GET {url} returned HTTP {exc.response.status_code}"
        ) from exc
    except httpx.HTTPError as exc:
        raise SourceUnavailable(f"GET {url} failed: {exc}") from exc
    return response.content


def fetch_jwk_document(
    source: KeySource,
    *,
    debug: bool = False,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    client: httpx.Client | None = None,
) -> bytes:
    """Load the raw JWK set document from a local file or a URL."""
    if source.jwk_file:
        raw = _read_file(source.jwk_file)
    elif source.url:
        raw = _fetch_url(source.url, timeout, client)
    else:
        raise SourceUnavailable("no JWK file or well-known endpoint configured")
    if debug:
        log_json(logger, "DEBUG JWK RESPONSE", raw)
    return raw


def parse_jwk_set(raw: bytes | str) -> JWKSResponse:
    """Parse a JWK set document; it must be an object with a keys array."""
    try:
        document = json.loads(raw)
    except ValueError as exc:
        raise MalformedKeySet(f"JWK document is not valid JSON: {exc}") from exc
    if not isinstance(document, dict) or not isinstance(document.get("keys"), list):
        raise MalformedKeySet("JWK document has no keys array")
    try:
        return JWKSResponse.model_validate(document)
    except ValidationError as exc:
        raise MalformedKeySet(f"JWK document has invalid entries: {exc}") from exc


def select_key(jwk_set: JWKSResponse, kid: str | None = None) -> KeySelection:
    """Pick the key with a matching kid, else fall back to the first key."""
    if not jwk_set.keys:
        raise NoKeysAvailable("JWK set contains no keys")
    if kid is None:
        return KeySelection(key=jwk_set.keys[0], matched=True)
    for entry in jwk_set.keys:
        if entry.kid == kid:
            return KeySelection(key=entry, matched=True)
    reason = (
        f"Could not find key with kid: {kid}. "
        "Using first key from the JWK set instead."
    )
    logger.warning(reason)
    return KeySelection(key=jwk_set.keys[0], matched=False, fallback_reason=reason)


def resolve_key(
    source: KeySource,
    kid: str | None = None,
    *,
    debug: bool = False,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    client: httpx.Client | None = None,
) -> ResolvedKey:
    """Fetch a JWK set, select one key, and return it as a PEM public key."""
    raw = fetch_jwk_document(source, debug=debug, timeout=timeout, client=client)
    selection = select_key(parse_jwk_set(raw), kid)
    logger.debug("Selected JWK kid=%s from %s", selection.key.kid, source.describe())
    return ResolvedKey(
        public_key_pem=jwk_to_public_pem(selection.key),
        selection=selection,
    )
