"""Integration test: sign a token and verify it against a served JWK set."""

import httpx
import pytest

from jwtmint.core.settings import CustomTokenSettings, MintSettings
from jwtmint.crypto.jwks import KeySource, resolve_key
from jwtmint.crypto.jwt_manager import verify_token
from jwtmint.crypto.keys import generate_rsa_keypair, pem_to_jwk_entry
from jwtmint.tokens.custom import handle_custom_token

WELL_KNOWN = "https://issuer.test/.well-known/jwks.json"
CLAIMS = {
    "iss": "https://issuer.test",
    "aud": "https://aud.test",
    "sub": "user-1",
    "client_id": "client-1",
}


@pytest.fixture
def served_keys(tmp_path):
    """A fresh k1 keypair, its private key on disk, and a JWKS server."""
    keypair = generate_rsa_keypair("k1")
    key_path = tmp_path / "private_key.pem"
    key_path.write_text(keypair.private_key_pem)
    document = {
        "keys": [
            pem_to_jwk_entry(keypair.public_key_pem, "k1").model_dump(exclude_none=True)
        ]
    }

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) != WELL_KNOWN:
            return httpx.Response(404)
        return httpx.Response(200, json=document)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    yield keypair, key_path, client
    client.close()


def test_end_to_end_claims(served_keys) -> None:
    _, key_path, client = served_keys
    settings = MintSettings(
        custom=CustomTokenSettings(
            claims=dict(CLAIMS),
            header={"kid": "k1"},
            well_known_endpoint=WELL_KNOWN,
            private_key_file_path=str(key_path),
        )
    )

    result = handle_custom_token(settings, client=client)

    claims = result.decoded.claims
    assert set(claims) == set(CLAIMS) | {"exp", "iat", "jti"}
    for name, value in CLAIMS.items():
        assert claims[name] == value
    assert claims["exp"] > claims["iat"]
    assert result.decoded.header == {"alg": "RS256", "typ": "JWT", "kid": "k1"}

    # A relying party resolving the same endpoint accepts the token.
    resolved = resolve_key(KeySource(url=WELL_KNOWN), "k1", client=client)
    assert verify_token(result.token, resolved.public_key_pem).claims == claims


def test_repeated_runs_get_distinct_jti(served_keys) -> None:
    _, key_path, client = served_keys
    settings = MintSettings(
        custom=CustomTokenSettings(
            claims=dict(CLAIMS),
            well_known_endpoint=WELL_KNOWN,
            private_key_file_path=str(key_path),
        )
    )
    first = handle_custom_token(settings, client=client)
    second = handle_custom_token(settings, client=client)
    assert first.decoded.claims["jti"] != second.decoded.claims["jti"]
