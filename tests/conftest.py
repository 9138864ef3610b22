"""Shared test fixtures for jwtmint."""

import json
from pathlib import Path

import pytest

from jwtmint.crypto.keys import generate_rsa_keypair, pem_to_jwk_entry
from jwtmint.crypto.types import SigningKeyData

KID = "k1"


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host JWTMINT_* variables out of settings under test."""
    monkeypatch.delenv("JWTMINT_DEBUG", raising=False)
    monkeypatch.delenv("JWTMINT_HTTP_TIMEOUT", raising=False)
    monkeypatch.delenv("JWTMINT_STRICT_VERIFY", raising=False)


@pytest.fixture(scope="session")
def keypair() -> SigningKeyData:
    """One RSA-2048 keypair shared by the whole session."""
    return generate_rsa_keypair(KID)


@pytest.fixture(scope="session")
def other_keypair() -> SigningKeyData:
    """A second, unrelated keypair."""
    return generate_rsa_keypair("other")


@pytest.fixture
def private_key_file(tmp_path: Path, keypair: SigningKeyData) -> Path:
    path = tmp_path / "private_key.pem"
    path.write_text(keypair.private_key_pem)
    return path


@pytest.fixture
def jwks_document(keypair: SigningKeyData) -> dict:
    entry = pem_to_jwk_entry(keypair.public_key_pem, keypair.kid)
    return {"keys": [entry.model_dump(exclude_none=True)]}


@pytest.fixture
def jwks_file(tmp_path: Path, jwks_document: dict) -> Path:
    path = tmp_path / "jwks.json"
    path.write_text(json.dumps(jwks_document))
    return path


@pytest.fixture
def base_claims() -> dict:
    return {
        "iss": "https://issuer.test",
        "aud": "https://aud.test",
        "sub": "user-1",
        "client_id": "client-1",
    }
