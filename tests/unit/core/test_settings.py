"""Tests for config file and environment loading."""

import json
from pathlib import Path

import pytest

from jwtmint.core.errors import ConfigIncomplete
from jwtmint.core.settings import HTTP_TIMEOUT_DEFAULT, MintSettings, load_settings


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "debug": False,
                "custom": {
                    "claims": {"iss": "https://issuer.test", "sub": "user-1"},
                    "header": {"kid": "k1"},
                    "well_known_endpoint": "https://issuer.test/jwks",
                    "private_key_file_path": "private_key.pem",
                },
                "rs": {"domain": "tenant.test", "setup_rs": True},
            }
        )
    )
    return path


class TestMintSettings:
    """Tests for defaults and environment overrides."""

    def test_defaults(self) -> None:
        settings = MintSettings()
        assert settings.debug is False
        assert settings.http_timeout == HTTP_TIMEOUT_DEFAULT
        assert settings.custom.claims == {}
        assert settings.rs.setup_rs is False

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("JWTMINT_DEBUG", "true")
        monkeypatch.setenv("JWTMINT_HTTP_TIMEOUT", "2.5")
        settings = MintSettings()
        assert settings.debug is True
        assert settings.http_timeout == 2.5

    def test_rs_audience_defaults_to_me_api(self) -> None:
        settings = MintSettings(rs={"domain": "tenant.test"})
        assert settings.rs.resolved_audience() == "https://tenant.test/me/"


class TestLoadSettings:
    """Tests for JSON config loading and overrides."""

    def test_reads_file(self, config_file: Path) -> None:
        settings = load_settings(config_file)
        assert settings.custom.header == {"kid": "k1"}
        assert settings.custom.claims["iss"] == "https://issuer.test"
        assert settings.rs.domain == "tenant.test"
        assert settings.rs.setup_rs is True

    def test_overrides_replace_file_values(self, config_file: Path) -> None:
        settings = load_settings(
            config_file,
            debug=True,
            custom={"private_key_file_path": "other.pem", "jwk_local_file": None},
        )
        assert settings.debug is True
        assert settings.custom.private_key_file_path == "other.pem"
        assert settings.custom.jwk_local_file is None
        assert settings.custom.well_known_endpoint == "https://issuer.test/jwks"

    def test_none_overrides_ignored(self, config_file: Path) -> None:
        settings = load_settings(config_file, rs={"setup_rs": None}, debug=None)
        assert settings.rs.setup_rs is True
        assert settings.debug is False

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigIncomplete):
            load_settings(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigIncomplete):
            load_settings(path)

    def test_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[]")
        with pytest.raises(ConfigIncomplete):
            load_settings(path)
