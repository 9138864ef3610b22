"""Settings loaded from a JSON config file and environment variables."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from jwtmint.core.errors import ConfigIncomplete

HTTP_TIMEOUT_DEFAULT = 10.0
DEFAULT_CONFIG_FILE = "config.json"


class CustomTokenSettings(BaseModel):
    """Inputs for a locally signed token."""

    claims: dict[str, Any] = Field(default_factory=dict)
    header: dict[str, str | None] = Field(default_factory=dict)
    well_known_endpoint: str | None = None
    jwk_local_file: str | None = None
    private_key_file_path: str | None = None


class ResourceServerSettings(BaseModel):
    """Identity provider tenant and user for the password-grant flow."""

    domain: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    username: str | None = None
    password: str | None = None
    setup_rs: bool = False
    scope: str = "create:authentication-methods"
    audience: str | None = None

    def resolved_audience(self) -> str:
        """The audience of the access token; the tenant's /me/ API by default."""
        return self.audience or f"https://{self.domain}/me/"


class MintSettings(BaseSettings):
    """Top-level tool settings."""

    model_config = SettingsConfigDict(
        env_prefix="JWTMINT_",
        env_nested_delimiter="__",
    )

    debug: bool = False
    http_timeout: float = HTTP_TIMEOUT_DEFAULT
    strict_verify: bool = False
    custom: CustomTokenSettings = Field(default_factory=CustomTokenSettings)
    rs: ResourceServerSettings = Field(default_factory=ResourceServerSettings)


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, dict):
            current = merged.get(key)
            merged[key] = _merge(current if isinstance(current, dict) else {}, value)
        else:
            merged[key] = value
    return merged


def load_settings(
    config_file: str | Path | None = None,
    **overrides: Any,
) -> MintSettings:
    """Read the JSON config file and apply non-None overrides on top.

    Overrides use the same shape as the file, e.g.
    ``custom={"private_key_file_path": "key.pem"}``.
    """
    data: dict[str, Any] = {}
    if config_file is not None:
        try:
            data = json.loads(Path(config_file).read_text())
        except OSError as exc:
            raise ConfigIncomplete(
                "config_file", f"cannot read config file {config_file}: {exc}"
            ) from exc
        except ValueError as exc:
            raise ConfigIncomplete(
                "config_file", f"config file {config_file} is not valid JSON: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise ConfigIncomplete("config_file", "config file must hold a JSON object")
    try:
        return MintSettings(**_merge(data, overrides))
    except ValidationError as exc:
        raise ConfigIncomplete("config_file", f"invalid configuration: {exc}") from exc
