"""Resource-server flow: provision the /me/ API, grant the client, password grant."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from jwtmint.core.errors import ConfigIncomplete, OAuthRequestError, SourceUnavailable
from jwtmint.core.logs import log_json
from jwtmint.core.settings import MintSettings, ResourceServerSettings
from jwtmint.tokens.types import ManagementAPIResponse, OAuthTokenResponse

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("domain", "client_id", "client_secret", "username", "password")
RESOURCE_SERVER_NAME = "Auth0 My Account API"
TOKEN_DIALECT = "rfc9068_profile"


def check_rs_config(rs: ResourceServerSettings) -> None:
    """Fail on the first missing resource-server field."""
    for name in REQUIRED_FIELDS:
        if not getattr(rs, name):
            raise ConfigIncomplete(name, f"rs.{name} is required in your config file")


class ResourceServerClient:
    """Talks to one tenant's OAuth token and management endpoints."""

    def __init__(
        self,
        rs: ResourceServerSettings,
        http: httpx.Client,
        *,
        debug: bool = False,
    ) -> None:
        self._rs = rs
        self._http = http
        self._debug = debug
        self._base_url = f"https://{rs.domain}"

    def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = self._http.post(url, **kwargs)
        except httpx.HTTPError as exc:
            raise SourceUnavailable(f"POST {url} failed: {exc}", stage="oauth") from exc
        if self._debug:
            log_json(logger, path, response.content)
        return response

    def _token_request(self, form: dict[str, str]) -> OAuthTokenResponse:
        response = self._post("/oauth/token", data=form)
        try:
            token = OAuthTokenResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise OAuthRequestError(
                "/oauth/token", "invalid_response", f"HTTP {response.status_code}"
            ) from exc
        if token.error:
            raise OAuthRequestError(
                "/oauth/token", token.error, token.error_description or ""
            )
        if not token.access_token:
            raise OAuthRequestError(
                "/oauth/token", "invalid_response", "no access_token in response"
            )
        return token

    def _management_request(
        self, path: str, mgmt_token: str, body: dict[str, Any]
    ) -> None:
        response = self._post(
            path,
            json=body,
            headers={"Authorization": f"Bearer {mgmt_token}"},
        )
        if response.is_success:
            return
        try:
            envelope = ManagementAPIResponse.model_validate_json(response.content)
        except ValidationError:
            envelope = ManagementAPIResponse()
        raise OAuthRequestError(
            path,
            envelope.error or f"HTTP {response.status_code}",
            envelope.message or "",
        )

    def get_management_token(self) -> OAuthTokenResponse:
        """Client-credentials grant for the management API."""
        return self._token_request(
            {
                "grant_type": "client_credentials",
                "client_id": self._rs.client_id or "",
                "client_secret": self._rs.client_secret or "",
                "audience": f"{self._base_url}/api/v2/",
            }
        )

    def create_resource_server(self, mgmt_token: str) -> None:
        """Register the API the access token will be issued for."""
        self._management_request(
            "/api/v2/resource-servers",
            mgmt_token,
            {
                "identifier": self._rs.resolved_audience(),
                "name": RESOURCE_SERVER_NAME,
                "skip_consent_for_verifiable_first_party_clients": False,
                "token_dialect": TOKEN_DIALECT,
            },
        )

    def create_client_grant(self, mgmt_token: str) -> None:
        """Allow the client to request the configured scope on the API."""
        self._management_request(
            "/api/v2/client-grants",
            mgmt_token,
            {
                "client_id": self._rs.client_id,
                "audience": self._rs.resolved_audience(),
                "scope": self._rs.scope.split(),
            },
        )

    def get_access_token(self) -> OAuthTokenResponse:
        """Resource-owner password grant for the configured user."""
        return self._token_request(
            {
                "grant_type": "password",
                "username": self._rs.username or "",
                "password": self._rs.password or "",
                "scope": self._rs.scope,
                "audience": self._rs.resolved_audience(),
                "client_id": self._rs.client_id or "",
                "client_secret": self._rs.client_secret or "",
            }
        )


def _run(
    rs: ResourceServerSettings, http: httpx.Client, debug: bool
) -> OAuthTokenResponse:
    api = ResourceServerClient(rs, http, debug=debug)
    if rs.setup_rs:
        mgmt = api.get_management_token()
        api.create_resource_server(mgmt.access_token)
        api.create_client_grant(mgmt.access_token)
        logger.info("Resource server %s ready", rs.resolved_audience())
    return api.get_access_token()


def handle_rs_token(
    settings: MintSettings, *, client: httpx.Client | None = None
) -> OAuthTokenResponse:
    """Obtain an access token from the identity provider."""
    rs = settings.rs
    check_rs_config(rs)
    if client is not None:
        return _run(rs, client, settings.debug)
    with httpx.Client(timeout=settings.http_timeout) as owned:
        return _run(rs, owned, settings.debug)
