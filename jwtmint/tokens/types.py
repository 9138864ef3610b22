"""Type definitions for OAuth and management API responses."""

from pydantic import BaseModel, ConfigDict, Field


class OAuthTokenResponse(BaseModel):
    """OAuth token endpoint response."""

    model_config = ConfigDict(extra="allow")

    access_token: str = ""
    token_type: str = "Bearer"
    expires_in: int | None = None
    scope: str | None = None
    error: str | None = None
    error_description: str | None = None


class ManagementAPIResponse(BaseModel):
    """Error envelope returned by the management API."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    status_code: int | None = Field(default=None, alias="statusCode")
    error: str | None = None
    message: str | None = None
    error_code: str | None = Field(default=None, alias="errorCode")
