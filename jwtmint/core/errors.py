"""Error taxonomy for token minting, key resolution, and verification."""


class JWTMintError(Exception):
    """Base error. ``stage`` names the pipeline step that failed."""

    stage = "unknown"

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        return f"{self.stage}: {self.args[0]}"


class ConfigIncomplete(JWTMintError):
    """A required configuration field is missing."""

    stage = "validate_config"

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"{field} is required in your config file")
        self.field = field


class SourceUnavailable(JWTMintError):
    """A JWK file could not be read or an HTTP request failed."""

    stage = "resolve_key"


class MalformedKeySet(JWTMintError):
    """The JWK document is not a JSON object with a ``keys`` array."""

    stage = "resolve_key"


class NoKeysAvailable(JWTMintError):
    """The JWK set contains no keys."""

    stage = "resolve_key"


class UnsupportedKeyType(JWTMintError):
    """The selected JWK is not an RSA key."""

    stage = "resolve_key"


class KeyDecodeError(JWTMintError):
    """The JWK modulus or exponent is not valid base64url."""

    stage = "resolve_key"


class KeyFileUnreadable(JWTMintError):
    """The private key file is missing or unreadable."""

    stage = "sign"


class InvalidKeyFormat(JWTMintError):
    """The private key file does not hold an RSA private key."""

    stage = "sign"


class SigningFailure(JWTMintError):
    """The RS256 signature could not be computed."""

    stage = "sign"


class MalformedToken(JWTMintError):
    """The token is not a three-segment base64url JWT."""

    stage = "verify"


class UnacceptableAlgorithm(JWTMintError):
    """The token header declares a non-RSA algorithm."""

    stage = "verify"


class SignatureInvalid(JWTMintError):
    """The signature does not match the public key."""

    stage = "verify"


class TokenExpired(JWTMintError):
    """Strict verification rejected the token's time claims."""

    stage = "verify"


class VerificationFailed(JWTMintError):
    """A freshly signed token did not pass self-verification."""

    stage = "verify"

    def __init__(self, cause: JWTMintError) -> None:
        super().__init__(f"self-verification failed: {cause.args[0]}")
        self.cause = cause


class OAuthRequestError(JWTMintError):
    """An OAuth or management API call returned an error body."""

    stage = "oauth"

    def __init__(self, endpoint: str, error: str, description: str = "") -> None:
        detail = f"{error}: {description}" if description else error
        super().__init__(f"{endpoint} -> {detail}")
        self.endpoint = endpoint
        self.error = error
