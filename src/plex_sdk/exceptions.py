"""plex-sdk custom exceptions.

Exception Design Principles:
1. Every failure that leaves the transport layer is a PlexError subclass
2. Each subclass maps to one error kind, so callers can branch on type or on `kind`
3. Split on what the caller can do about it:
   - Retried locally before surfacing (HttpError 429/401/498, NetworkError,
     RequestTimeoutError)
   - Immediate and non-retryable (ConfigError, CryptoError, other HttpError)
   - Protocol surprises from the remote side (InvalidResponseError, NotFoundError)
"""

from typing import Any

from .consts import AUTH_ERROR_STATUSES, RETRYABLE_STATUSES


class PlexError(Exception):
    """Base exception for all plex-sdk errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    """

    kind = "error"

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] | None = None,  # detailed list of errors (if available)
        suggestions: list[str] | None = None,  # remedial actions
        context: dict | None = None,  # additional detailed context
    ):
        """Initialize PlexError.

        Args:
            message: Primary error message for users
            errors: List of specific error details
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class ReasonError(PlexError):
    """PlexError identified by a short machine-readable reason."""

    def __init__(self, reason: str, message: str | None = None, **kwargs):
        super().__init__(message or f"{self.label}: {reason}", **kwargs)
        self.reason = reason

    label = "Error"


class HttpError(PlexError):
    """Non-2xx response that was not (or no longer) retried.

    Carries the numeric status and the raw response body.
    """

    kind = "http_error"

    def __init__(self, status: int, body: Any = b"", **kwargs):
        super().__init__(f"HTTP {status}: {body!r}", **kwargs)
        self.status = status
        self.body = body


class AuthError(ReasonError):
    """Credential acquisition failed (nonce, token exchange, JWK registration)."""

    kind = "auth_error"
    label = "Authentication failed"


class ConfigError(ReasonError):
    """Configuration errors - recoverable by user reconfiguration.

    Missing client identifier, missing token or server URL for the static
    provider, unsupported requested API version. Never retried.
    """

    kind = "config_error"
    label = "Configuration error"


class CryptoError(ReasonError):
    """Device key problems: missing keypair or signing failure. Never retried."""

    kind = "crypto_error"
    label = "Cryptography error"


class NetworkError(ReasonError):
    """Transport-level failure (connection refused, DNS, reset)."""

    kind = "network_error"
    label = "Network error"


class RequestTimeoutError(ReasonError):
    """The HTTP client gave up waiting for the server."""

    kind = "timeout_error"
    label = "Timeout"


class InvalidResponseError(ReasonError):
    """The server answered 2xx but the payload has an unexpected shape."""

    kind = "invalid_response"
    label = "Invalid response"


class NotFoundError(ReasonError):
    """A lookup produced nothing usable."""

    kind = "not_found"
    label = "Not found"


class NoConnectionsError(NotFoundError):
    """Discovery returned no usable server connection."""

    def __init__(self, **kwargs):
        super().__init__(
            "no_connections",
            suggestions=kwargs.pop(
                "suggestions",
                [
                    "Check that the account has at least one claimed server",
                    "Verify the server is online and reachable",
                ],
            ),
            **kwargs,
        )


def is_retryable(error: BaseException) -> bool:
    """Whether an error is worth another attempt (429, 5xx gateway, network, timeout)."""
    if isinstance(error, HttpError):
        return error.status in RETRYABLE_STATUSES
    return isinstance(error, (NetworkError, RequestTimeoutError))


def is_auth_error(error: BaseException) -> bool:
    """Whether an error calls for credential invalidation and a retry."""
    if isinstance(error, HttpError):
        return error.status in AUTH_ERROR_STATUSES
    return isinstance(error, AuthError)
