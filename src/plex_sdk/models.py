import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .consts import JSON_CONTENT_TYPE

# =============================================================================
# TARGETS AND REASONS
# =============================================================================


class Target(StrEnum):
    """Which side of the API a call is addressed to."""

    CONTROL_PLANE = "control_plane"
    DATA_PLANE = "data_plane"


class InvalidationReason(StrEnum):
    """Why a credentials provider is asked to drop cached state."""

    CONTROL_PLANE_ERROR = "control_plane_error"
    DATA_PLANE_ERROR = "data_plane_error"


# =============================================================================
# CREDENTIAL MODELS
# =============================================================================
# Values handed out by credentials providers and kept in the credential store.


class Connection(BaseModel):
    """A resolved, usable (address, token) pair for one media server."""

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(..., description="Root URL of the media server")
    access_token: str = Field(..., repr=False, description="Per-server access token")
    server_metadata: dict[str, Any] = Field(
        default_factory=dict, description="Opaque server record from discovery"
    )


class Token(BaseModel):
    """Control-plane token with an optional absolute expiry (epoch seconds)."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., repr=False, description="Bearer token")
    expires_at: float | None = Field(
        None, description="Expiry as epoch seconds; None means long-lived"
    )


class DeviceKeypair(BaseModel):
    """Ed25519 device identity. The private half never leaves the store."""

    model_config = ConfigDict(frozen=True)

    private_key: bytes = Field(..., repr=False, description="32-byte raw secret")
    public_jwk: dict[str, str] = Field(..., description="Public key as a JWK")


class RetryState(BaseModel):
    """Retry bookkeeping for one logical call."""

    attempts_used: int = 0
    budget: int = Field(..., ge=0)
    backoff_base_ms: int = Field(..., ge=0)

    @property
    def remaining(self) -> int:
        return self.budget - self.attempts_used

    def consume(self) -> int:
        """Use one retry and return its 1-based attempt number."""
        self.attempts_used += 1
        return self.attempts_used


# =============================================================================
# WIRE MODELS
# =============================================================================


def _find_header(headers: list[tuple[str, str]], name: str) -> str | None:
    wanted = name.lower()
    for key, value in headers:
        if key.lower() == wanted:
            return value
    return None


class RawResponse(BaseModel):
    """What an HTTP client returns: status, headers and undecoded body."""

    status: int
    headers: list[tuple[str, str]] = Field(default_factory=list)
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return _find_header(self.headers, name)

    def decode(self) -> Any:
        """JSON-decode the body when the content type says so, else return raw bytes."""
        content_type = self.header("content-type") or ""
        if JSON_CONTENT_TYPE not in content_type:
            return self.body
        try:
            return json.loads(self.body)
        except ValueError:
            return self.body


class Response(BaseModel):
    """Successful transport result with the decoded payload."""

    status: int
    headers: list[tuple[str, str]] = Field(default_factory=list)
    data: Any = None

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return _find_header(self.headers, name)
