"""Configuration management."""

import logging
from functools import cache

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

from .consts import (
    API_VERSION_HEADER,
    CONTROL_PLANE_URL,
    DEFAULT_BACKOFF_BASE_MS,
    DEFAULT_RETRIES,
    PACKAGE_VERSION,
)
from .exceptions import ConfigError


class Config(BaseSettings):
    """Immutable SDK configuration, read from PLEX_* environment variables."""

    model_config = ConfigDict(
        env_prefix="PLEX_", case_sensitive=False, extra="ignore", frozen=True
    )

    # Client identity, sent as X-Plex-* headers
    client_id: str | None = Field(
        default=None, description="Unique client identifier (required for requests)"
    )
    product: str = Field(default="plex-sdk", description="Product name")
    product_version: str = Field(default=PACKAGE_VERSION, description="Product version")
    platform: str = Field(default="python", description="Client platform")
    device: str = Field(default="server", description="Device type")
    device_name: str = Field(default="plex_sdk", description="Device display name")
    model: str = Field(default="generic", description="Device model")
    pms_api_version: str = Field(
        default="1.1.1",
        pattern=r"^\d+\.\d+\.\d+$",
        description="Media server API revision requested by default",
    )

    # Endpoints and credentials
    control_plane_url: str = Field(
        default=CONTROL_PLANE_URL, description="Base URL of the control plane"
    )
    server_url: str | None = Field(
        default=None, description="Media server URL for static-token auth"
    )
    token: str | None = Field(
        default=None, repr=False, description="Long-lived token for static-token auth"
    )
    auth_method: str = Field(
        default="jwt", pattern=r"^(jwt|token)$", description="Credentials provider"
    )

    # HTTP settings
    retries: int = Field(
        default=DEFAULT_RETRIES, ge=0, le=10, description="Retry budget per call"
    )
    backoff_base_ms: int = Field(
        default=DEFAULT_BACKOFF_BASE_MS, ge=0, description="Retry backoff base in ms"
    )
    timeout_seconds: int = Field(
        default=30, gt=0, le=300, description="HTTP request timeout in seconds"
    )
    connection_pool_size: int = Field(
        default=10, gt=0, le=1000, description="Maximum pooled HTTP connections"
    )
    cache_ttl: int = Field(
        default=300, gt=0, description="Cached connection lifetime in seconds"
    )

    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )

    def require_client_id(self) -> str:
        """Return the client identifier or fail fast.

        Raises:
            ConfigError: If no client identifier is configured.
        """
        if not self.client_id:
            raise ConfigError(
                "missing_client_identifier",
                suggestions=["Set PLEX_CLIENT_ID or pass client_id to Config"],
            )
        return self.client_id

    def plex_headers(self) -> dict[str, str]:
        """Identity headers sent on every outbound call.

        Raises:
            ConfigError: If no client identifier is configured.
        """
        return {
            "X-Plex-Client-Identifier": self.require_client_id(),
            "X-Plex-Product": self.product,
            "X-Plex-Version": self.product_version,
            "X-Plex-Platform": self.platform,
            "X-Plex-Device": self.device,
            "X-Plex-Device-Name": self.device_name,
            "X-Plex-Model": self.model,
            API_VERSION_HEADER: self.pms_api_version,
        }


@cache
def get_config() -> Config:
    """Get a cached Config instance."""
    return Config()


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure logging for the host application."""
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )
    return logging.getLogger("plex-sdk")
