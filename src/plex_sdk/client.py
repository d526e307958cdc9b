"""Plex client: one object wiring config, credentials and transport together."""

import logging
from collections.abc import Callable
from typing import Any

from . import adapter, compatibility
from .auth import create_provider
from .config import Config, get_config
from .detector import VersionDetector
from .http import HttpxClient
from .models import Connection, Response, Target
from .protocols import CredentialsProvider, CredentialStore, HTTPClient
from .storage import InMemoryStore
from .transport import Transport
from .versions import Version

logger = logging.getLogger("plex-sdk.client")

FromWire = Callable[[Any, Version], Any]


class PlexClient:
    """Media server API client with authentication and version adaptation.

    Responsibilities:
    - Build the HTTP client, credential store and provider from config
    - Provide request helpers for both control plane and data plane
    - Detect the server revision and adapt requests/responses to it
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        http_client: HTTPClient | None = None,
        store: CredentialStore | None = None,
        credentials_provider: CredentialsProvider | None = None,
    ):
        """Initialize PlexClient.

        Args:
            config: Config instance. If None, uses get_config().
            http_client: HTTP client. If None, creates an HttpxClient.
            store: Credential store. If None, uses an InMemoryStore.
            credentials_provider: Provider. If None, chosen by config.auth_method.

        Raises:
            ConfigError: If the configuration lacks a client identifier.
        """
        self.config = config or get_config()
        self._owns_http_client = http_client is None
        self.http_client = http_client or HttpxClient(self.config)
        self.store = store or InMemoryStore()

        # Provider-internal calls (nonce, token exchange, discovery) pick
        # their credentials per call, so they get a provider-less transport.
        control_transport = Transport(self.http_client, self.config)
        self.credentials_provider = credentials_provider or create_provider(
            self.config, self.store, control_transport
        )
        self.transport = Transport(
            self.http_client, self.config, self.credentials_provider
        )
        self.detector = VersionDetector(self.transport)
        self._versions: dict[str, Version] = {}

        logger.info(f"Plex client created ({self.config.auth_method} auth)")

    async def request(
        self, method: str, path: str, *, target: Target = Target.DATA_PLANE, **opts
    ) -> Response:
        """Execute a call through the transport; see Transport.execute for options."""
        return await self.transport.execute(target, method, path, **opts)

    async def get(self, path: str, *, target: Target = Target.DATA_PLANE, **opts) -> Any:
        """GET ``path`` and return the decoded payload."""
        return (await self.request("GET", path, target=target, **opts)).data

    async def post(self, path: str, *, target: Target = Target.DATA_PLANE, **opts) -> Any:
        """POST to ``path`` and return the decoded payload."""
        return (await self.request("POST", path, target=target, **opts)).data

    async def connection(self) -> Connection:
        """The connection data-plane calls currently go to."""
        return await self.credentials_provider.get_connection()

    async def server_version(
        self, *, fallback: bool = True, refresh: bool = False
    ) -> Version:
        """Detect the API revision of the current server.

        The result is cached per connection base URL; pass ``refresh=True``
        to detect again.
        """
        connection = await self.connection()
        cached = self._versions.get(connection.base_url)
        if cached is not None and not refresh:
            return cached
        version = await self.detector.detect(connection, fallback=fallback)
        self._versions[connection.base_url] = version
        return version

    async def supports(self, feature: str) -> bool:
        """Whether the current server supports ``feature``."""
        return compatibility.supports(await self.server_version(), feature)

    async def fetch(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        version: Version | str | None = None,
        from_wire: FromWire | None = None,
    ) -> Any:
        """GET a logical path, adapted to the server revision.

        Args:
            path: Version-agnostic path, e.g. ``/library/onDeck``.
            params: Version-agnostic query parameters.
            version: Revision to speak. If None, the server revision is detected
                once per connection and cached.
            from_wire: Record constructor called as ``from_wire(data, version)``
                on the normalized payload.

        Returns:
            The normalized payload, or whatever ``from_wire`` builds from it.

        Raises:
            ConfigError: If ``version`` is not a supported revision.
        """
        if version is None:
            version = await self.server_version()
        response = await self.transport.execute(
            Target.DATA_PLANE, "GET", path, params=params, api_version=str(version)
        )
        version = Version.parse(str(version))
        data = adapter.adapt_response(response.data, version)
        if from_wire is not None:
            return from_wire(data, version)
        return data

    def status(self) -> dict[str, Any]:
        """Configuration summary with secrets redacted."""
        token_configured = bool(self.config.token)
        ready = bool(self.config.client_id) and (
            self.config.auth_method == "jwt"
            or (token_configured and bool(self.config.server_url))
        )
        return {
            "client_id": self.config.client_id,
            "auth_method": self.config.auth_method,
            "provider": type(self.credentials_provider).__name__,
            "token": "configured" if token_configured else "missing",
            "server_url": self.config.server_url,
            "control_plane_url": self.config.control_plane_url,
            "ready": ready,
        }

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.http_client.aclose()

    async def __aenter__(self) -> "PlexClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
