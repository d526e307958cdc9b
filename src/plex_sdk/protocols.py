"""Protocol definitions for dependency injection and interface contracts."""

from typing import Any, Protocol

from .models import Connection, InvalidationReason, RawResponse, Token


class HTTPClient(Protocol):
    """Protocol for the injectable HTTP client used by Transport."""

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None = None,
        **opts: Any,
    ) -> RawResponse:
        """Perform one HTTP exchange.

        Returns:
            RawResponse for any status code, 2xx or not.

        Raises:
            NetworkError: If the server could not be reached.
            RequestTimeoutError: If the call exceeded its timeout.
        """
        ...


class CredentialStore(Protocol):
    """Protocol for device key and token storage. Pure storage, no policy."""

    def get(self, key: str) -> Any | None:
        """Return the stored value or None."""
        ...

    def put(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous one."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        ...


class CredentialsProvider(Protocol):
    """Protocol for control-plane tokens and data-plane connections."""

    async def init(self) -> None:
        """Prepare provider state (e.g. device keys).

        Raises:
            AuthError: If required registration with the control plane fails.
        """
        ...

    async def get_token(self) -> Token:
        """Return a token valid beyond the refresh threshold, refreshing if needed."""
        ...

    async def refresh_token(self) -> Token:
        """Obtain a new token unconditionally."""
        ...

    async def get_connection(self) -> Connection:
        """Return a usable connection to a media server.

        Raises:
            ConfigError: If the provider cannot locate a server.
            NoConnectionsError: If discovery found nothing usable.
        """
        ...

    async def invalidate(self, reason: InvalidationReason) -> None:
        """Drop cached credentials selected by reason."""
        ...
