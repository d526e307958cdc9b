"""Credentials providers: JWT device flow and static token."""

import asyncio
import logging
import time
from collections.abc import Callable

from .config import Config
from .consts import (
    DEVICE_JWT_AUDIENCE,
    DEVICE_JWT_SCOPE,
    DEVICE_JWT_TTL_SECONDS,
    JWK_URL_PATH,
    NONCE_URL_PATH,
    TOKEN_REFRESH_THRESHOLD_SECONDS,
    TOKEN_URL_PATH,
)
from .crypto import extract_exp, generate_keypair, sign_jwt
from .discovery import ResourceDiscovery
from .exceptions import (
    AuthError,
    ConfigError,
    CryptoError,
    HttpError,
    InvalidResponseError,
    NetworkError,
    RequestTimeoutError,
)
from .models import Connection, DeviceKeypair, InvalidationReason, Target, Token
from .protocols import CredentialStore, CredentialsProvider
from .storage import StoreKey
from .transport import Transport

logger = logging.getLogger("plex-sdk.auth")

# Failures of a control-plane exchange that get reported as AuthError
_EXCHANGE_ERRORS = (HttpError, NetworkError, RequestTimeoutError, InvalidResponseError)


class StaticTokenProvider:
    """Pre-provisioned long-lived token.

    The token authenticates control-plane calls as-is and doubles as the
    access token for the configured server.
    """

    def __init__(self, token: str | None, *, server_url: str | None = None):
        self._token = token
        self.server_url = server_url

    async def init(self) -> None:
        return None

    async def get_token(self) -> Token:
        """Return the configured token with no expiry.

        Raises:
            ConfigError: If no token is configured.
        """
        if not self._token:
            raise ConfigError(
                "missing_token",
                suggestions=["Set PLEX_TOKEN or pass a token to the provider"],
            )
        return Token(value=self._token, expires_at=None)

    async def refresh_token(self) -> Token:
        return await self.get_token()

    async def get_connection(self) -> Connection:
        """Connection to the explicitly configured server.

        Raises:
            ConfigError: If no token or no server URL is configured.
        """
        token = await self.get_token()
        if not self.server_url:
            raise ConfigError(
                "missing_server_url",
                suggestions=["Set PLEX_SERVER_URL or pass server_url"],
            )
        return Connection(
            base_url=self.server_url,
            access_token=token.value,
            server_metadata={"url": self.server_url},
        )

    async def invalidate(self, reason: InvalidationReason) -> None:
        return None


class JWTProvider:
    """Device-key JWT credentials provider.

    Lifecycle: NoKeypair -> KeypairReady -> TokenCached(valid) -> TokenCached(stale).

    - Generates an Ed25519 device keypair on first use and registers its
      public JWK when a bootstrap token is available
    - Obtains a nonce, signs a short-lived device JWT and exchanges it for a
      control-plane token, cached with its expiry
    - Discovers servers with that token and picks the best connection
    """

    def __init__(
        self,
        config: Config,
        store: CredentialStore,
        transport: Transport,
        *,
        bootstrap_token: str | None = None,
        discovery: ResourceDiscovery | None = None,
        cache_connection: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize JWTProvider.

        Args:
            config: Config instance; provides the client identifier (JWT issuer).
            store: Credential store for the keypair, token and connection.
            transport: Transport used for control-plane calls.
            bootstrap_token: Existing token authorizing JWK registration.
            discovery: Server discovery. If None, built on ``transport``.
            cache_connection: Keep the chosen connection for ``config.cache_ttl``.
            clock: Source of epoch seconds.
        """
        self.config = config
        self.store = store
        self.transport = transport
        self.bootstrap_token = bootstrap_token
        self.discovery = discovery or ResourceDiscovery(transport)
        self.cache_connection = cache_connection
        self._clock = clock
        self._initialized = False
        self._init_lock = asyncio.Lock()
        self._refresh_lock = asyncio.Lock()

    async def init(self) -> None:
        """Ensure a device keypair exists, generating and registering one if not.

        Raises:
            AuthError: If JWK registration is attempted and fails.
        """
        if self._initialized:
            return
        async with self._init_lock:
            if self._initialized:
                return
            if self.store.get(StoreKey.DEVICE_KEYPAIR) is None:
                keypair = generate_keypair()
                await self._register_jwk(keypair)
                self.store.put(StoreKey.DEVICE_KEYPAIR, keypair)
                logger.info("Device keypair ready")
            self._initialized = True

    async def get_token(self) -> Token:
        """Return the cached token unless it is within the refresh threshold.

        Raises:
            AuthError: If nonce retrieval or token exchange fails.
            CryptoError: If the device keypair is missing or signing fails.
        """
        await self.init()
        cached = self._cached_token()
        if cached is not None and self._is_fresh(cached):
            return cached

        async with self._refresh_lock:
            cached = self._cached_token()
            if cached is not None and self._is_fresh(cached):
                return cached
            return await self._refresh()

    async def refresh_token(self) -> Token:
        """Exchange a new device JWT for a token, ignoring the cache."""
        await self.init()
        async with self._refresh_lock:
            return await self._refresh()

    async def get_connection(self) -> Connection:
        """Discover servers with a valid token and choose the best connection.

        Raises:
            NoConnectionsError: If discovery yields nothing usable.
        """
        if self.cache_connection:
            entry = self.store.get(StoreKey.CONNECTION)
            if entry and self._clock() - entry["stored_at"] < self.config.cache_ttl:
                return entry["connection"]

        await self.get_token()
        connections = await self.discovery.discover(credentials_provider=self)
        connection = self.discovery.choose(connections)

        if self.cache_connection:
            self.store.put(
                StoreKey.CONNECTION,
                {"connection": connection, "stored_at": self._clock()},
            )
        return connection

    async def invalidate(self, reason: InvalidationReason) -> None:
        """Drop cached state selected by ``reason``; the keypair always survives."""
        if reason == InvalidationReason.CONTROL_PLANE_ERROR:
            logger.info("Dropping cached control-plane token")
            self.store.delete(StoreKey.CONTROL_PLANE_TOKEN)
            self.store.delete(StoreKey.CONTROL_PLANE_TOKEN_EXP)
        elif reason == InvalidationReason.DATA_PLANE_ERROR and self.cache_connection:
            logger.info("Dropping cached server connection")
            self.store.delete(StoreKey.CONNECTION)

    def _cached_token(self) -> Token | None:
        value = self.store.get(StoreKey.CONTROL_PLANE_TOKEN)
        if value is None:
            return None
        return Token(
            value=value, expires_at=self.store.get(StoreKey.CONTROL_PLANE_TOKEN_EXP)
        )

    def _is_fresh(self, token: Token) -> bool:
        if token.expires_at is None:
            return True
        return self._clock() + TOKEN_REFRESH_THRESHOLD_SECONDS < token.expires_at

    async def _refresh(self) -> Token:
        logger.debug("Refreshing control-plane token")
        nonce = await self._get_nonce()
        device_jwt = self._create_device_jwt(nonce)
        token = await self._exchange(device_jwt)

        self.store.put(StoreKey.CONTROL_PLANE_TOKEN, token.value)
        if token.expires_at is None:
            self.store.delete(StoreKey.CONTROL_PLANE_TOKEN_EXP)
        else:
            self.store.put(StoreKey.CONTROL_PLANE_TOKEN_EXP, token.expires_at)
        logger.info("Control-plane token refreshed")
        return token

    async def _register_jwk(self, keypair: DeviceKeypair) -> None:
        if not self.bootstrap_token:
            logger.info("No bootstrap token, skipping device key registration")
            return
        try:
            await self.transport.execute(
                Target.CONTROL_PLANE,
                "POST",
                JWK_URL_PATH,
                json={"jwk": keypair.public_jwk},
                credentials_provider=StaticTokenProvider(self.bootstrap_token),
            )
        except _EXCHANGE_ERRORS as e:
            raise AuthError(
                "jwk_registration_failed",
                errors=[e.message],
                suggestions=["Check that the bootstrap token is valid"],
            ) from e
        logger.info("Registered device key with the control plane")

    async def _get_nonce(self) -> str:
        try:
            response = await self.transport.execute(
                Target.CONTROL_PLANE, "GET", NONCE_URL_PATH, skip_auth=True
            )
        except _EXCHANGE_ERRORS as e:
            raise AuthError("nonce_failed", errors=[e.message]) from e

        data = response.data
        nonce = data.get("nonce") if isinstance(data, dict) else None
        if not isinstance(nonce, str) or not nonce:
            raise AuthError("nonce_failed", errors=["Response has no nonce"])
        return nonce

    def _create_device_jwt(self, nonce: str) -> str:
        keypair = self.store.get(StoreKey.DEVICE_KEYPAIR)
        if keypair is None:
            raise CryptoError(
                "no_device_keypair",
                suggestions=["Create a new provider to generate and register a key"],
            )
        now = int(self._clock())
        payload = {
            "nonce": nonce,
            "scope": DEVICE_JWT_SCOPE,
            "aud": DEVICE_JWT_AUDIENCE,
            "iss": self.config.require_client_id(),
            "iat": now,
            "exp": now + DEVICE_JWT_TTL_SECONDS,
        }
        return sign_jwt(payload, keypair)

    async def _exchange(self, device_jwt: str) -> Token:
        try:
            response = await self.transport.execute(
                Target.CONTROL_PLANE,
                "POST",
                TOKEN_URL_PATH,
                json={"jwt": device_jwt},
                skip_auth=True,
            )
        except _EXCHANGE_ERRORS as e:
            raise AuthError("token_exchange_failed", errors=[e.message]) from e

        data = response.data
        value = data.get("auth_token") if isinstance(data, dict) else None
        if not isinstance(value, str) or not value:
            raise AuthError(
                "token_exchange_failed", errors=["Response has no auth_token"]
            )
        return Token(value=value, expires_at=extract_exp(value))


def create_provider(
    config: Config, store: CredentialStore, transport: Transport
) -> CredentialsProvider:
    """Build the provider selected by ``config.auth_method``."""
    if config.auth_method == "token":
        return StaticTokenProvider(config.token, server_url=config.server_url)
    return JWTProvider(config, store, transport, bootstrap_token=config.token)
