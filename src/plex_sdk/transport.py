"""Transport: authenticated, version-aware, retried HTTP exchanges."""

import asyncio
import json as jsonlib
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from . import adapter
from .config import Config, get_config
from .consts import (
    API_VERSION_HEADER,
    AUTH_ERROR_STATUSES,
    BACKOFF_JITTER_FACTOR,
    JSON_CONTENT_TYPE,
    MAX_BACKOFF_MS,
    RATE_LIMIT_STATUS,
    TOKEN_HEADER,
)
from .exceptions import ConfigError, HttpError, NetworkError, RequestTimeoutError
from .models import InvalidationReason, RawResponse, Response, RetryState, Target
from .protocols import CredentialsProvider, HTTPClient

logger = logging.getLogger("plex-sdk.transport")

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, base_ms: int) -> int:
    """Pre-jitter delay in ms for the 1-based retry ``attempt``."""
    return min(base_ms * 2**attempt, MAX_BACKOFF_MS)


def jittered_delay(delay_ms: float, rng: random.Random | None = None) -> float:
    """Add a uniform jitter in ``[0, 0.2 * delay_ms]``."""
    uniform = (rng or random).uniform
    return delay_ms + uniform(0, delay_ms * BACKOFF_JITTER_FACTOR)


class Transport:
    """Turns a logical call into an authenticated, retried HTTP exchange.

    Responsibilities:
    - Build the X-Plex-* header set and attach credentials per target
    - Resolve control-plane and data-plane URLs
    - Classify responses and drive backoff, retry and auth recovery
    """

    def __init__(
        self,
        http_client: HTTPClient,
        config: Config | None = None,
        credentials_provider: CredentialsProvider | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        """Initialize Transport.

        Args:
            http_client: Injected HTTP client performing the wire calls.
            config: Config instance. If None, uses get_config().
            credentials_provider: Default provider; can be overridden per call.
            sleep: Coroutine used for backoff sleeps (seconds).
            rng: Random source for jitter.

        Raises:
            ConfigError: If the configuration lacks a client identifier.
        """
        self.config = config or get_config()
        self._identity_headers = self.config.plex_headers()
        self.http_client = http_client
        self.credentials_provider = credentials_provider
        self._sleep = sleep
        self._rng = rng

    async def execute(
        self,
        target: Target,
        method: str,
        path: str,
        *,
        retries: int | None = None,
        backoff_base_ms: int | None = None,
        credentials_provider: CredentialsProvider | None = None,
        api_version: str | None = None,
        body: bytes | None = None,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        skip_auth: bool = False,
        accept: str = JSON_CONTENT_TYPE,
        timeout: float | None = None,
    ) -> Response:
        """Execute one logical call.

        Args:
            target: Control plane or data plane.
            method: HTTP method.
            path: Path relative to the target root, or an absolute URL for the
                control plane.
            retries: Retry budget override (0 disables retries).
            backoff_base_ms: Backoff base override.
            credentials_provider: Provider override for this call.
            api_version: Adapt the request to this data-plane API revision.
                The revision's recommended timeout is used unless ``timeout``
                is passed or ``timeout_seconds`` was set in config.
            body: Raw request body.
            json: JSON-serializable body; sets Content-Type.
            params: Query parameters.
            headers: Extra request headers.
            skip_auth: Send no token (nonce and token exchange endpoints).
            accept: Accept header value.
            timeout: Per-call timeout override in seconds.

        Returns:
            Response with JSON-decoded data, or raw bytes for other content types.

        Raises:
            HttpError: Non-2xx status, or 429/401/498 after the budget ran out.
            NetworkError: Transport failure after the budget ran out.
            RequestTimeoutError: Timeout after the budget ran out.
            ConfigError: Missing credentials provider or unsupported api_version.
            AuthError, CryptoError: Raised by the provider, not retried.
        """
        target = Target(target)
        retry = RetryState(
            budget=self.config.retries if retries is None else retries,
            backoff_base_ms=(
                self.config.backoff_base_ms
                if backoff_base_ms is None
                else backoff_base_ms
            ),
        )
        provider = credentials_provider or self.credentials_provider
        if provider is None and not skip_auth:
            raise ConfigError(
                "missing_credentials_provider",
                suggestions=["Pass credentials_provider or skip_auth=True"],
            )

        request_headers = {"Accept": accept, **self._identity_headers}
        if api_version is not None and target is Target.DATA_PLANE:
            adapted = adapter.adapt_request(
                {"path": path, "params": params or {}, "headers": {}}, api_version
            )
            path, params = adapted["path"], adapted["params"]
            request_headers.update(adapted["headers"])
            request_headers[API_VERSION_HEADER] = str(api_version)
            if timeout is None and "timeout_seconds" not in self.config.model_fields_set:
                timeout = adapted["timeout"]
        if headers:
            request_headers.update(headers)
        if json is not None:
            body = jsonlib.dumps(json).encode("utf-8")
            request_headers.setdefault("Content-Type", JSON_CONTENT_TYPE)

        while True:
            url, call_headers = await self._attach_auth_and_url(
                target, path, request_headers, provider, skip_auth
            )
            if params:
                url = str(httpx.URL(url).copy_merge_params(params))

            try:
                raw = await self.http_client.request(
                    method.upper(), url, call_headers, body, timeout=timeout
                )
            except (NetworkError, RequestTimeoutError) as e:
                if retry.remaining <= 0:
                    logger.warning(f"{method.upper()} {path} failed: {e.message}")
                    raise
                logger.info(f"{method.upper()} {path} failed ({e.kind}), retrying")
                await self._backoff(retry)
                continue

            if 200 <= raw.status < 300:
                logger.debug(f"{method.upper()} {path} -> {raw.status}")
                return Response(
                    status=raw.status, headers=raw.headers, data=raw.decode()
                )

            if raw.status == RATE_LIMIT_STATUS and retry.remaining > 0:
                logger.info(f"{method.upper()} {path} rate limited, backing off")
                await self._backoff(retry)
                continue

            if raw.status in AUTH_ERROR_STATUSES and retry.remaining > 0 and not skip_auth:
                logger.info(
                    f"{method.upper()} {path} -> {raw.status}, invalidating credentials"
                )
                await provider.invalidate(self._invalidation_reason(target))
                await self._backoff(retry)
                continue

            raise self._http_error(raw, url)

    async def _attach_auth_and_url(
        self,
        target: Target,
        path: str,
        headers: dict[str, str],
        provider: CredentialsProvider | None,
        skip_auth: bool,
    ) -> tuple[str, dict[str, str]]:
        headers = dict(headers)
        if target is Target.CONTROL_PLANE:
            url = self._control_plane_url(path)
            if not skip_auth:
                token = await provider.get_token()
                headers[TOKEN_HEADER] = token.value
            return url, headers

        if path.startswith("http") and (skip_auth or provider is None):
            return path, headers
        if provider is None:
            raise ConfigError(
                "missing_credentials_provider",
                suggestions=["Data-plane calls need a provider or an absolute URL"],
            )
        connection = await provider.get_connection()
        if not skip_auth:
            headers[TOKEN_HEADER] = connection.access_token
        return connection.base_url.rstrip("/") + path, headers

    def _control_plane_url(self, path_or_url: str) -> str:
        if path_or_url.startswith("http"):
            return path_or_url
        return self.config.control_plane_url.rstrip("/") + path_or_url

    @staticmethod
    def _invalidation_reason(target: Target) -> InvalidationReason:
        if target is Target.CONTROL_PLANE:
            return InvalidationReason.CONTROL_PLANE_ERROR
        return InvalidationReason.DATA_PLANE_ERROR

    async def _backoff(self, retry: RetryState) -> None:
        attempt = retry.consume()
        delay_ms = jittered_delay(
            backoff_delay(attempt, retry.backoff_base_ms), self._rng
        )
        logger.debug(f"Retry {attempt}/{retry.budget} in {delay_ms:.0f}ms")
        await self._sleep(delay_ms / 1000)

    @staticmethod
    def _http_error(raw: RawResponse, url: str) -> HttpError:
        status = raw.status
        if status in AUTH_ERROR_STATUSES:
            suggestions = ["Verify your token or re-register the device key"]
        elif status == RATE_LIMIT_STATUS:
            suggestions = ["Reduce request rate or raise the retry budget"]
        elif status == 404:
            suggestions = ["Check the endpoint path and server API version"]
        else:
            suggestions = []
        return HttpError(
            status,
            raw.body,
            suggestions=suggestions,
            context={"url": url.split("?")[0]},
        )
