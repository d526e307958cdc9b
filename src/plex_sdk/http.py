"""httpx-backed implementation of the HTTPClient protocol."""

import logging
from typing import Any

import httpx

from .config import Config, get_config
from .consts import USER_AGENT
from .exceptions import NetworkError, RequestTimeoutError
from .models import RawResponse

logger = logging.getLogger("plex-sdk.http")


class HttpxClient:
    """HTTP client wrapping a shared httpx.AsyncClient.

    Responsibilities:
    - Perform one HTTP exchange per call, returning every status as data
    - Translate httpx transport failures into NetworkError / RequestTimeoutError
    """

    def __init__(
        self,
        config: Config | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize HttpxClient.

        Args:
            config: Config instance. If None, uses get_config().
            http_client: httpx client. If None, creates one sized from config.
        """
        self.config = config or get_config()
        self._http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=self.config.timeout_seconds,
            limits=httpx.Limits(max_connections=self.config.connection_pool_size),
            follow_redirects=True,
        )

    async def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None = None,
        **opts: Any,
    ) -> RawResponse:
        """Perform one HTTP exchange.

        Args:
            method: HTTP method.
            url: Absolute URL.
            headers: Request headers.
            body: Raw request body.
            **opts: ``timeout`` (seconds) overrides the client timeout.

        Raises:
            RequestTimeoutError: On connect/read/write/pool timeouts.
            NetworkError: For other transport failures.
        """
        kwargs = {}
        if opts.get("timeout") is not None:
            kwargs["timeout"] = opts["timeout"]

        try:
            response = await self._http_client.request(
                method.upper(), url, headers=headers, content=body, **kwargs
            )
        except httpx.TimeoutException as e:
            logger.debug(f"{method.upper()} {url} timed out")
            raise RequestTimeoutError(
                type(e).__name__, context={"url": url}
            ) from e
        except httpx.RequestError as e:
            logger.debug(f"{method.upper()} {url} failed: {e}")
            raise NetworkError(
                type(e).__name__,
                errors=[str(e)],
                suggestions=[
                    "Check your network connection",
                    "Verify the server URL is correct",
                ],
                context={"url": url},
            ) from e

        return RawResponse(
            status=response.status_code,
            headers=list(response.headers.items()),
            body=response.content,
        )

    async def aclose(self) -> None:
        await self._http_client.aclose()
