"""Automatic detection of the media server API revision."""

import logging
from typing import Any

from .auth import StaticTokenProvider
from .consts import API_VERSION_HEADER, IDENTITY_URL_PATH, ROOT_URL_PATH
from .exceptions import NotFoundError, PlexError
from .models import Connection, Response, Target
from .transport import Transport
from .versions import (
    DEFAULT_VERSION,
    SUPPORTED_VERSIONS,
    V1_1_1,
    V1_2_0,
    V1_3_0,
    Version,
    closest_supported,
    try_parse,
)

logger = logging.getLogger("plex-sdk.detector")

# Probed in order; the first endpoint that answers 2xx decides the version.
FEATURE_PROBES: tuple[tuple[str, Version], ...] = (
    ("/butler", V1_3_0),
    ("/hubs", V1_2_0),
    ("/library/sections", V1_1_1),
)


class VersionDetector:
    """Determine which API revision a connection speaks.

    Strategy chain, first success wins:
    1. ``X-Plex-Pms-Api-Version`` header on the root endpoint
    2. Same header, or a version field in the body, on the identity endpoint
    3. Feature probing against FEATURE_PROBES
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    async def detect(self, connection: Connection, *, fallback: bool = True) -> Version:
        """Detect the API revision of ``connection``.

        Args:
            connection: Server to inspect.
            fallback: Return DEFAULT_VERSION instead of raising when all
                strategies fail.

        Raises:
            NotFoundError: If detection failed and ``fallback`` is False.
        """
        for strategy in (self._from_root, self._from_identity, self._from_probes):
            version = await strategy(connection)
            if version is not None:
                logger.info(f"{connection.base_url} speaks API {version}")
                return version

        if fallback:
            logger.warning(
                f"Version detection failed for {connection.base_url}, "
                f"assuming {DEFAULT_VERSION}"
            )
            return DEFAULT_VERSION
        raise NotFoundError(
            "version_detection_failed",
            suggestions=["Check that the server is reachable and the token is valid"],
            context={"base_url": connection.base_url},
        )

    async def detect_many(
        self, connections: list[Connection], *, fallback: bool = True
    ) -> Version:
        """Lowest revision across ``connections``, i.e. the common denominator.

        Raises:
            NotFoundError: If no connection yields a version.
        """
        versions = []
        for connection in connections:
            try:
                versions.append(await self.detect(connection, fallback=fallback))
            except NotFoundError:
                continue
        if not versions:
            raise NotFoundError("no_versions_detected")
        return min(versions)

    async def _get(self, connection: Connection, path: str) -> Response | None:
        try:
            return await self.transport.execute(
                Target.DATA_PLANE,
                "GET",
                path,
                retries=0,
                credentials_provider=StaticTokenProvider(
                    connection.access_token, server_url=connection.base_url
                ),
            )
        except PlexError as e:
            logger.debug(f"{path} on {connection.base_url} failed: {e.message}")
            return None

    async def _from_root(self, connection: Connection) -> Version | None:
        response = await self._get(connection, ROOT_URL_PATH)
        if response is None:
            return None
        return _snap(response.header(API_VERSION_HEADER))

    async def _from_identity(self, connection: Connection) -> Version | None:
        response = await self._get(connection, IDENTITY_URL_PATH)
        if response is None:
            return None
        return _snap(response.header(API_VERSION_HEADER)) or _snap(
            _body_version(response.data)
        )

    async def _from_probes(self, connection: Connection) -> Version | None:
        for path, version in FEATURE_PROBES:
            if await self._get(connection, path) is not None:
                logger.debug(f"Probe {path} succeeded, implying {version}")
                return version
        return None


def _body_version(body: Any) -> Any:
    if not isinstance(body, dict):
        return None
    container = body.get("MediaContainer")
    if not isinstance(container, dict):
        container = {}
    return (
        body.get("version")
        or body.get("Version")
        or container.get("version")
        or container.get("Version")
    )


def _snap(value: Any) -> Version | None:
    """Parse a reported version and snap it onto the supported list."""
    parsed = try_parse(value)
    if parsed is None:
        return None
    if parsed in SUPPORTED_VERSIONS:
        return parsed
    snapped = closest_supported(parsed)
    logger.debug(f"Snapped reported version {parsed} to {snapped}")
    return snapped
