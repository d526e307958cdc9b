"""Media server discovery and connection selection."""

import logging
from typing import Any

from .consts import RESOURCES_URL_PATH, SCORE_HTTPS, SCORE_LOCAL, SCORE_RELAY
from .exceptions import InvalidResponseError, NoConnectionsError
from .models import Connection, Target
from .protocols import CredentialsProvider
from .transport import Transport

logger = logging.getLogger("plex-sdk.discovery")

DISCOVERY_PARAMS = {"includeHttps": 1, "includeRelay": 1, "includeIPv6": 1}


class ResourceDiscovery:
    """Lists registered servers on the control plane and picks the best address."""

    def __init__(self, transport: Transport):
        self.transport = transport

    async def discover(
        self, credentials_provider: CredentialsProvider | None = None
    ) -> list[Connection]:
        """Fetch every (server, address) pair the account can reach.

        Args:
            credentials_provider: Provider supplying the control-plane token.

        Returns:
            One Connection per address; servers without an access token are skipped.

        Raises:
            InvalidResponseError: If the resources payload is not a list.
            HttpError, NetworkError: From the transport.
        """
        response = await self.transport.execute(
            Target.CONTROL_PLANE,
            "GET",
            RESOURCES_URL_PATH,
            params=DISCOVERY_PARAMS,
            credentials_provider=credentials_provider,
        )
        servers = response.data
        if not isinstance(servers, list):
            raise InvalidResponseError(
                "resources_not_a_list",
                context={"payload_type": type(servers).__name__},
            )

        connections = [
            connection
            for server in servers
            for connection in self._server_connections(server)
        ]
        logger.info(
            f"Discovered {len(connections)} connections across {len(servers)} servers"
        )
        return connections

    @staticmethod
    def _server_connections(server: Any) -> list[Connection]:
        if not isinstance(server, dict):
            return []
        access_token = server.get("accessToken") or server.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            logger.debug(f"Skipping server {server.get('name')!r} without access token")
            return []
        return [
            Connection(
                base_url=address["uri"],
                access_token=access_token,
                server_metadata=server,
            )
            for address in server.get("connections") or []
            if isinstance(address, dict) and isinstance(address.get("uri"), str)
        ]

    @staticmethod
    def score(connection: Connection) -> int:
        """Higher is better: https +1, local +2, relay -5."""
        addresses = connection.server_metadata.get("connections") or []
        this = next(
            (
                a
                for a in addresses
                if isinstance(a, dict) and a.get("uri") == connection.base_url
            ),
            {},
        )
        score = 0
        if connection.base_url.startswith("https"):
            score += SCORE_HTTPS
        if this.get("local"):
            score += SCORE_LOCAL
        if this.get("relay"):
            score += SCORE_RELAY
        return score

    def choose(self, connections: list[Connection]) -> Connection:
        """Pick the highest-scoring connection; ties keep input order.

        Raises:
            NoConnectionsError: If ``connections`` is empty.
        """
        if not connections:
            raise NoConnectionsError()
        best = max(connections, key=self.score)
        logger.debug(f"Chose {best.base_url} (score {self.score(best)})")
        return best
