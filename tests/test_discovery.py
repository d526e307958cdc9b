"""Tests for server discovery and connection scoring"""

import pytest
from conftest import CONTROL_PLANE, json_response

from plex_sdk.discovery import ResourceDiscovery
from plex_sdk.exceptions import InvalidResponseError, NoConnectionsError
from plex_sdk.models import Connection
from plex_sdk.transport import Transport

RESOURCES_URL = f"{CONTROL_PLANE}/api/v2/resources"


def connection(uri, **flags):
    """Connection whose metadata lists a single address with the given flags"""
    return Connection(
        base_url=uri,
        access_token="t",
        server_metadata={"connections": [{"uri": uri, **flags}]},
    )


@pytest.fixture
def discovery(fake_http, config, mock_provider, no_sleep):
    return ResourceDiscovery(Transport(fake_http, config, mock_provider, sleep=no_sleep))


class TestDiscover:
    """Test resource listing"""

    @pytest.mark.asyncio
    async def test_flattens_servers_and_connections(self, discovery, fake_http):
        """Every address of every server with a token becomes a Connection"""
        servers = [
            {
                "name": "Office",
                "accessToken": "office-token",
                "connections": [
                    {"uri": "http://192.168.1.2:32400", "local": True},
                    {"uri": "https://1-2-3-4.plex.direct:32400"},
                ],
            },
            {
                "name": "Cabin",
                "access_token": "cabin-token",
                "connections": [{"uri": "https://relay.plex.direct", "relay": True}],
            },
            {"name": "Shared without token", "connections": [{"uri": "http://x"}]},
            "garbage",
        ]
        fake_http.route("GET", RESOURCES_URL, json_response(200, servers))

        connections = await discovery.discover()

        assert [c.base_url for c in connections] == [
            "http://192.168.1.2:32400",
            "https://1-2-3-4.plex.direct:32400",
            "https://relay.plex.direct",
        ]
        assert [c.access_token for c in connections] == [
            "office-token",
            "office-token",
            "cabin-token",
        ]
        assert connections[0].server_metadata["name"] == "Office"

    @pytest.mark.asyncio
    async def test_request_shape(self, discovery, fake_http):
        """Discovery asks for https, relay and IPv6 addresses with the token"""
        fake_http.route("GET", RESOURCES_URL, json_response(200, []))

        assert await discovery.discover() == []

        call = fake_http.calls[0]
        assert call.params == {"includeHttps": "1", "includeRelay": "1", "includeIPv6": "1"}
        assert call.headers["X-Plex-Token"] == "cp-token"

    @pytest.mark.asyncio
    async def test_payload_not_a_list(self, discovery, fake_http):
        """A non-list payload is an invalid response"""
        fake_http.route("GET", RESOURCES_URL, json_response(200, {"servers": []}))

        with pytest.raises(InvalidResponseError) as exc_info:
            await discovery.discover()

        assert exc_info.value.reason == "resources_not_a_list"
        assert exc_info.value.context["payload_type"] == "dict"


class TestScoring:
    """Test connection scoring and selection"""

    @pytest.mark.parametrize(
        "uri,flags,expected",
        [
            ("http://10.0.0.5:32400", {}, 0),
            ("https://a.plex.direct:32400", {}, 1),
            ("http://10.0.0.5:32400", {"local": True}, 2),
            ("https://10-0-0-5.plex.direct:32400", {"local": True}, 3),
            ("https://relay.plex.direct", {"relay": True}, -4),
            ("http://relay", {"relay": True, "local": False}, -5),
        ],
    )
    def test_score(self, uri, flags, expected):
        """https +1, local +2, relay -5"""
        assert ResourceDiscovery.score(connection(uri, **flags)) == expected

    def test_local_http_beats_remote_https_and_relay(self, discovery):
        """A local plain-http address outranks remote https and relays"""
        local = connection("http://192.168.1.2:32400", local=True)
        remote = connection("https://remote.plex.direct:32400")
        relay = connection("https://relay.plex.direct", relay=True)

        assert discovery.choose([relay, remote, local]) is local

    def test_ties_keep_first(self, discovery):
        """Among equal scores the first connection wins"""
        first = connection("https://a.plex.direct")
        second = connection("https://b.plex.direct")

        assert discovery.choose([first, second]) is first

    def test_empty_raises(self, discovery):
        """Nothing to choose from raises NoConnectionsError"""
        with pytest.raises(NoConnectionsError) as exc_info:
            discovery.choose([])

        assert exc_info.value.reason == "no_connections"
        assert exc_info.value.suggestions
