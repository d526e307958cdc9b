"""Tests for the httpx-backed HTTP client"""

import httpx
import pytest

from plex_sdk.exceptions import NetworkError, RequestTimeoutError
from plex_sdk.http import HttpxClient


def client_for(handler, config):
    """HttpxClient over an httpx.MockTransport"""
    return HttpxClient(
        config, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
    )


class TestHttpxClient:
    """Test HttpxClient request handling"""

    @pytest.mark.asyncio
    async def test_request_returns_raw_response(self, config):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["token"] = request.headers["X-Plex-Token"]
            seen["body"] = request.content
            return httpx.Response(
                201,
                json={"ok": True},
                headers={"X-Plex-Pms-Api-Version": "1.2.0"},
            )

        client = client_for(handler, config)
        raw = await client.request(
            "post",
            "http://pms.local:32400/playlists?type=audio",
            {"X-Plex-Token": "t"},
            b'{"title": "Mix"}',
        )
        await client.aclose()

        assert seen == {
            "method": "POST",
            "url": "http://pms.local:32400/playlists?type=audio",
            "token": "t",
            "body": b'{"title": "Mix"}',
        }
        assert raw.status == 201
        assert raw.header("x-plex-pms-api-version") == "1.2.0"
        assert raw.decode() == {"ok": True}

    @pytest.mark.asyncio
    async def test_error_statuses_are_data(self, config):
        client = client_for(lambda request: httpx.Response(503, content=b"busy"), config)

        raw = await client.request("GET", "http://pms.local/", {})

        assert raw.status == 503
        assert raw.body == b"busy"

    @pytest.mark.asyncio
    async def test_connect_error(self, config):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = client_for(handler, config)

        with pytest.raises(NetworkError) as exc_info:
            await client.request("GET", "http://pms.local/", {})

        assert exc_info.value.reason == "ConnectError"
        assert exc_info.value.context["url"] == "http://pms.local/"
        assert "connection refused" in exc_info.value.errors[0]

    @pytest.mark.asyncio
    async def test_timeout(self, config):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = client_for(handler, config)

        with pytest.raises(RequestTimeoutError) as exc_info:
            await client.request("GET", "http://pms.local/", {}, timeout=1)

        assert exc_info.value.reason == "ReadTimeout"

    @pytest.mark.asyncio
    async def test_default_client_from_config(self, config):
        client = HttpxClient(config)

        assert client._http_client.timeout.read == config.timeout_seconds
        assert client._http_client.headers["User-Agent"].startswith("plex-sdk/")
        await client.aclose()
