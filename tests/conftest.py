"""Pytest configuration and shared fixtures"""

import json
import os
from typing import Any, NamedTuple
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from plex_sdk.config import Config
from plex_sdk.models import Connection, RawResponse, Token
from plex_sdk.storage import InMemoryStore

# Configure pytest-asyncio
pytest_plugins = ("pytest_asyncio",)

CONTROL_PLANE = "https://plex.tv"
SERVER_URL = "http://10.0.0.5:32400"


def json_response(status: int = 200, data: Any = None, headers=None) -> RawResponse:
    """RawResponse carrying a JSON body"""
    return RawResponse(
        status=status,
        headers=[("Content-Type", "application/json"), *(headers or [])],
        body=json.dumps(data if data is not None else {}).encode(),
    )


def raw_response(status: int = 200, body: bytes = b"", headers=None) -> RawResponse:
    """RawResponse with an arbitrary body"""
    return RawResponse(status=status, headers=list(headers or []), body=body)


class Call(NamedTuple):
    method: str
    url: str
    headers: dict
    body: bytes | None
    opts: dict

    @property
    def path(self) -> str:
        return httpx.URL(self.url).path

    @property
    def params(self) -> dict:
        return dict(httpx.URL(self.url).params)

    def json(self) -> Any:
        return json.loads(self.body)


class FakeHTTPClient:
    """Scripted HTTPClient that records every call.

    Routes map ``(METHOD, url without query)`` to a response, an exception,
    or a list of them consumed in order (the last one repeats). Unrouted
    calls answer 404.
    """

    def __init__(self, routes: dict | None = None):
        self.routes = {key: self._as_list(value) for key, value in (routes or {}).items()}
        self.calls: list[Call] = []

    @staticmethod
    def _as_list(value):
        return list(value) if isinstance(value, list) else [value]

    def route(self, method: str, url: str, *responses):
        self.routes[(method, url)] = list(responses)

    async def request(self, method, url, headers, body=None, **opts):
        self.calls.append(Call(method, url, dict(headers), body, opts))
        queue = self.routes.get((method, url.split("?")[0]))
        if not queue:
            return raw_response(404, b"not found")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def calls_to(self, path: str) -> list[Call]:
        return [call for call in self.calls if call.path == path]


@pytest.fixture
def fake_http():
    """Empty scripted HTTP client"""
    return FakeHTTPClient()


@pytest.fixture
def config():
    """Config with a client identifier and fast retries"""
    return Config(
        client_id="test-client",
        control_plane_url=CONTROL_PLANE,
        retries=3,
        backoff_base_ms=100,
    )


@pytest.fixture
def store():
    """Fresh in-memory credential store"""
    return InMemoryStore()


@pytest.fixture
def no_sleep():
    """Backoff sleep that returns immediately and records its arguments"""
    return AsyncMock(return_value=None)


@pytest.fixture
def mock_provider():
    """Mock credentials provider with fixed token and connection"""
    provider = Mock()
    provider.init = AsyncMock(return_value=None)
    provider.get_token = AsyncMock(return_value=Token(value="cp-token"))
    provider.refresh_token = AsyncMock(return_value=Token(value="cp-token"))
    provider.get_connection = AsyncMock(
        return_value=Connection(base_url=SERVER_URL, access_token="pms-token")
    )
    provider.invalidate = AsyncMock(return_value=None)
    return provider


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears PLEX_* environment variables.

    This ensures Config tests see the true defaults without interference
    from environment variables that might be set in the user's shell.
    """
    plex_vars = {
        key: value for key, value in os.environ.items() if key.startswith("PLEX_")
    }

    for key in plex_vars:
        os.environ.pop(key, None)

    try:
        yield
    finally:
        for key in [k for k in os.environ if k.startswith("PLEX_")]:
            os.environ.pop(key, None)
        for key, value in plex_vars.items():
            os.environ[key] = value


@pytest.fixture
def clean_config(clean_env):
    """Fixture that provides a Config instance with clean environment."""
    return Config()
