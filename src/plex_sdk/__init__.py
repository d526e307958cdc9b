"""plex-sdk Package

Transport, credential lifecycle and API version adaptation for the Plex
media server API.
"""

from .auth import JWTProvider, StaticTokenProvider, create_provider
from .client import PlexClient
from .compatibility import Feature, compatibility_report, deprecation_info, supports
from .config import Config, get_config, setup_logging
from .consts import PACKAGE_VERSION
from .detector import VersionDetector
from .discovery import ResourceDiscovery
from .exceptions import (
    AuthError,
    ConfigError,
    CryptoError,
    HttpError,
    InvalidResponseError,
    NetworkError,
    NoConnectionsError,
    NotFoundError,
    PlexError,
    RequestTimeoutError,
    is_auth_error,
    is_retryable,
)
from .http import HttpxClient
from .models import Connection, InvalidationReason, Response, Target, Token
from .negotiator import Strategy, negotiate
from .storage import InMemoryStore, StoreKey
from .transport import Transport
from .versions import Version

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "get_config",
    "setup_logging",
    "create_provider",
    "supports",
    "deprecation_info",
    "compatibility_report",
    "negotiate",
    "is_retryable",
    "is_auth_error",
    "Config",
    "PlexClient",
    "Transport",
    "HttpxClient",
    "JWTProvider",
    "StaticTokenProvider",
    "ResourceDiscovery",
    "VersionDetector",
    "InMemoryStore",
    "StoreKey",
    "Connection",
    "Token",
    "Response",
    "Target",
    "InvalidationReason",
    "Feature",
    "Strategy",
    "Version",
    "PlexError",
    "HttpError",
    "AuthError",
    "ConfigError",
    "CryptoError",
    "NetworkError",
    "RequestTimeoutError",
    "InvalidResponseError",
    "NotFoundError",
    "NoConnectionsError",
]
