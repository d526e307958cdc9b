"""High-value constants for the plex-sdk package."""

# Package metadata
PACKAGE_VERSION = "0.1.0"
SDK_NAME = "plex-sdk"
USER_AGENT = f"{SDK_NAME}/{PACKAGE_VERSION}"

# External API contract consts
CONTROL_PLANE_URL = "https://plex.tv"
NONCE_URL_PATH = "/api/v2/auth/nonce"
JWK_URL_PATH = "/api/v2/auth/jwk"
TOKEN_URL_PATH = "/api/v2/auth/token"
RESOURCES_URL_PATH = "/api/v2/resources"
ROOT_URL_PATH = "/"
IDENTITY_URL_PATH = "/identity"

TOKEN_HEADER = "X-Plex-Token"
API_VERSION_HEADER = "X-Plex-Pms-Api-Version"
FEATURES_HEADER = "X-Plex-Features"
JSON_CONTENT_TYPE = "application/json"

# Business logic consts
TOKEN_REFRESH_THRESHOLD_SECONDS = 3600  # refresh 1h early
DEVICE_JWT_TTL_SECONDS = 300
DEVICE_JWT_SCOPE = "username,email,friendly_name"
DEVICE_JWT_AUDIENCE = "plex.tv"

DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_BASE_MS = 200
MAX_BACKOFF_MS = 30_000
BACKOFF_JITTER_FACTOR = 0.2

AUTH_ERROR_STATUSES = frozenset({401, 498})
RATE_LIMIT_STATUS = 429
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

# Connection scoring weights (higher wins)
SCORE_HTTPS = 1
SCORE_LOCAL = 2
SCORE_RELAY = -5
