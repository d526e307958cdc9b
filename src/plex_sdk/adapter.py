"""Version-specific request and response adaptation.

Translates between the logical, version-agnostic request/response shape used
by callers and the wire shape a given server revision speaks. Everything here
is pure: no I/O, and malformed payloads are returned unchanged instead of
raising.
"""

import logging
from collections.abc import Callable
from typing import Any, Literal

from .consts import FEATURES_HEADER
from .exceptions import ConfigError
from .versions import SUPPORTED_VERSIONS, V1_1_1, V1_2_0, V1_3_0, Version, try_parse

logger = logging.getLogger("plex-sdk.adapter")

# logical path -> (minimum version, wire path)
ENDPOINT_MOVES: dict[str, tuple[Version, str]] = {
    "/library/onDeck": (V1_2_0, "/hubs/home/onDeck"),
    "/search": (V1_2_0, "/hubs/search"),
    "/butler/tasks": (V1_3_0, "/butler/v2/tasks"),
}

# Parameter rules per wire endpoint, applied in order once the minimum is met.
# ("rename", old, new) | ("add_default", key, value) | ("transform", key, fn)
ParamRule = tuple[str, str, Any]

PARAM_RULES: dict[str, list[tuple[Version, ParamRule]]] = {
    "/library/sections": [
        (V1_2_0, ("rename", "includeCollections", "includeCollectionCounts")),
        (V1_2_0, ("add_default", "includeExternalMedia", "1")),
    ],
    "/hubs/search": [
        (V1_2_0, ("rename", "query", "searchQuery")),
        (V1_2_0, ("add_default", "searchTypes", "1,2,3,4")),
        (
            V1_2_0,
            (
                "transform",
                "searchTypes",
                lambda v: ",".join(map(str, v)) if isinstance(v, (list, tuple)) else v,
            ),
        ),
    ],
}

# Historically inconsistent field names and their canonical spelling
FIELD_RENAMES: list[tuple[Version, str, str]] = [
    (V1_2_0, "library_section_id", "librarySectionId"),
    (V1_2_0, "rating_key", "ratingKey"),
    (V1_2_0, "parent_rating_key", "parentRatingKey"),
]

# Container fields that exist from a revision on: field -> (minimum, default)
GATED_FIELDS: dict[str, tuple[Version, Any]] = {
    "collectionCount": (V1_2_0, 0),
    "hubIdentifier": (V1_2_0, None),
}

FEATURE_HEADERS: list[tuple[Version, str]] = [
    (V1_3_0, "enhanced-search,collections-v2"),
    (V1_2_0, "collections,hubs"),
]

EndpointStatus = Literal["available", "deprecated", "unavailable"]

ENDPOINT_AVAILABILITY: dict[str, dict[Version, EndpointStatus]] = {
    "/library/onDeck": {
        V1_1_1: "available",
        V1_2_0: "deprecated",
        V1_3_0: "unavailable",
    },
    "/hubs": {V1_1_1: "unavailable", V1_2_0: "available", V1_3_0: "available"},
    "/butler/v2/tasks": {
        V1_1_1: "unavailable",
        V1_2_0: "unavailable",
        V1_3_0: "available",
    },
}

# path -> (removal version, last supported version)
ENDPOINT_REMOVALS: dict[str, tuple[Version, Version]] = {
    "/library/onDeck": (V1_3_0, V1_2_0),
    "/search": (V1_3_0, V1_2_0),
}

MIGRATION_GUIDE_URL = "https://docs.plex.tv/migration/{slug}"


# =============================================================================
# ENDPOINTS AND PARAMETERS
# =============================================================================


def adapt_endpoint(path: str, version: str | Version) -> str:
    """Map a logical path to the wire path used at ``version``."""
    parsed = try_parse(version)
    move = ENDPOINT_MOVES.get(path) if isinstance(path, str) else None
    if parsed is None or move is None:
        return path
    minimum, wire_path = move
    return wire_path if parsed >= minimum else path


def adapt_params(
    params: dict[str, Any], endpoint: str, version: str | Version
) -> dict[str, Any]:
    """Apply the parameter rules for ``(endpoint, version)``.

    Returns a new dict; the input is left untouched.
    """
    parsed = try_parse(version)
    if not isinstance(params, dict) or parsed is None:
        return params

    rules = PARAM_RULES.get(endpoint, []) if isinstance(endpoint, str) else []
    result = dict(params)
    for minimum, rule in rules:
        if parsed >= minimum:
            result = _apply_param_rule(result, rule)
    return result


def _apply_param_rule(params: dict[str, Any], rule: ParamRule) -> dict[str, Any]:
    action, key, arg = rule
    if action == "rename":
        if key in params:
            params[arg] = params.pop(key)
    elif action == "add_default":
        params.setdefault(key, arg)
    elif action == "transform":
        if key in params:
            transform: Callable[[Any], Any] = arg
            params[key] = transform(params[key])
    return params


def version_headers(version: str | Version) -> dict[str, str]:
    """Feature-announcement headers for ``version``."""
    parsed = try_parse(version)
    if parsed is None:
        return {}
    for minimum, features in FEATURE_HEADERS:
        if parsed >= minimum:
            return {FEATURES_HEADER: features}
    return {}


def request_options(version: str | Version) -> dict[str, Any]:
    """Transport options recommended for ``version`` (timeout in seconds)."""
    parsed = try_parse(version)
    if parsed is not None and parsed >= V1_2_0:
        return {"timeout": 30, "follow_redirects": True}
    return {"timeout": 15}


# =============================================================================
# RESPONSE NORMALIZATION
# =============================================================================


def normalize_response(data: Any, version: str | Version) -> Any:
    """Bring a response payload to the canonical shape for ``version``.

    Field names are renamed recursively; version-gated container fields are
    injected with defaults at or above their revision and removed below it.
    Applying this twice gives the same result as applying it once.
    """
    parsed = try_parse(version)
    if parsed is None or not isinstance(data, dict):
        return data

    if isinstance(data.get("MediaContainer"), dict):
        result = dict(data)
        result["MediaContainer"] = _normalize_container(data["MediaContainer"], parsed)
        return result
    return _normalize_container(data, parsed)


def _normalize_container(container: dict[str, Any], version: Version) -> dict[str, Any]:
    result = _rename_fields(container, version)
    for field, (minimum, default) in GATED_FIELDS.items():
        if version >= minimum:
            result.setdefault(field, default)
        else:
            result.pop(field, None)
    return result


def _rename_fields(value: Any, version: Version) -> Any:
    if isinstance(value, list):
        return [_rename_fields(item, version) for item in value]
    if not isinstance(value, dict):
        return value

    result = {key: _rename_fields(item, version) for key, item in value.items()}
    for minimum, old, new in FIELD_RENAMES:
        if version >= minimum and old in result:
            moved = result.pop(old)
            result.setdefault(new, moved)
    return result


# =============================================================================
# WHOLE REQUESTS AND RESPONSES
# =============================================================================


def _require_supported(version: str | Version) -> Version:
    parsed = try_parse(version)
    if parsed not in SUPPORTED_VERSIONS:
        raise ConfigError(
            "unsupported_version",
            suggestions=[
                "Use one of: " + ", ".join(str(v) for v in SUPPORTED_VERSIONS)
            ],
            context={"version": str(version)},
        )
    return parsed


def adapt_request(request: dict[str, Any], version: str | Version) -> dict[str, Any]:
    """Adapt a ``{"path", "params", "headers", ...}`` request for ``version``.

    Raises:
        ConfigError: If ``version`` is not a supported revision.
    """
    parsed = _require_supported(version)
    if not isinstance(request, dict):
        return request

    path = adapt_endpoint(request.get("path") or "", parsed)
    adapted = {
        **request_options(parsed),
        **request,
        "path": path,
        "params": adapt_params(request.get("params") or {}, path, parsed),
        "headers": _merge_headers(request.get("headers"), version_headers(parsed)),
    }
    if path != request.get("path"):
        logger.debug(f"Remapped {request.get('path')} -> {path} for {parsed}")
    return adapted


def _merge_headers(headers: Any, extra: dict[str, str]) -> Any:
    """Add ``extra`` to a header dict or a list of ``(name, value)`` pairs.

    Headers of any other shape are returned unchanged.
    """
    if not headers:
        return dict(extra)
    if isinstance(headers, dict):
        return {**headers, **extra}
    if isinstance(headers, (list, tuple)):
        return [*headers, *extra.items()]
    return headers


def adapt_response(response: Any, version: str | Version) -> Any:
    """Normalize a decoded response for ``version``.

    Raises:
        ConfigError: If ``version`` is not a supported revision.
    """
    return normalize_response(response, _require_supported(version))


# =============================================================================
# ENDPOINT AVAILABILITY
# =============================================================================


def endpoint_status(path: str, version: str | Version) -> EndpointStatus:
    """Availability of ``path`` at ``version``; unlisted endpoints are available."""
    if not isinstance(path, str):
        return "available"
    parsed = try_parse(version)
    return ENDPOINT_AVAILABILITY.get(path, {}).get(parsed, "available")


def endpoint_available(path: str, version: str | Version) -> bool:
    """Deprecated endpoints still count as available."""
    return endpoint_status(path, version) != "unavailable"


def _replacement(path: str) -> str | None:
    move = ENDPOINT_MOVES.get(path)
    return move[1] if move else None


def endpoint_deprecation_info(
    path: str, version: str | Version
) -> tuple[str, dict[str, Any]]:
    """Return ``("not_deprecated" | "deprecated" | "removed", details)``."""
    status = endpoint_status(path, version)
    if status == "available":
        return "not_deprecated", {}

    removal, last_supported = ENDPOINT_REMOVALS.get(path, (None, V1_1_1))
    if status == "deprecated":
        return "deprecated", {
            "deprecated_in": str(version),
            "replacement": _replacement(path),
            "removal_planned": str(removal) if removal else None,
            "migration_guide": MIGRATION_GUIDE_URL.format(
                slug=path.replace("/", "-")
            ),
        }
    return "removed", {
        "removed_in": str(version),
        "replacement": _replacement(path),
        "last_supported": str(last_supported),
    }
