"""Feature compatibility checks across media server API revisions.

Code asks for capabilities ("does this server have hubs?") rather than
comparing version numbers. Every feature has exactly one minimum revision in
FEATURE_MATRIX; support is therefore monotonic in the version.
"""

import logging
from enum import StrEnum
from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, Field

from .versions import V1_1_1, V1_2_0, V1_3_0, Version, try_parse

logger = logging.getLogger("plex-sdk.compatibility")


class Feature(StrEnum):
    """Named capabilities gated by a minimum API revision."""

    LIBRARY_SECTIONS = "library_sections"
    MEDIA_METADATA = "media_metadata"
    BASIC_SEARCH = "basic_search"
    PLAYLISTS = "playlists"
    LIBRARY_ON_DECK = "library_on_deck"
    OLD_SEARCH_API = "old_search_api"
    COLLECTIONS = "collections"
    HUBS = "hubs"
    ENHANCED_SEARCH = "enhanced_search"
    WEBHOOKS_V2 = "webhooks_v2"
    BUTLER_TASKS = "butler_tasks"
    SMART_COLLECTIONS = "smart_collections"
    ADVANCED_HUBS = "advanced_hubs"
    ENHANCED_BUTLER = "enhanced_butler"
    ACTIVITY_MONITORING = "activity_monitoring"
    EXPERIMENTAL_API = "experimental_api"


FEATURE_MATRIX = MappingProxyType(
    {
        # Core features, available in every supported revision
        Feature.LIBRARY_SECTIONS: V1_1_1,
        Feature.MEDIA_METADATA: V1_1_1,
        Feature.BASIC_SEARCH: V1_1_1,
        Feature.PLAYLISTS: V1_1_1,
        Feature.LIBRARY_ON_DECK: V1_1_1,
        Feature.OLD_SEARCH_API: V1_1_1,
        # 1.2.0+
        Feature.COLLECTIONS: V1_2_0,
        Feature.HUBS: V1_2_0,
        Feature.ENHANCED_SEARCH: V1_2_0,
        Feature.WEBHOOKS_V2: V1_2_0,
        Feature.BUTLER_TASKS: V1_2_0,
        # 1.3.0+
        Feature.SMART_COLLECTIONS: V1_3_0,
        Feature.ADVANCED_HUBS: V1_3_0,
        Feature.ENHANCED_BUTLER: V1_3_0,
        Feature.ACTIVITY_MONITORING: V1_3_0,
        # Experimental, may change
        Feature.EXPERIMENTAL_API: Version(1, 4, 0),
    }
)


class Deprecation(BaseModel):
    """When a feature was deprecated and what replaces it."""

    deprecated_in: Version
    replacement: str
    endpoint_change: tuple[str, str] | None = None


DEPRECATIONS = MappingProxyType(
    {
        Feature.LIBRARY_ON_DECK: Deprecation(
            deprecated_in=V1_2_0,
            replacement=Feature.HUBS,
            endpoint_change=("/library/onDeck", "/hubs/home/onDeck"),
        ),
        Feature.OLD_SEARCH_API: Deprecation(
            deprecated_in=V1_2_0,
            replacement=Feature.ENHANCED_SEARCH,
            endpoint_change=("/search", "/hubs/search"),
        ),
    }
)

HIGH_PRIORITY_FEATURES = frozenset(
    {Feature.COLLECTIONS, Feature.HUBS, Feature.ENHANCED_SEARCH}
)

ALTERNATIVES = {
    Feature.COLLECTIONS: "Use playlists to group related content",
    Feature.HUBS: "Use library sections and manual browsing",
    Feature.SMART_COLLECTIONS: "Use regular collections with manual curation",
    Feature.ENHANCED_SEARCH: "Use basic search with additional filtering",
    Feature.WEBHOOKS_V2: "Use polling or basic webhook functionality",
}


class DeprecationInfo(BaseModel):
    """Result of deprecation_info()."""

    status: Literal["not_deprecated", "deprecated", "unsupported"]
    replacement: str | None = None
    deprecated_in: Version | None = None

    @property
    def is_deprecated(self) -> bool:
        return self.status == "deprecated"


def required_version(feature: str) -> Version | None:
    """Minimum revision for a feature, or None if the feature is unknown."""
    return FEATURE_MATRIX.get(feature)


def supports(version: str | Version, feature: str) -> bool:
    """Whether ``version`` supports ``feature``.

    Unknown features and unparseable versions are unsupported.
    """
    parsed = try_parse(version)
    minimum = FEATURE_MATRIX.get(feature)
    if parsed is None or minimum is None:
        return False
    return parsed >= minimum


def supported_features(version: str | Version) -> list[Feature]:
    """All features available at ``version``, in matrix order."""
    return [feature for feature in FEATURE_MATRIX if supports(version, feature)]


def deprecation_info(version: str | Version, feature: str) -> DeprecationInfo:
    """Deprecation status of ``feature`` at ``version``.

    ``unsupported`` is reserved for features absent from the matrix.
    """
    if feature not in FEATURE_MATRIX:
        return DeprecationInfo(status="unsupported")

    parsed = try_parse(version)
    deprecation = DEPRECATIONS.get(feature)
    if deprecation and parsed is not None and parsed >= deprecation.deprecated_in:
        return DeprecationInfo(
            status="deprecated",
            replacement=str(deprecation.replacement),
            deprecated_in=deprecation.deprecated_in,
        )
    return DeprecationInfo(status="not_deprecated")


def suggest_alternative(version: str | Version, feature: str) -> str | None:
    """Suggest what to do when ``feature`` is missing at ``version``.

    Returns None when the feature is supported.
    """
    if supports(version, feature):
        return None
    minimum = FEATURE_MATRIX.get(feature)
    if minimum is None:
        return "Feature not available in any supported version"
    parsed = try_parse(version)
    if parsed is None or parsed < minimum:
        return f"Upgrade the server to {minimum} or later"
    return ALTERNATIVES.get(feature, "Feature not available, consider upgrading server")


def compatibility_report(version: str | Version) -> dict:
    """Overview of supported, deprecated and missing features for a revision."""
    parsed = try_parse(version)
    if parsed is None:
        logger.warning(f"Cannot build compatibility report for {version!r}")
        return {
            "version": None,
            "supported_features": [],
            "deprecated_features": [],
            "missing_features": {},
            "upgrade_recommendations": [],
        }

    missing = {
        feature: minimum
        for feature, minimum in FEATURE_MATRIX.items()
        if parsed < minimum
    }
    by_target: dict[Version, list[str]] = {}
    for feature, minimum in missing.items():
        by_target.setdefault(minimum, []).append(str(feature))

    recommendations = [
        {
            "target_version": str(target),
            "current_version": str(parsed),
            "new_features": features,
            "priority": sum(f in HIGH_PRIORITY_FEATURES for f in features),
        }
        for target, features in sorted(by_target.items())
    ]
    recommendations.sort(key=lambda r: r["priority"], reverse=True)

    return {
        "version": str(parsed),
        "supported_features": [str(f) for f in supported_features(parsed)],
        "deprecated_features": [
            str(f) for f in DEPRECATIONS if deprecation_info(parsed, f).is_deprecated
        ],
        "missing_features": {str(f): str(v) for f, v in missing.items()},
        "upgrade_recommendations": recommendations,
    }
