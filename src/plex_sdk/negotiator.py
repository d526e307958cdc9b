"""Choosing the API revision to speak, given what the server and caller want."""

from enum import StrEnum

from . import compatibility
from .exceptions import ConfigError, NotFoundError
from .versions import LATEST_VERSION, SUPPORTED_VERSIONS, Version, try_parse


class Strategy(StrEnum):
    """How to reconcile detected and requested revisions.

    - CONSERVATIVE: lower of the two (safest)
    - AGGRESSIVE: higher of the two (most features)
    - EXACT: both must match
    - LATEST: newest supported revision the server reaches
    """

    CONSERVATIVE = "conservative"
    AGGRESSIVE = "aggressive"
    EXACT = "exact"
    LATEST = "latest"


def _supported(value: str | Version, reason: str) -> Version:
    parsed = try_parse(value)
    if parsed not in SUPPORTED_VERSIONS:
        raise ConfigError(reason, context={"version": str(value)})
    return parsed


def _requested(requested: str | Version) -> Version:
    if requested == "latest":
        return LATEST_VERSION
    return _supported(requested, "unsupported_requested_version")


def negotiate(
    detected: str | Version,
    requested: str | Version = "latest",
    strategy: Strategy = Strategy.CONSERVATIVE,
) -> Version:
    """Pick the revision to use.

    Raises:
        ConfigError: If either version is unsupported, or EXACT does not match.
    """
    detected_v = _supported(detected, "unsupported_detected_version")
    requested_v = _requested(requested)
    strategy = Strategy(strategy)

    if strategy is Strategy.EXACT:
        if detected_v != requested_v:
            raise ConfigError(
                "version_mismatch",
                context={"detected": str(detected_v), "requested": str(requested_v)},
            )
        return detected_v
    if strategy is Strategy.CONSERVATIVE:
        return min(detected_v, requested_v)
    if strategy is Strategy.AGGRESSIVE:
        return max(detected_v, requested_v)
    return min(detected_v, LATEST_VERSION)


def negotiate_many(
    versions: list[str | Version],
    requested: str | Version = "latest",
    strategy: Strategy = Strategy.CONSERVATIVE,
) -> Version:
    """Pick one revision for a set of servers.

    Raises:
        NotFoundError: If ``versions`` contains nothing parseable.
        ConfigError: If EXACT or LATEST finds no common revision.
    """
    parsed = [v for v in (try_parse(v) for v in versions) if v is not None]
    if not parsed:
        raise NotFoundError("no_versions_detected")
    strategy = Strategy(strategy)

    if strategy is Strategy.CONSERVATIVE:
        return min(parsed)
    if strategy is Strategy.AGGRESSIVE:
        return max(parsed)
    if strategy is Strategy.EXACT:
        wanted = _requested(requested)
        if wanted not in parsed:
            raise ConfigError(
                "version_not_available_on_all_servers",
                context={"requested": str(wanted)},
            )
        return wanted

    for candidate in reversed(SUPPORTED_VERSIONS):
        if all(v >= candidate for v in parsed):
            return candidate
    raise ConfigError("no_common_version")


def negotiate_with_info(
    detected: str | Version,
    requested: str | Version = "latest",
    strategy: Strategy = Strategy.CONSERVATIVE,
) -> dict:
    """negotiate() plus the reasoning and what the choice gives up."""
    chosen = negotiate(detected, requested, strategy)
    detected_v = Version.parse(detected)
    limitations = []
    if detected_v > chosen:
        missing = set(compatibility.supported_features(detected_v)) - set(
            compatibility.supported_features(chosen)
        )
        limitations = [
            f"Server supports {detected_v} but using {chosen}",
            f"Missing features: {', '.join(sorted(missing))}",
        ]
    reasons = {
        Strategy.CONSERVATIVE: "to ensure maximum compatibility",
        Strategy.AGGRESSIVE: "to maximize available features",
        Strategy.EXACT: "to match the exact version requirement",
        Strategy.LATEST: "as the latest version supported by the server",
    }
    return {
        "chosen_version": str(chosen),
        "detected_version": str(detected_v),
        "requested_version": str(requested),
        "strategy": str(strategy),
        "reasoning": f"Chose {chosen} {reasons[Strategy(strategy)]}",
        "features": [str(f) for f in compatibility.supported_features(chosen)],
        "limitations": limitations,
    }


def suggest_strategy(
    detected: str | Version,
    requested: str | Version = "latest",
    features: list[str] | None = None,
) -> Strategy:
    """Recommend a strategy for the given constraints."""
    if features:
        if all(compatibility.supports(detected, f) for f in features):
            return Strategy.AGGRESSIVE
        return Strategy.CONSERVATIVE
    if requested != "latest":
        return Strategy.EXACT
    return Strategy.CONSERVATIVE
