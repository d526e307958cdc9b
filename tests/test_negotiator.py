"""Tests for API revision negotiation"""

import pytest

from plex_sdk.exceptions import ConfigError, NotFoundError
from plex_sdk.negotiator import (
    Strategy,
    negotiate,
    negotiate_many,
    negotiate_with_info,
    suggest_strategy,
)
from plex_sdk.versions import V1_1_1, V1_2_0, V1_3_0


class TestNegotiate:
    """Test single-server negotiation"""

    @pytest.mark.parametrize(
        "detected,requested,strategy,expected",
        [
            ("1.3.0", "1.2.0", Strategy.CONSERVATIVE, V1_2_0),
            ("1.2.0", "1.3.0", Strategy.CONSERVATIVE, V1_2_0),
            ("1.2.0", "1.3.0", Strategy.AGGRESSIVE, V1_3_0),
            ("1.2.0", "latest", Strategy.CONSERVATIVE, V1_2_0),
            ("1.2.0", "1.1.1", Strategy.LATEST, V1_2_0),
            ("1.1.1", "1.1.1", Strategy.EXACT, V1_1_1),
            ("1.3.0", "latest", "aggressive", V1_3_0),
        ],
    )
    def test_strategies(self, detected, requested, strategy, expected):
        assert negotiate(detected, requested, strategy) == expected

    def test_exact_mismatch(self):
        with pytest.raises(ConfigError) as exc_info:
            negotiate("1.2.0", "1.3.0", Strategy.EXACT)

        assert exc_info.value.reason == "version_mismatch"
        assert exc_info.value.context == {"detected": "1.2.0", "requested": "1.3.0"}

    def test_unsupported_versions(self):
        with pytest.raises(ConfigError) as exc_info:
            negotiate("1.2.5")
        assert exc_info.value.reason == "unsupported_detected_version"

        with pytest.raises(ConfigError) as exc_info:
            negotiate("1.2.0", "0.9.0")
        assert exc_info.value.reason == "unsupported_requested_version"

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            negotiate("1.2.0", "latest", "reckless")


class TestNegotiateMany:
    """Test multi-server negotiation"""

    def test_conservative_and_aggressive(self):
        versions = ["1.3.0", "1.1.1", "1.2.0"]

        assert negotiate_many(versions) == V1_1_1
        assert negotiate_many(versions, strategy=Strategy.AGGRESSIVE) == V1_3_0

    def test_latest_common(self):
        assert negotiate_many(["1.3.0", "1.2.0"], strategy=Strategy.LATEST) == V1_2_0

    def test_latest_none_common(self):
        with pytest.raises(ConfigError) as exc_info:
            negotiate_many(["1.0.0"], strategy=Strategy.LATEST)
        assert exc_info.value.reason == "no_common_version"

    def test_exact(self):
        assert negotiate_many(["1.2.0", "1.3.0"], "1.2.0", Strategy.EXACT) == V1_2_0
        with pytest.raises(ConfigError):
            negotiate_many(["1.2.0", "1.3.0"], "1.1.1", Strategy.EXACT)

    def test_nothing_parseable(self):
        with pytest.raises(NotFoundError):
            negotiate_many(["junk", None])


class TestNegotiationInfo:
    """Test negotiation explanations and strategy suggestions"""

    def test_with_info(self):
        info = negotiate_with_info("1.3.0", "1.2.0")

        assert info["chosen_version"] == "1.2.0"
        assert info["detected_version"] == "1.3.0"
        assert info["strategy"] == "conservative"
        assert "maximum compatibility" in info["reasoning"]
        assert "collections" in info["features"]
        assert info["limitations"][0] == "Server supports 1.3.0 but using 1.2.0"
        assert "smart_collections" in info["limitations"][1]

    def test_with_info_no_limitations(self):
        assert negotiate_with_info("1.2.0", "1.3.0")["limitations"] == []

    @pytest.mark.parametrize(
        "detected,requested,features,expected",
        [
            ("1.2.0", "latest", ["collections"], Strategy.AGGRESSIVE),
            ("1.1.1", "latest", ["collections"], Strategy.CONSERVATIVE),
            ("1.2.0", "1.2.0", None, Strategy.EXACT),
            ("1.2.0", "latest", None, Strategy.CONSERVATIVE),
        ],
    )
    def test_suggest_strategy(self, detected, requested, features, expected):
        assert suggest_strategy(detected, requested, features) == expected
