"""Tests for config module"""

import logging
import os

import pytest
from pydantic import ValidationError

from plex_sdk.config import Config, get_config, setup_logging
from plex_sdk.consts import CONTROL_PLANE_URL, PACKAGE_VERSION
from plex_sdk.exceptions import ConfigError


class TestConfig:
    """Test Config class functionality"""

    def test_config_defaults_and_creation(self, clean_config):
        """Test config creation and default values"""
        assert clean_config.client_id is None
        assert clean_config.control_plane_url == CONTROL_PLANE_URL
        assert clean_config.product == "plex-sdk"
        assert clean_config.product_version == PACKAGE_VERSION
        assert clean_config.pms_api_version == "1.1.1"
        assert clean_config.auth_method == "jwt"
        assert clean_config.retries == 3
        assert clean_config.backoff_base_ms == 200
        assert clean_config.timeout_seconds == 30
        assert clean_config.log_level == "INFO"

    def test_config_env_override(self, clean_env):
        """Test environment variable override"""
        os.environ["PLEX_CLIENT_ID"] = "env-client"
        os.environ["PLEX_RETRIES"] = "5"
        os.environ["PLEX_AUTH_METHOD"] = "token"

        config = Config()

        assert config.client_id == "env-client"
        assert config.retries == 5
        assert config.auth_method == "token"

    def test_config_custom_values(self):
        """Test creating config with custom values"""
        config = Config(
            client_id="abc",
            server_url="http://10.0.0.5:32400",
            token="secret",
            timeout_seconds=60,
        )
        assert config.client_id == "abc"
        assert config.server_url == "http://10.0.0.5:32400"
        assert config.timeout_seconds == 60

    def test_config_is_frozen(self):
        config = Config(client_id="abc")

        with pytest.raises(ValidationError):
            config.client_id = "other"

    def test_token_not_in_repr(self):
        assert "secret" not in repr(Config(client_id="abc", token="secret"))

    @pytest.mark.parametrize(
        "field,value",
        [
            ("log_level", "TRACE"),
            ("log_level", "debug"),
            ("timeout_seconds", 0),
            ("timeout_seconds", 500),
            ("retries", -1),
            ("retries", 11),
            ("auth_method", "oauth"),
            ("pms_api_version", "1.2"),
        ],
    )
    def test_invalid_values(self, field, value):
        """Test that invalid values are rejected"""
        with pytest.raises(ValidationError):
            Config(**{field: value})


class TestIdentityHeaders:
    """Test X-Plex-* header construction"""

    def test_plex_headers(self):
        config = Config(client_id="abc", device_name="den", pms_api_version="1.2.0")

        headers = config.plex_headers()

        assert headers["X-Plex-Client-Identifier"] == "abc"
        assert headers["X-Plex-Product"] == "plex-sdk"
        assert headers["X-Plex-Version"] == PACKAGE_VERSION
        assert headers["X-Plex-Platform"] == "python"
        assert headers["X-Plex-Device"] == "server"
        assert headers["X-Plex-Device-Name"] == "den"
        assert headers["X-Plex-Model"] == "generic"
        assert headers["X-Plex-Pms-Api-Version"] == "1.2.0"

    def test_missing_client_id(self, clean_config):
        with pytest.raises(ConfigError) as exc_info:
            clean_config.plex_headers()

        assert exc_info.value.reason == "missing_client_identifier"
        assert exc_info.value.suggestions


class TestHelpers:
    """Test module-level helpers"""

    def test_get_config_is_cached(self):
        assert get_config() is get_config()

    def test_setup_logging(self):
        logger = setup_logging("DEBUG")

        assert logger.name == "plex-sdk"
        assert logging.getLogger().level == logging.DEBUG
        setup_logging("INFO")
