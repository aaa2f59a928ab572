"""Unit tests for configuration module."""

import os
from unittest.mock import patch

from serialport_bridge.core.config import Settings, setup_logging


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test settings have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings()

        assert settings.log_level == "INFO"
        assert settings.api_host == "0.0.0.0"
        assert settings.api_port == 8000
        assert settings.default_timeout == 200
        assert settings.default_size == 1024
        assert settings.encoding == "utf-8"

    def test_env_override_api_port(self):
        with patch.dict(os.environ, {"SERIALPORT_API_PORT": "9000"}):
            settings = Settings()

        assert settings.api_port == 9000

    def test_env_override_log_level(self):
        with patch.dict(os.environ, {"SERIALPORT_LOG_LEVEL": "DEBUG"}):
            settings = Settings()

        assert settings.log_level == "DEBUG"

    def test_env_override_read_defaults(self):
        with patch.dict(os.environ, {"SERIALPORT_DEFAULT_TIMEOUT": "50", "SERIALPORT_DEFAULT_SIZE": "64"}):
            settings = Settings()

        assert settings.default_timeout == 50
        assert settings.default_size == 64

    def test_env_prefix(self):
        """Test that non-prefixed env vars are ignored."""
        with patch.dict(os.environ, {"API_PORT": "1234"}, clear=True):
            settings = Settings()

        assert settings.api_port == 8000


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_info(self):
        setup_logging("INFO")

    def test_setup_logging_case_insensitive(self):
        setup_logging("debug")

    def test_setup_logging_invalid_defaults_to_info(self):
        setup_logging("INVALID")
