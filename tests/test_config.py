"""Tests for configuration module."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from slacktask.config import Settings, load_settings


class TestSettings:
    """Tests for Settings class."""

    def test_default_values(self):
        """Test that default values are set correctly."""
        settings = Settings(_env_file=None)

        assert settings.http_timeout == 30.0
        assert settings.display_value == "Slack"
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"

    def test_env_prefix(self):
        """Test settings are read from SLACK_TASK_ variables."""
        env = {
            "SLACK_TASK_HTTP_TIMEOUT": "7.5",
            "SLACK_TASK_LOG_FORMAT": "json",
            "SLACK_TASK_DISPLAY_VALUE": "Slack notify",
        }
        with patch.dict(os.environ, env):
            settings = Settings(_env_file=None)

        assert settings.http_timeout == 7.5
        assert settings.log_format == "json"
        assert settings.display_value == "Slack notify"

    def test_log_level_normalized(self):
        """Test log level is upper-cased."""
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """Test an unknown log level is rejected."""
        with pytest.raises(ValidationError, match="Invalid log level"):
            Settings(_env_file=None, log_level="LOUD")

    def test_invalid_log_format(self):
        """Test log format must be text or json."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")

    def test_timeout_must_be_positive(self):
        """Test a zero timeout is rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, http_timeout=0)

    def test_blank_display_value(self):
        """Test a blank view label is rejected."""
        with pytest.raises(ValidationError, match="display_value"):
            Settings(_env_file=None, display_value="   ")

    def test_load_settings(self):
        """Test load_settings reads the environment."""
        with patch.dict(os.environ, {"SLACK_TASK_LOG_LEVEL": "warning"}):
            settings = load_settings()
        assert settings.log_level == "WARNING"
