"""Configuration management for slacktask."""

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Plugin settings loaded from environment variables.

    These are process-level settings of the plugin itself. Per-task settings
    (webhook, channel, message) arrive with every request from the host.
    """

    model_config = SettingsConfigDict(
        env_prefix="SLACK_TASK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # HTTP delivery
    http_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for the webhook POST",
        gt=0,
    )

    # Task view
    display_value: str = Field(
        default="Slack",
        description="Label shown for the task in the host UI",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format: 'text' for human-readable, 'json' for structured",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize the log level name."""
        level = v.strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(
                f"Invalid log level: {v}. Must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL."
            )
        return level

    @field_validator("display_value")
    @classmethod
    def validate_display_value(cls, v: str) -> str:
        """Reject a blank view label."""
        if not v.strip():
            raise ValueError("display_value must not be blank")
        return v.strip()


def load_settings() -> Settings:
    """Load and return plugin settings.

    Returns:
        Settings instance with values from environment.
    """
    return Settings()
