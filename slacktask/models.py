"""Task configuration, execution context and message models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slacktask.formatter import MessageFormatter


class ConfigurationError(ValueError):
    """A task configuration field is missing or holds an unrecognized value."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class ChannelType(str, Enum):
    """Whether the message goes to a channel or directly to a user."""

    CHANNEL = "CHANNEL"
    USER = "USER"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ChannelType":
        """Parse a channel type name; blank means CHANNEL.

        Raises:
            ConfigurationError: If the name is not recognized.
        """
        return _parse_enum(cls, value, cls.CHANNEL, "ChannelType")

    @property
    def payload_key(self) -> str:
        """Payload key that carries the channel identifier."""
        return "user" if self is ChannelType.USER else "channel"


class ColorType(str, Enum):
    """Attachment color mode."""

    NONE = "NONE"
    GOOD = "GOOD"
    WARNING = "WARNING"
    DANGER = "DANGER"
    CUSTOM = "CUSTOM"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ColorType":
        """Parse a color type name; blank means NONE.

        Raises:
            ConfigurationError: If the name is not recognized.
        """
        return _parse_enum(cls, value, cls.NONE, "ColorType")


WEBHOOK_SCHEMES = ("https://", "http://")

# Slack's named attachment colors
NAMED_COLORS = {
    ColorType.GOOD: "good",
    ColorType.WARNING: "warning",
    ColorType.DANGER: "danger",
}


def _parse_enum(enum_cls, value, default, field):
    if value is None or not str(value).strip():
        return default
    name = str(value).strip().upper()
    try:
        return enum_cls(name)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            field, f"Unrecognized {field} '{value}'. Must be one of: {allowed}"
        ) from None


def resolve_color(mode: Union[ColorType, str, None], raw_color: Optional[str]) -> Optional[str]:
    """Resolve the attachment color for a color mode.

    Named severities always win over a user-supplied raw color.

    Args:
        mode: Color mode, or its name.
        raw_color: User-supplied color string, used only for CUSTOM.

    Returns:
        Color value for the payload, or None when no color should be sent.

    Raises:
        ConfigurationError: If mode is an unrecognized name.
    """
    if not isinstance(mode, ColorType):
        mode = ColorType.parse(mode)

    if mode is ColorType.NONE:
        return None
    if mode is ColorType.CUSTOM:
        return raw_color or None
    return NAMED_COLORS[mode]


class TaskConfig(BaseModel):
    """Task configuration as entered by the user.

    The host submits each field as a property object such as
    ``{"value": "#builds", "secure": false, "required": true}``; only the
    value is kept.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    webhook_url: Optional[str] = Field(default=None, alias="WebhookUrl")
    channel: Optional[str] = Field(default=None, alias="Channel")
    channel_type: Optional[str] = Field(default=None, alias="ChannelType")
    title: Optional[str] = Field(default=None, alias="Title")
    icon_or_emoji: Optional[str] = Field(default=None, alias="IconOrEmoji")
    message: Optional[str] = Field(default=None, alias="Message")
    display_name: Optional[str] = Field(default=None, alias="DisplayName")
    color_type: Optional[str] = Field(default=None, alias="ColorType")
    color: Optional[str] = Field(default=None, alias="Color")

    @field_validator("*", mode="before")
    @classmethod
    def unwrap_property(cls, v: Any) -> Any:
        """Take the value out of a host property object."""
        if isinstance(v, dict):
            return v.get("value")
        return v

    @field_validator("webhook_url", "channel")
    @classmethod
    def strip_target(cls, v: Optional[str]) -> Optional[str]:
        """Drop whitespace pasted around the webhook URL or channel."""
        return v.strip() if v is not None else v

    def validation_errors(self) -> dict[str, str]:
        """Check required fields, the webhook URL scheme and enumeration values.

        Returns:
            Mapping of field key to error message; empty when valid.
        """
        errors: dict[str, str] = {}
        if not self.webhook_url:
            errors["WebhookUrl"] = "Webhook URL is required"
        elif not self.webhook_url.startswith(WEBHOOK_SCHEMES):
            errors["WebhookUrl"] = "Webhook URL must start with http:// or https://"
        if not self.channel:
            errors["Channel"] = "Channel is required"
        enum_fields = (
            (ChannelType, self.channel_type),
            (ColorType, self.color_type),
        )
        for enum_cls, value in enum_fields:
            try:
                enum_cls.parse(value)
            except ConfigurationError as e:
                errors[e.field] = str(e)
        return errors

    def ensure_valid(self) -> None:
        """Raise the first configuration problem, if any.

        Raises:
            ConfigurationError: If validation_errors() is not empty.
        """
        errors = self.validation_errors()
        if errors:
            field, message = next(iter(errors.items()))
            raise ConfigurationError(field, message)

    @property
    def target(self) -> ChannelType:
        """Parsed channel type."""
        return ChannelType.parse(self.channel_type)


class TaskContext(BaseModel):
    """Execution context supplied by the host for a single run."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    environment_variables: dict[str, str] = Field(
        default_factory=dict, alias="environmentVariables"
    )
    working_directory: Optional[str] = Field(default=None, alias="workingDirectory")

    @field_validator("environment_variables", mode="before")
    @classmethod
    def default_empty(cls, v: Any) -> Any:
        """Treat a null environment as empty."""
        return v if v is not None else {}


class ExecutionRequest(BaseModel):
    """Body of an execute request."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    config: TaskConfig = Field(default_factory=TaskConfig)
    context: TaskContext = Field(default_factory=TaskContext)


@dataclass(frozen=True)
class SlackMessage:
    """A fully resolved message, ready to be sent."""

    title: Optional[str]
    text: Optional[str]
    icon_or_emoji: Optional[str] = None
    color: Optional[str] = None
    display_name: Optional[str] = None


def build_message(config: TaskConfig, context: TaskContext) -> SlackMessage:
    """Resolve placeholders and color for a task configuration.

    Only the title, message and display name are formatted; the icon and
    color are used as entered.

    Args:
        config: Validated task configuration.
        context: Execution context providing the variables.

    Returns:
        Resolved SlackMessage.
    """
    formatter = MessageFormatter(context.environment_variables)
    return SlackMessage(
        title=formatter.format(config.title),
        text=formatter.format(config.message),
        icon_or_emoji=config.icon_or_emoji,
        color=resolve_color(config.color_type, config.color),
        display_name=formatter.format(config.display_name),
    )
