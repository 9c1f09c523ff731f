"""Task plugin request handling.

The host invokes the plugin with a request name and a JSON body. Every
request is answered with a PluginResponse; no exception escapes handle().
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from importlib import resources
from typing import Any, Optional

from pydantic import ValidationError

from slacktask import request_scope
from slacktask.config import Settings, load_settings
from slacktask.models import (
    ChannelType,
    ColorType,
    ConfigurationError,
    ExecutionRequest,
    TaskConfig,
    build_message,
)
from slacktask.notifications import SlackNotifier

logger = logging.getLogger("slacktask.plugin")

SUCCESS_RESPONSE_CODE = 200
BAD_REQUEST_RESPONSE_CODE = 400
INTERNAL_ERROR_RESPONSE_CODE = 500

VIEW_DIRECTORY = "views"
VIEW_TEMPLATE = "task.template.html"


class RequestName(str, Enum):
    """Requests the host can send to a task plugin."""

    CONFIGURATION = "configuration"
    VALIDATE = "validate"
    EXECUTE = "execute"
    VIEW = "view"


@dataclass(frozen=True)
class FieldDefinition:
    """A task configuration field as shown in the host UI."""

    key: str
    display_name: str
    default_value: str = ""
    display_order: int = 0
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "default-value": self.default_value,
            "display-order": str(self.display_order),
            "display-name": self.display_name,
            "required": self.required,
        }


CONFIG_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition("WebhookUrl", "Webhook URL", "", 0, True),
    FieldDefinition("Channel", "Channel", "", 1, True),
    FieldDefinition("ChannelType", "Channel Type", ChannelType.CHANNEL.value, 2, True),
    FieldDefinition("Title", "Title", "", 3, False),
    FieldDefinition("IconOrEmoji", "Icon or Emoji", "", 4, False),
    FieldDefinition("Message", "Message", "", 5, False),
    FieldDefinition("DisplayName", "Display Name", "", 6, False),
    FieldDefinition("ColorType", "Color Type", ColorType.NONE.value, 7, False),
    FieldDefinition("Color", "Color", "", 8, False),
)


@dataclass
class PluginResponse:
    """Response to a host request."""

    response_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.response_code == SUCCESS_RESPONSE_CODE

    def to_json(self) -> str:
        return json.dumps(self.body)


@dataclass
class ExecutionResult:
    """Outcome of an execute request."""

    success: bool
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}


def describe_configuration() -> tuple[FieldDefinition, ...]:
    """Get the configuration fields in display order."""
    return CONFIG_FIELDS


def _read_template() -> str:
    template = resources.files("slacktask").joinpath(VIEW_DIRECTORY).joinpath(VIEW_TEMPLATE)
    return template.read_text(encoding="utf-8")


class TaskPlugin:
    """Slack task plugin."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the plugin.

        Args:
            settings: Plugin settings. Loaded from the environment if omitted.
        """
        self.settings = settings or load_settings()

    def handle(self, request_name: str, body: Any = None) -> PluginResponse:
        """Handle a host request.

        Args:
            request_name: Name of the request (configuration, validate, execute, view).
            body: Request body, either a JSON string or already decoded.

        Returns:
            PluginResponse for the request.
        """
        with request_scope(request_name):
            logger.info(f"Received {request_name} request")
            try:
                request = RequestName(request_name)
            except ValueError:
                logger.warning(f"Unhandled request type: {request_name}")
                return PluginResponse(
                    BAD_REQUEST_RESPONSE_CODE,
                    {"error": f"Unhandled request type: {request_name}"},
                )

            try:
                if request is RequestName.CONFIGURATION:
                    return self.handle_configuration()
                elif request is RequestName.VALIDATE:
                    return self.handle_validation(body)
                elif request is RequestName.EXECUTE:
                    return self.handle_execution(body)
                else:
                    return self.handle_view()
            except Exception as e:
                logger.exception(f"Unexpected error handling {request_name}")
                return PluginResponse(INTERNAL_ERROR_RESPONSE_CODE, {"exception": str(e)})

    def handle_configuration(self) -> PluginResponse:
        """Describe the task's configuration fields."""
        config = {definition.key: definition.to_dict() for definition in describe_configuration()}
        return PluginResponse(SUCCESS_RESPONSE_CODE, config)

    def handle_validation(self, body: Any) -> PluginResponse:
        """Validate a submitted task configuration.

        Returns:
            Response with an ``errors`` map keyed by field; empty when valid.
        """
        try:
            config = TaskConfig.model_validate(_decode(body))
        except (ValidationError, ValueError) as e:
            logger.warning(f"Malformed validation request: {e}")
            malformed = {"Configuration": f"Malformed configuration: {e}"}
            return PluginResponse(SUCCESS_RESPONSE_CODE, {"errors": malformed})

        errors = config.validation_errors()
        if errors:
            logger.info(f"Configuration has {len(errors)} error(s): {', '.join(errors)}")
        return PluginResponse(SUCCESS_RESPONSE_CODE, {"errors": errors})

    def handle_execution(self, body: Any) -> PluginResponse:
        """Format the configured message and post it to Slack."""
        result = self.execute(body)
        if result.success:
            logger.info(result.message)
        else:
            logger.error(result.message)
        return PluginResponse(SUCCESS_RESPONSE_CODE, result.to_dict())

    def execute(self, body: Any) -> ExecutionResult:
        """Run the task.

        Args:
            body: Execute request body with ``config`` and ``context``.

        Returns:
            ExecutionResult; failures carry a human-readable message.
        """
        try:
            request = ExecutionRequest.model_validate(_decode(body))
            config = request.config
            config.ensure_valid()
            message = build_message(config, request.context)
        except ConfigurationError as e:
            return ExecutionResult(False, f"Invalid Slack task configuration: {e}")
        except (ValidationError, ValueError) as e:
            return ExecutionResult(False, f"Malformed execute request: {e}")

        with SlackNotifier(config.webhook_url, timeout=self.settings.http_timeout) as notifier:
            result = notifier.send(config.target, config.channel, message)

        if not result.success:
            return ExecutionResult(False, f"Could not send message to Slack: {result.error}")
        return ExecutionResult(True, f"Message sent to Slack {config.channel}")

    def handle_view(self) -> PluginResponse:
        """Get the task's display label and configuration template."""
        view: dict[str, Any] = {"displayValue": self.settings.display_value}
        try:
            view["template"] = _read_template()
        except OSError as e:
            error_message = f"Failed to find template: {e}"
            view["exception"] = error_message
            logger.error(error_message, exc_info=True)
            return PluginResponse(INTERNAL_ERROR_RESPONSE_CODE, view)
        return PluginResponse(SUCCESS_RESPONSE_CODE, view)


def _decode(body: Any) -> Any:
    """Decode a JSON request body if it is still a string."""
    if body is None or body == "":
        return {}
    if isinstance(body, (str, bytes)):
        return json.loads(body)
    return body
