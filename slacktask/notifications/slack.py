"""Slack incoming-webhook notification client."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from slacktask.models import WEBHOOK_SCHEMES, ChannelType, SlackMessage

logger = logging.getLogger("slacktask.notifications.slack")


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of a single webhook delivery.

    ``status_code`` is set whenever Slack answered, including non-2xx
    answers; it stays None when the request never got a response.
    """

    success: bool
    error: Optional[str] = None
    status_code: Optional[int] = None


class SlackNotifier:
    """Slack incoming-webhook sender.

    Each send is a single POST. Failures are reported through the returned
    NotificationResult and are never retried.
    """

    def __init__(self, webhook_url: str, timeout: float = 30.0):
        """Initialize Slack notifier.

        Args:
            webhook_url: Slack incoming-webhook URL, token included.
            timeout: Request timeout in seconds.
        """
        self.webhook_url = webhook_url
        self._client = httpx.Client(timeout=timeout)

    def send(
        self, channel_type: ChannelType, channel: str, message: SlackMessage
    ) -> NotificationResult:
        """Send a message to Slack.

        Args:
            channel_type: Selects the ``channel`` or ``user`` payload key.
            channel: Channel or user identifier.
            message: Resolved message.

        Returns:
            NotificationResult with success status.
        """
        if not self.webhook_url:
            return NotificationResult(success=False, error="Slack webhook URL is empty")
        if not self.is_configured():
            return NotificationResult(
                success=False,
                error="Slack webhook URL must start with http:// or https://",
            )

        payload = self.build_payload(channel_type, channel, message)
        target = f"{channel_type.payload_key} {channel}"
        try:
            response = self._client.post(self.webhook_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            error = f"Slack HTTP error: {status}"
            logger.error(
                f"{error} posting to {target}",
                extra={"target": target, "status_code": status},
            )
            return NotificationResult(success=False, error=error, status_code=status)
        except httpx.RequestError as e:
            error = f"Slack request error: {e}"
            logger.error(f"{error} posting to {target}", extra={"target": target})
            return NotificationResult(success=False, error=error)
        except httpx.InvalidURL as e:
            error = f"Invalid Slack webhook URL: {e}"
            logger.error(error)
            return NotificationResult(success=False, error=error)

        logger.info(
            f"Posted message to Slack {target}",
            extra={"target": target, "status_code": response.status_code},
        )
        return NotificationResult(success=True, status_code=response.status_code)

    @staticmethod
    def build_payload(
        channel_type: ChannelType, channel: str, message: SlackMessage
    ) -> dict[str, Any]:
        """Build the Slack webhook payload.

        Args:
            channel_type: Selects the ``channel`` or ``user`` key.
            channel: Channel or user identifier.
            message: Resolved message.

        Returns:
            Slack webhook payload.
        """
        payload: dict[str, Any] = {channel_type.payload_key: channel}

        icon = message.icon_or_emoji
        if icon:
            # :emoji_code: vs image URL
            payload["icon_emoji" if icon.startswith(":") else "icon_url"] = icon

        if message.display_name:
            payload["username"] = message.display_name

        attachment: dict[str, Any] = {}
        if message.title is not None:
            attachment["title"] = message.title
        if message.text is not None:
            attachment["text"] = message.text
        if message.color:
            attachment["color"] = message.color
        payload["attachments"] = [attachment]

        return payload

    def is_configured(self) -> bool:
        """Check if the webhook URL is an http(s) URL."""
        return bool(self.webhook_url and self.webhook_url.startswith(WEBHOOK_SCHEMES))

    def close(self) -> None:
        """Close the HTTP client."""
        if hasattr(self, "_client"):
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
