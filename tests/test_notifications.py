"""Tests for notification channels."""

from unittest.mock import Mock, patch

import httpx

from slacktask.models import ChannelType, SlackMessage
from slacktask.notifications import NotificationResult, SlackNotifier

WEBHOOK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"


def _message(**overrides):
    """Helper to build a SlackMessage with defaults."""
    fields = {
        "title": "app #17",
        "text": "Build passed",
        "icon_or_emoji": None,
        "color": "good",
        "display_name": None,
    }
    fields.update(overrides)
    return SlackMessage(**fields)


class TestSlackPayload:
    """Tests for SlackNotifier.build_payload."""

    def test_channel_payload(self):
        """Test the basic payload for a channel."""
        payload = SlackNotifier.build_payload(ChannelType.CHANNEL, "#builds", _message())

        assert payload == {
            "channel": "#builds",
            "attachments": [
                {"title": "app #17", "text": "Build passed", "color": "good"},
            ],
        }

    def test_user_payload(self):
        """Test the identifier goes under 'user' for USER targets."""
        payload = SlackNotifier.build_payload(ChannelType.USER, "@alice", _message())
        assert payload["user"] == "@alice"
        assert "channel" not in payload

    def test_icon_emoji(self):
        """Test a value starting with ':' is sent as an emoji."""
        payload = SlackNotifier.build_payload(
            ChannelType.CHANNEL, "#builds", _message(icon_or_emoji=":rocket:")
        )
        assert payload["icon_emoji"] == ":rocket:"
        assert "icon_url" not in payload

    def test_icon_url(self):
        """Test any other value is sent as an icon URL."""
        payload = SlackNotifier.build_payload(
            ChannelType.CHANNEL, "#builds", _message(icon_or_emoji="https://example.com/go.png")
        )
        assert payload["icon_url"] == "https://example.com/go.png"
        assert "icon_emoji" not in payload

    def test_no_icon(self):
        """Test no icon key is sent without an icon."""
        for icon in (None, ""):
            payload = SlackNotifier.build_payload(
                ChannelType.CHANNEL, "#builds", _message(icon_or_emoji=icon)
            )
            assert "icon_url" not in payload
            assert "icon_emoji" not in payload

    def test_username(self):
        """Test the display name is sent as username."""
        payload = SlackNotifier.build_payload(
            ChannelType.CHANNEL, "#builds", _message(display_name="GoCD")
        )
        assert payload["username"] == "GoCD"

    def test_username_omitted(self):
        """Test username is omitted when display name is absent or empty."""
        for name in (None, ""):
            payload = SlackNotifier.build_payload(
                ChannelType.CHANNEL, "#builds", _message(display_name=name)
            )
            assert "username" not in payload

    def test_color_omitted(self):
        """Test the attachment has no color key without a color."""
        payload = SlackNotifier.build_payload(ChannelType.CHANNEL, "#builds", _message(color=None))
        assert payload["attachments"] == [{"title": "app #17", "text": "Build passed"}]

    def test_absent_title_and_text(self):
        """Test absent title and text are left out of the attachment."""
        payload = SlackNotifier.build_payload(
            ChannelType.CHANNEL, "#builds", _message(title=None, text=None, color=None)
        )
        assert payload["attachments"] == [{}]


class TestSlackNotifier:
    """Tests for SlackNotifier delivery."""

    def test_init(self):
        """Test initialization."""
        notifier = SlackNotifier(webhook_url=WEBHOOK_URL)
        assert notifier.webhook_url == WEBHOOK_URL

    def test_is_configured_valid(self):
        """Test is_configured with an https URL."""
        assert SlackNotifier(webhook_url=WEBHOOK_URL).is_configured() is True

    def test_is_configured_invalid(self):
        """Test is_configured without a usable URL."""
        assert SlackNotifier(webhook_url="").is_configured() is False
        assert SlackNotifier(webhook_url="hooks.slack.com/abc").is_configured() is False

    @patch.object(httpx.Client, "post")
    def test_send_success(self, mock_post):
        """Test successful delivery posts the payload once."""
        mock_post.return_value = Mock(status_code=200)

        notifier = SlackNotifier(webhook_url=WEBHOOK_URL)
        result = notifier.send(ChannelType.CHANNEL, "#builds", _message())

        assert result == NotificationResult(success=True, status_code=200)
        mock_post.assert_called_once_with(
            WEBHOOK_URL,
            json={
                "channel": "#builds",
                "attachments": [{"title": "app #17", "text": "Build passed", "color": "good"}],
            },
        )

    @patch.object(httpx.Client, "post")
    def test_send_empty_url(self, mock_post):
        """Test sending without a webhook URL makes no request."""
        notifier = SlackNotifier(webhook_url="")
        result = notifier.send(ChannelType.CHANNEL, "#builds", _message())

        assert result == NotificationResult(success=False, error="Slack webhook URL is empty")
        mock_post.assert_not_called()

    @patch.object(httpx.Client, "post")
    def test_send_url_without_scheme(self, mock_post):
        """Test a URL without scheme names the missing http(s) prefix."""
        notifier = SlackNotifier(webhook_url="hooks.slack.com/services/T000/B000/XXXX")
        result = notifier.send(ChannelType.CHANNEL, "#builds", _message())

        assert result.success is False
        assert result.error == "Slack webhook URL must start with http:// or https://"
        assert "XXXX" not in result.error
        mock_post.assert_not_called()

    @patch("time.sleep")
    @patch.object(httpx.Client, "post")
    def test_http_error_not_retried(self, mock_post, mock_sleep):
        """Test a non-2xx response fails after a single attempt."""
        error_response = Mock(status_code=500)
        error_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Server Error", request=Mock(), response=error_response
        )
        mock_post.return_value = error_response

        notifier = SlackNotifier(webhook_url=WEBHOOK_URL)
        result = notifier.send(ChannelType.CHANNEL, "#builds", _message())

        assert result.success is False
        assert result.error == "Slack HTTP error: 500"
        assert result.status_code == 500
        assert mock_post.call_count == 1
        mock_sleep.assert_not_called()

    @patch.object(httpx.Client, "post")
    def test_connection_error_not_retried(self, mock_post):
        """Test a connection failure fails after a single attempt."""
        mock_post.side_effect = httpx.ConnectError("Connection refused", request=Mock())

        notifier = SlackNotifier(webhook_url=WEBHOOK_URL)
        result = notifier.send(ChannelType.CHANNEL, "#builds", _message())

        assert result.success is False
        assert "Connection refused" in result.error
        assert result.status_code is None
        assert mock_post.call_count == 1

    @patch.object(httpx.Client, "post")
    def test_timeout(self, mock_post):
        """Test a timeout is reported as a failure."""
        mock_post.side_effect = httpx.ReadTimeout("timed out", request=Mock())

        result = SlackNotifier(webhook_url=WEBHOOK_URL).send(
            ChannelType.CHANNEL, "#builds", _message()
        )

        assert result.success is False
        assert "timed out" in result.error

    @patch.object(httpx.Client, "post")
    def test_invalid_url(self, mock_post):
        """Test a malformed URL is reported as a failure."""
        mock_post.side_effect = httpx.InvalidURL("Invalid port: 'abc'")

        result = SlackNotifier(webhook_url="https://hooks.example:abc/x").send(
            ChannelType.CHANNEL, "#builds", _message()
        )

        assert result.success is False
        assert result.error.startswith("Invalid Slack webhook URL")

    def test_sends_json_content_type(self):
        """Test the request is a JSON POST to the webhook URL."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text="ok")

        notifier = SlackNotifier(webhook_url=WEBHOOK_URL)
        notifier._client = httpx.Client(transport=httpx.MockTransport(handler))
        with notifier:
            result = notifier.send(ChannelType.CHANNEL, "#builds", _message())

        assert result.success is True
        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == WEBHOOK_URL
        assert seen[0].headers["Content-Type"] == "application/json"

    def test_close(self):
        """Test close releases the HTTP client."""
        notifier = SlackNotifier(webhook_url=WEBHOOK_URL)
        notifier.close()
        assert notifier._client.is_closed
