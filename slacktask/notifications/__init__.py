"""Webhook delivery."""

from slacktask.notifications.slack import NotificationResult, SlackNotifier

__all__ = ["NotificationResult", "SlackNotifier"]
