"""Delivery of alert messages to a Slack incoming webhook."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import requests

from doorkeep.errors import NotifyFailed
from doorkeep.models import AlertMessage, StoredRecord
from doorkeep.notify.message import SlackMessageBuilder
from doorkeep.utils.logger import log_api_response, log_error, log_info


class Notifier(ABC):
    """Formats a stored record and hands it to the outbound channel."""

    def __init__(self, builder: Optional[SlackMessageBuilder] = None):
        self.builder = builder or SlackMessageBuilder()

    def format(self, record: StoredRecord) -> AlertMessage:
        return self.builder.format(record)

    @abstractmethod
    def deliver(self, message: AlertMessage) -> None:
        """Send one message. Raises ``NotifyFailed`` on any delivery error."""

    def notify(self, record: StoredRecord) -> None:
        """Format and deliver the alert for ``record``."""
        self.deliver(self.format(record))


class SlackNotifier(Notifier):
    """Single-attempt POST to a Slack incoming webhook.

    Args:
        webhook_url: Incoming webhook URL.
        timeout: Request timeout in seconds.
        session: Optional ``requests.Session`` to reuse connections.
    """

    def __init__(self, webhook_url: str, timeout: float = 20.0,
                 session: Optional[requests.Session] = None,
                 builder: Optional[SlackMessageBuilder] = None):
        super().__init__(builder)
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def deliver(self, message: AlertMessage) -> None:
        if not self.webhook_url:
            raise NotifyFailed("Slack webhook URL is not configured")

        try:
            resp = self.session.post(self.webhook_url, json=message, timeout=self.timeout)
        except requests.RequestException as e:
            log_error("Slack delivery failed", error=str(e))
            raise NotifyFailed(f"Error sending Slack message: {e}") from e

        if not resp.ok:
            body = resp.text[:200] if resp.text else ""
            log_error("Slack rejected message", status_code=resp.status_code, response=body)
            raise NotifyFailed(
                f"Slack webhook returned {resp.status_code}: {body}",
                status_code=resp.status_code,
            )

        log_api_response("Slack webhook", resp.status_code)


class DryRunNotifier(Notifier):
    """Logs the message that would have been posted."""

    def __init__(self, builder: Optional[SlackMessageBuilder] = None):
        super().__init__(builder)
        self.delivered = []

    def deliver(self, message: AlertMessage) -> None:
        self.delivered.append(message)
        log_info("Dry run: alert not sent", blocks=message.get("blocks", []))
