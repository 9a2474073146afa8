"""Alert formatting and delivery."""

from doorkeep.notify.message import SlackMessageBuilder, escape_mrkdwn
from doorkeep.notify.slack import DryRunNotifier, Notifier, SlackNotifier

__all__ = ["Notifier", "SlackNotifier", "DryRunNotifier", "SlackMessageBuilder", "escape_mrkdwn"]
