"""Slack message builder: pure formatting, no side effects.

Renders a stored search result into the Block Kit payload posted to the
incoming webhook::

    {"blocks": [
        {"type": "section", "text": {"type": "mrkdwn", "text": "*New Alert!*:\\n"}},
        {"type": "section", "text": {"type": "mrkdwn", "text": "<link|title>\\nsnippet"}},
    ]}
"""

from __future__ import annotations

from typing import Any, Dict

from doorkeep.models import AlertMessage, StoredRecord

HEADER_TEXT = "*New Alert!*:\n"


def escape_mrkdwn(text: str) -> str:
    """Escape the three control characters Slack requires escaped in mrkdwn."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _section(text: str) -> Dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


class SlackMessageBuilder:
    """Builds Slack alert payloads. Pure functions, no side effects."""

    def format_link(self, link: str, title: str) -> str:
        """``<link|title>``; a ``|`` in the title would end the label early."""
        label = escape_mrkdwn(title).replace("|", "❘")
        return f"<{escape_mrkdwn(link)}|{label}>"

    def format_body(self, record: StoredRecord) -> str:
        return f"{self.format_link(record.link, record.title)}\n{escape_mrkdwn(record.snippet)}"

    def format(self, record: StoredRecord) -> AlertMessage:
        """Render one record as a two-block alert message."""
        return {
            "blocks": [
                _section(HEADER_TEXT),
                _section(self.format_body(record)),
            ]
        }
