"""Pytest configuration and fixtures for doorkeep tests."""

import pytest
from typing import Dict, List

# Add the project root to the Python path
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from doorkeep.config import Config
from doorkeep.models import SearchResult
from doorkeep.notify import Notifier
from doorkeep.search import SearchClient
from doorkeep.store import MemoryResultStore


class StaticSearchClient(SearchClient):
    """Search client returning canned batches (or raising) per query."""

    def __init__(self, batches: Dict[str, object]):
        self.batches = batches
        self.calls: List[str] = []

    def search(self, query):
        self.calls.append(query)
        batch = self.batches.get(query, [])
        if isinstance(batch, Exception):
            raise batch
        return list(batch)


class RecordingNotifier(Notifier):
    """Notifier that records messages and can fail for chosen titles."""

    def __init__(self, fail_titles=()):
        super().__init__()
        self.fail_titles = set(fail_titles)
        self.messages = []
        self.notified_keys = []

    def notify(self, record):
        if record.title in self.fail_titles:
            from doorkeep.errors import NotifyFailed
            raise NotifyFailed(f"webhook down for {record.title}")
        self.notified_keys.append(record.key)
        super().notify(record)

    def deliver(self, message):
        self.messages.append(message)


@pytest.fixture
def make_result():
    """Factory for SearchResult objects with sensible defaults."""

    def _make(title="Result", link="https://example.com/a", position=None, **kwargs):
        data = {
            "title": title,
            "link": link,
            "displayed_link": kwargs.pop("displayed_link", link),
            "snippet": kwargs.pop("snippet", f"Snippet for {title}"),
            "position": position,
        }
        data.update(kwargs)
        return SearchResult.model_validate(data)

    return _make


@pytest.fixture
def serpapi_payload():
    """Decoded SerpAPI response with two organic results."""
    return {
        "search_metadata": {"status": "Success"},
        "organic_results": [
            {
                "position": 1,
                "title": "How to reconcile with FloQast?",
                "link": "https://stackoverflow.com/questions/1/floqast",
                "displayed_link": "stackoverflow.com › questions",
                "snippet": "I am trying to use FloQast to ...",
                "snippet_highlighted_words": ["FloQast"],
                "cached_page_link": "https://webcache.example/1",
                "source": "Stack Overflow",
            },
            {
                "position": 2,
                "title": "liljwty answer",
                "link": "https://stackexchange.com/a/2",
                "displayed_link": "stackexchange.com",
                "snippet": "Answer by liljwty",
            },
        ],
    }


@pytest.fixture
def memory_store():
    return MemoryResultStore()


@pytest.fixture
def recording_notifier():
    return RecordingNotifier()


@pytest.fixture
def static_search():
    """StaticSearchClient class; build with {query: batch or exception}."""
    return StaticSearchClient


@pytest.fixture
def notifier_factory():
    """RecordingNotifier class; pass fail_titles to simulate webhook failures."""
    return RecordingNotifier


@pytest.fixture
def test_config():
    """Factory for Config objects that ignore any local .env file."""

    def _make(**overrides):
        values = {
            "serpapi_api_key": "test-serp-key",
            "slack_webhook_url": "https://hooks.slack.com/services/T000/B000/XXXX",
            "store_backend": "memory",
            "dry_run": True,
            "search_queries": '["floqast", "liljwty"]',
        }
        values.update(overrides)
        return Config(_env_file=None, **values)

    return _make


def pytest_collection_modifyitems(config, items):
    """Mark everything under tests/unit with the ``unit`` marker."""
    for item in items:
        if "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)
