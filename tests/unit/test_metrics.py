"""Unit tests for doorkeep.metrics module."""

import pytest
from unittest.mock import MagicMock, patch

from datadog import DogStatsd

import doorkeep.metrics as metrics_mod
from doorkeep.metrics import _NoOpStatsd, _close_client, _tags, configure_metrics, gauge, incr, reset_metrics


@pytest.fixture(autouse=True)
def _fresh_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def mock_statsd():
    metrics_mod._client = MagicMock()
    yield metrics_mod._client
    metrics_mod._client = _NoOpStatsd()


@pytest.fixture
def enabled_config(test_config):
    return test_config(
        datadog_metrics_enabled=True,
        dd_agent_host="localhost",
        dd_agent_port=8126,
        metrics_prefix="doorkeep.test",
    )


class TestNoOpStatsd:
    """Verify _NoOpStatsd is a valid drop-in."""

    def test_all_methods_are_noop(self):
        client = _NoOpStatsd()
        # Should not raise
        client.increment("x", value=1)
        client.gauge("x", value=1.0)
        client.flush()
        client.close_socket()


class TestTags:
    def test_empty_returns_empty_list(self):
        assert _tags(None) == []

    def test_with_values(self):
        assert _tags({"kind": "fetch"}) == ["kind:fetch"]

    def test_empty_values_dropped(self):
        assert _tags({"kind": None, "query": "", "backend": "redis"}) == ["backend:redis"]


class TestMetricsDelegation:
    """When a client is available, calls delegate correctly."""

    def test_incr_delegates_to_client(self, mock_statsd):
        incr("results.new", 3)
        mock_statsd.increment.assert_called_once_with("results.new", value=3, tags=None)

    def test_incr_with_tags(self, mock_statsd):
        incr("errors", kind="notify")
        mock_statsd.increment.assert_called_once_with("errors", value=1, tags=["kind:notify"])

    def test_gauge_delegates_to_client(self, mock_statsd):
        gauge("run.duration", 1.5)
        mock_statsd.gauge.assert_called_once_with("run.duration", value=1.5, tags=None)


class TestConfigureMetrics:
    """Client selection from configuration."""

    def test_disabled_uses_noop(self, test_config):
        configure_metrics(test_config(datadog_metrics_enabled=False))
        assert isinstance(metrics_mod._client, _NoOpStatsd)

    @patch("doorkeep.metrics.atexit.register")
    def test_enabled_builds_dogstatsd(self, mock_register, enabled_config):
        configure_metrics(enabled_config)

        client = metrics_mod._client
        assert isinstance(client, DogStatsd)
        assert client.namespace == "doorkeep.test"
        mock_register.assert_called_once_with(_close_client, client)

        # The exit hook must work against the real client
        _close_client(client)

    @patch("doorkeep.metrics.atexit.register")
    def test_warm_invocation_reuses_client(self, mock_register, enabled_config):
        with patch("doorkeep.metrics.DogStatsd", wraps=DogStatsd) as mock_dogstatsd:
            configure_metrics(enabled_config)
            first = metrics_mod._client
            configure_metrics(enabled_config)

        assert metrics_mod._client is first
        assert mock_dogstatsd.call_count == 1
        assert mock_register.call_count == 1

    @patch("doorkeep.metrics.atexit.register")
    @patch("doorkeep.metrics.DogStatsd", side_effect=OSError("no route to agent"))
    def test_client_failure_falls_back_to_noop(self, mock_dogstatsd, mock_register, enabled_config):
        configure_metrics(enabled_config)

        assert isinstance(metrics_mod._client, _NoOpStatsd)
        mock_register.assert_not_called()
        incr("results.new")  # should not raise

    def test_reset_closes_real_client(self):
        client = MagicMock()
        metrics_mod._client = client
        metrics_mod._configured = True

        reset_metrics()

        client.flush.assert_called_once()
        client.close_socket.assert_called_once()
        assert isinstance(metrics_mod._client, _NoOpStatsd)
