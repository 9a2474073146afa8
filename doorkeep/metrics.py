"""Run observability via DogStatsD custom metrics.

When DATADOG_METRICS_ENABLED=true the entry points call
:func:`configure_metrics` and counters go to a local Datadog Agent (or
DogStatsD sidecar). Until then, when disabled, or if the client cannot be
created, all calls are no-ops.

Metrics emitted:
  - doorkeep.results.fetched        (count)
  - doorkeep.results.new            (count)
  - doorkeep.results.seen           (count)
  - doorkeep.notifications.sent     (count)
  - doorkeep.notifications.failed   (count)
  - doorkeep.errors                 (count, tagged kind:<error kind>)
  - doorkeep.run.duration           (gauge, seconds)
"""

from __future__ import annotations

import atexit
from typing import Dict, List, Optional

from datadog import DogStatsd

from doorkeep.utils.logger import log_debug, log_info, log_warning


class _NoOpStatsd:
    """Drop-in replacement while metrics are disabled."""

    def increment(self, *a, **kw):
        pass

    def gauge(self, *a, **kw):
        pass

    def flush(self):
        pass

    def close_socket(self):
        pass


_client = _NoOpStatsd()
_configured = False


def _close_client(client) -> None:
    """Flush buffered metrics and release the socket."""
    client.flush()
    client.close_socket()


def configure_metrics(config) -> None:
    """Select the metrics client from configuration.

    The client is created once per process; warm invocations reuse it.
    """
    global _client, _configured
    if _configured:
        return
    _configured = True

    if not config.datadog_metrics_enabled:
        log_debug("DogStatsD metrics disabled (DATADOG_METRICS_ENABLED=false)")
        _client = _NoOpStatsd()
        return

    try:
        _client = DogStatsd(
            host=config.dd_agent_host,
            port=config.dd_agent_port,
            namespace=config.metrics_prefix,
        )
        atexit.register(_close_client, _client)
        log_info(
            "DogStatsD client initialized",
            host=config.dd_agent_host,
            port=config.dd_agent_port,
            prefix=config.metrics_prefix,
        )
    except Exception as exc:
        log_warning("DogStatsD unavailable, metrics disabled", error=str(exc))
        _client = _NoOpStatsd()


def reset_metrics() -> None:
    """Close the current client and return to the disabled state."""
    global _client, _configured
    if not isinstance(_client, _NoOpStatsd):
        atexit.unregister(_close_client)
        _close_client(_client)
    _client = _NoOpStatsd()
    _configured = False


def _tags(extra: Optional[Dict[str, str]] = None) -> List[str]:
    """Build tag list from key-value pairs, dropping empty values."""
    tags: List[str] = []
    if extra:
        tags.extend(f"{k}:{v}" for k, v in extra.items() if v)
    return tags


# --- Public API ---


def incr(metric: str, value: int = 1, **extra_tags) -> None:
    """Increment a counter metric."""
    tags = _tags(extra_tags)
    _client.increment(metric, value=value, tags=tags or None)


def gauge(metric: str, value: float, **extra_tags) -> None:
    """Set a gauge metric."""
    tags = _tags(extra_tags)
    _client.gauge(metric, value=value, tags=tags or None)
