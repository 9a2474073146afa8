"""Health check module for verifying external service connections.

Provides functions to test SerpAPI, the result store and the Slack webhook
configuration before a scheduled run. No alert is ever posted.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from doorkeep.errors import DoorkeepError
from doorkeep.models import ResultKey
from doorkeep.search import SerpApiClient
from doorkeep.store import DynamoDBResultStore, RedisResultStore, ResultStore
from doorkeep.utils.logger import log_error, log_info

# Probe key; never inserted
_PROBE_KEY = ResultKey(title="doorkeep-healthcheck", link="https://doorkeep.invalid/healthcheck")


@dataclass
class HealthCheckResult:
    """Result of a single health check."""
    service: str
    healthy: bool
    message: str
    details: Dict[str, Any] = field(default_factory=dict)


def _truncate(message: str, limit: int = 100) -> str:
    return message if len(message) <= limit else message[:limit] + "..."


def check_serpapi(client: SerpApiClient) -> HealthCheckResult:
    """Check SerpAPI connectivity and remaining quota."""
    if not client.api_key:
        return HealthCheckResult(service="SerpAPI", healthy=False, message="SERPAPI_API_KEY not set")

    try:
        account = client.account()
    except DoorkeepError as e:
        return HealthCheckResult(service="SerpAPI", healthy=False, message=f"Connection failed: {_truncate(str(e))}")

    left = account.get("total_searches_left")
    return HealthCheckResult(
        service="SerpAPI",
        healthy=left is None or left > 0,
        message=f"Connected ({left} searches left)" if left is not None else "Connected",
        details={"plan": account.get("plan_name"), "searches_left": left},
    )


def check_store(store: ResultStore) -> HealthCheckResult:
    """Check the store answers a point lookup."""
    try:
        if isinstance(store, DynamoDBResultStore):
            details = store.describe()
        elif isinstance(store, RedisResultStore):
            store.ping()
            details = {}
        else:
            details = {}
        store.exists(_PROBE_KEY)
    except DoorkeepError as e:
        return HealthCheckResult(service="Store", healthy=False, message=f"{store.name}: {_truncate(str(e))}")

    return HealthCheckResult(service="Store", healthy=True, message=f"{store.name} reachable", details=details)


def check_slack(webhook_url: str, dry_run: bool = False) -> HealthCheckResult:
    """Check the webhook is configured. Nothing is posted."""
    if dry_run:
        return HealthCheckResult(service="Slack", healthy=True, message="Dry run, webhook not required")
    if not webhook_url:
        return HealthCheckResult(service="Slack", healthy=False, message="SLACK_WEBHOOK_URL not set")
    if not webhook_url.startswith("https://"):
        return HealthCheckResult(service="Slack", healthy=False, message="SLACK_WEBHOOK_URL is not https")
    return HealthCheckResult(service="Slack", healthy=True, message="Webhook configured")


def run_health_checks(config, store: ResultStore, verbose: bool = True) -> Tuple[bool, List[HealthCheckResult]]:
    """Run all health checks.

    Args:
        config: Loaded ``Config``.
        store: Store built from the same config.
        verbose: If True, print results to stdout

    Returns:
        Tuple of (all_healthy, list of results)
    """
    results = [
        check_serpapi(SerpApiClient.from_config(config)),
        check_store(store),
        check_slack(config.slack_webhook_url, dry_run=config.dry_run),
    ]
    all_healthy = all(r.healthy for r in results)

    if verbose:
        print("\nHealth checks:")
        for result in results:
            icon = "OK  " if result.healthy else "FAIL"
            print(f"  [{icon}] {result.service}: {result.message}")
        print()

    for result in results:
        if result.healthy:
            log_info(f"Health check passed: {result.service}", **result.details)
        else:
            log_error(f"Health check failed: {result.service}", reason=result.message)

    return all_healthy, results


if __name__ == "__main__":
    # Allow running directly: python -m doorkeep.healthcheck
    from dotenv import load_dotenv
    load_dotenv()

    from doorkeep.config import get_config
    from doorkeep.store import build_store

    cfg = get_config()
    with build_store(cfg) as cfg_store:
        healthy, _ = run_health_checks(cfg, cfg_store)
    sys.exit(0 if healthy else 1)
