"""Scheduled-trigger entry point.

``lambda_handler`` is what the scheduler invokes (e.g. an EventBridge rule
on AWS Lambda). It wires the collaborators from one explicit ``Config``,
runs every query and raises ``RunFailed`` when anything went wrong so the
invocation is recorded as failed and retried at the next tick.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from doorkeep import metrics
from doorkeep.config import Config, reload_config
from doorkeep.dedup import Deduplicator
from doorkeep.errors import ConfigError
from doorkeep.notify import DryRunNotifier, Notifier, SlackNotifier
from doorkeep.orchestrator import BatchOrchestrator, RunReport
from doorkeep.search import SearchClient, SerpApiClient
from doorkeep.store import DryRunResultStore, ResultStore, build_store
from doorkeep.utils.logger import configure_logging, log_error, log_info


def build_notifier(config: Config) -> Notifier:
    if config.dry_run:
        log_info("Dry-run mode: alerts will be logged, not posted.")
        return DryRunNotifier()
    return SlackNotifier(config.slack_webhook_url, timeout=config.http_timeout)


def build_orchestrator(
    config: Config,
    *,
    store: Optional[ResultStore] = None,
    search_client: Optional[SearchClient] = None,
    notifier: Optional[Notifier] = None,
) -> Tuple[BatchOrchestrator, ResultStore]:
    """Assemble an orchestrator; any collaborator can be supplied explicitly.

    In dry-run mode the store is wrapped so nothing is committed, unless
    ``PERSIST_DRY_RUN`` is set.
    """
    store = store if store is not None else build_store(config)
    if config.dry_run and not config.persist_dry_run:
        log_info("Dry-run mode: results are classified but not stored.", backend=store.name)
        store = DryRunResultStore(store)
    orchestrator = BatchOrchestrator(
        search_client=search_client if search_client is not None else SerpApiClient.from_config(config),
        deduplicator=Deduplicator(store),
        notifier=notifier if notifier is not None else build_notifier(config),
        max_workers=config.max_workers,
    )
    return orchestrator, store


def _event_queries(event: Any) -> Optional[List[str]]:
    """Queries carried by the trigger event, if any (``{"queries": [...]}``)."""
    if isinstance(event, dict):
        queries = event.get("queries")
        if isinstance(queries, list) and queries:
            return [str(q) for q in queries]
    return None


def run_once(config: Config, queries: Optional[List[str]] = None, **collaborators) -> RunReport:
    """Validate configuration, run one invocation and return its report."""
    issues = config.validate_configuration()
    if issues:
        log_error("Configuration validation failed", issues=issues)
        raise ConfigError(issues)

    orchestrator, store = build_orchestrator(config, **collaborators)
    try:
        report = orchestrator.run(queries or config.get_queries())
    finally:
        log_info("Store statistics", **store.get_stats())
        store.close()
    return report


def lambda_handler(event: Any, context: Any = None) -> Dict[str, Any]:
    """Run one scheduled invocation.

    Returns:
        Run summary when every query succeeded.

    Raises:
        ConfigError: the configuration is invalid.
        RunFailed: at least one fetch, store or notify error occurred.
    """
    load_dotenv()
    config = reload_config()
    configure_logging(config.log_level, config.log_format)
    metrics.configure_metrics(config)
    config.log_configuration()

    report = run_once(config, _event_queries(event))
    report.raise_for_failures()
    return report.to_dict()
