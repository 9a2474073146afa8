"""Batch orchestration: search -> deduplicate -> notify, per query.

Each query is processed independently. Failures are collected into a
:class:`RunReport` instead of short-circuiting, and records committed to the
store stay committed whatever happens afterwards in the run.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Union

from doorkeep import metrics
from doorkeep.dedup import Deduplicator, ProcessError
from doorkeep.errors import DoorkeepError, FetchError, NotifyFailed, RunFailed
from doorkeep.notify import Notifier
from doorkeep.search import SearchClient
from doorkeep.utils.logger import log_error, log_info, log_run_progress, log_warning

RunError = Union[DoorkeepError, ProcessError]


@dataclass
class QueryReport:
    """Outcome of one query."""

    query: str
    fetched: int = 0
    new: int = 0
    seen: int = 0
    notified: int = 0
    errors: List[RunError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "fetched": self.fetched,
            "new": self.new,
            "seen": self.seen,
            "notified": self.notified,
            "errors": [str(e) for e in self.errors],
        }


@dataclass
class RunReport:
    """Aggregate outcome of one invocation."""

    queries: List[QueryReport] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def errors(self) -> List[RunError]:
        return [e for q in self.queries for e in q.errors]

    @property
    def ok(self) -> bool:
        return all(q.ok for q in self.queries)

    def total(self, attr: str) -> int:
        return sum(getattr(q, attr) for q in self.queries)

    def raise_for_failures(self) -> None:
        """Raise ``RunFailed`` carrying every error if anything went wrong."""
        if not self.ok:
            raise RunFailed(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "fetched": self.total("fetched"),
            "new": self.total("new"),
            "seen": self.total("seen"),
            "notified": self.total("notified"),
            "error_count": len(self.errors),
            "duration_seconds": round(self.duration_seconds, 3),
            "queries": [q.to_dict() for q in self.queries],
        }


def _error_kind(error: RunError) -> str:
    if isinstance(error, ProcessError):
        return getattr(error.cause, "kind", "store")
    return error.kind


class BatchOrchestrator:
    """Drive one invocation over a list of queries.

    Args:
        search_client: Provider client returning one batch per query.
        deduplicator: Classifies and commits each batch.
        notifier: Delivers one alert per NEW record.
        max_workers: Queries processed concurrently; 1 means sequential.
    """

    def __init__(self, search_client: SearchClient, deduplicator: Deduplicator,
                 notifier: Notifier, max_workers: int = 1):
        self.search_client = search_client
        self.deduplicator = deduplicator
        self.notifier = notifier
        self.max_workers = max(1, max_workers)

    def run(self, queries: Iterable[str]) -> RunReport:
        """Process every query and return the aggregate report.

        The report lists queries in input order regardless of concurrency.
        Call :meth:`RunReport.raise_for_failures` to turn any error into a
        failed invocation.
        """
        queries = list(queries)
        started = time.monotonic()
        log_run_progress("Starting run", query_count=len(queries), workers=self.max_workers)

        if self.max_workers > 1 and len(queries) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="doorkeep") as pool:
                reports = list(pool.map(self.process_query, queries))
        else:
            reports = [self.process_query(q) for q in queries]

        report = RunReport(queries=reports, duration_seconds=time.monotonic() - started)
        metrics.gauge("run.duration", report.duration_seconds)

        if report.ok:
            log_run_progress("Run finished", **{k: v for k, v in report.to_dict().items() if k != "queries"})
        else:
            log_warning(
                "Run finished with errors",
                error_count=len(report.errors),
                new=report.total("new"),
                notified=report.total("notified"),
            )
        return report

    def process_query(self, query: str) -> QueryReport:
        """Search, deduplicate and notify for one query; never raises DoorkeepError."""
        report = QueryReport(query=query)

        try:
            batch = self.search_client.search(query)
        except FetchError as e:
            log_error("Fetch failed, skipping query", query=query, error=str(e))
            self._record_error(report, e)
            return report

        report.fetched = len(batch)
        metrics.incr("results.fetched", len(batch))

        try:
            outcome = self.deduplicator.process(batch, query=query)
        except DoorkeepError as e:
            log_error("Deduplication failed, skipping query", query=query, error=str(e))
            self._record_error(report, e)
            return report

        report.new = len(outcome.new_records)
        report.seen = len(outcome.seen)
        metrics.incr("results.new", report.new)
        metrics.incr("results.seen", report.seen)
        for process_error in outcome.errors:
            self._record_error(report, process_error)

        # Records are already committed; a failed delivery is reported, not undone
        for record in outcome.new_records:
            try:
                self.notifier.notify(record)
            except NotifyFailed as e:
                log_error("Notification failed; record stays stored", key=str(record.key), error=str(e))
                metrics.incr("notifications.failed")
                self._record_error(report, e)
                continue
            report.notified += 1
            metrics.incr("notifications.sent")

        log_info("Query processed", **{k: v for k, v in report.to_dict().items() if k != "errors"},
                 error_count=len(report.errors))
        return report

    @staticmethod
    def _record_error(report: QueryReport, error: RunError) -> None:
        report.errors.append(error)
        metrics.incr("errors", kind=_error_kind(error))
