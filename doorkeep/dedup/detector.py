"""Batch deduplication against the result store.

The ``Deduplicator`` classifies each incoming result as NEW or SEEN by
attempting a conditional insert. A successful insert both classifies the
result and commits it, so a result can only ever be NEW once, even across
overlapping invocations.
"""

from __future__ import annotations

from typing import Iterable, Optional

from doorkeep.dedup.result import DedupOutcome, ProcessError
from doorkeep.errors import StoreCorrupt, StoreRejected, StoreUnavailable
from doorkeep.models import ResultKey, SearchResult, StoredRecord
from doorkeep.store.base import ResultStore
from doorkeep.utils.logger import log_debug, log_error, log_info, log_result_classification, log_warning


class Deduplicator:
    """Classify and commit a batch of search results.

    Args:
        store: Store providing the atomic ``insert_if_absent``.

    Usage::

        outcome = Deduplicator(store).process(results, query="site:example.com")
        for record in outcome.new_records:
            notifier.notify(record)
    """

    def __init__(self, store: ResultStore):
        self.store = store

    def process(self, batch: Iterable[SearchResult], query: Optional[str] = None) -> DedupOutcome:
        """Classify ``batch`` in its incoming order.

        Args:
            batch: Results of one query.
            query: Query that produced the batch, stored as metadata.

        Returns:
            ``DedupOutcome``. Repeated keys within the batch are NEW only on
            their first occurrence. A store failure on one result is
            recorded and processing continues with the next.
        """
        outcome = DedupOutcome()

        for result in batch:
            key = ResultKey.from_result(result)
            record = StoredRecord.from_result(result, query=query)

            try:
                inserted = self.store.insert_if_absent(key, record)
            except StoreCorrupt as e:
                # Unreadable existing state: never risk a second notification
                log_warning("Store record unreadable, treating result as seen", key=str(key), error=str(e))
                outcome.seen.append(key)
                outcome.errors.append(ProcessError(key=key, cause=e))
                continue
            except StoreUnavailable as e:
                log_error("Store unavailable, result skipped", key=str(key), error=str(e))
                outcome.errors.append(ProcessError(key=key, cause=e))
                continue
            except StoreRejected as e:
                log_error("Store rejected result, skipped", key=str(key), error=str(e))
                outcome.errors.append(ProcessError(key=key, cause=e))
                continue

            if inserted:
                log_result_classification("new", key.title, key.link, position=result.position)
                outcome.new_records.append(record)
            else:
                log_result_classification("seen", key.title, key.link, position=result.position)
                outcome.seen.append(key)

        log_info(
            "Batch deduplicated",
            query=query,
            new=len(outcome.new_records),
            seen=len(outcome.seen),
            errors=len(outcome.errors),
        )
        if outcome.errors:
            log_debug("Deduplication errors", errors=[str(e) for e in outcome.errors])
        return outcome
