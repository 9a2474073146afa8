"""Deduplication of search results against the persistent store."""

from doorkeep.dedup.detector import Deduplicator
from doorkeep.dedup.result import DedupOutcome, ProcessError

__all__ = ["Deduplicator", "DedupOutcome", "ProcessError"]
