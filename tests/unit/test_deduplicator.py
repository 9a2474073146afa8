"""Unit tests for the Deduplicator.

Covers NEW/SEEN classification, self-dedup within a batch, idempotent
re-runs, rank independence and per-result failure isolation.
"""

import pytest

from doorkeep.dedup import Deduplicator, DedupOutcome, ProcessError
from doorkeep.errors import StoreCorrupt, StoreRejected, StoreUnavailable
from doorkeep.models import ResultKey
from doorkeep.store import MemoryResultStore

pytestmark = pytest.mark.dedup


class FlakyStore(MemoryResultStore):
    """Memory store that fails for selected titles."""

    def __init__(self, unavailable=(), corrupt=(), rejected=()):
        super().__init__(name="flaky")
        self.unavailable = set(unavailable)
        self.corrupt = set(corrupt)
        self.rejected = set(rejected)

    def insert_if_absent(self, key, record):
        if key.title in self.unavailable:
            raise StoreUnavailable("throttled")
        if key.title in self.corrupt:
            raise StoreCorrupt("unreadable")
        if key.title in self.rejected:
            raise StoreRejected("key too large")
        return super().insert_if_absent(key, record)


class TestClassification:
    """Test NEW/SEEN decisions."""

    def test_empty_store_all_new(self, make_result, memory_store):
        batch = [make_result(title="A", link="x"), make_result(title="B", link="y")]

        outcome = Deduplicator(memory_store).process(batch, query="q")

        assert [r.key for r in outcome.new_records] == [ResultKey("A", "x"), ResultKey("B", "y")]
        assert outcome.seen == []
        assert outcome.ok
        assert len(memory_store) == 2

    def test_new_records_carry_query(self, make_result, memory_store):
        outcome = Deduplicator(memory_store).process([make_result()], query="site:example.com")
        assert outcome.new_records[0].attributes["query"] == "site:example.com"

    def test_preexisting_key_is_seen(self, make_result, memory_store):
        dedup = Deduplicator(memory_store)
        dedup.process([make_result(title="A", link="x")])

        outcome = dedup.process([make_result(title="A", link="x"), make_result(title="C", link="z")])

        assert [r.key for r in outcome.new_records] == [ResultKey("C", "z")]
        assert outcome.seen == [ResultKey("A", "x")]

    def test_self_dedup_within_batch(self, make_result, memory_store):
        batch = [
            make_result(title="A", link="x"),
            make_result(title="B", link="y"),
            make_result(title="A", link="x"),
        ]

        outcome = Deduplicator(memory_store).process(batch)

        new_keys = [r.key for r in outcome.new_records]
        assert new_keys == [ResultKey("A", "x"), ResultKey("B", "y")]
        assert new_keys.count(ResultKey("A", "x")) == 1
        assert outcome.seen == [ResultKey("A", "x")]

    def test_first_occurrence_wins(self, make_result, memory_store):
        batch = [
            make_result(title="A", link="x", snippet="first"),
            make_result(title="A", link="x", snippet="second"),
        ]
        outcome = Deduplicator(memory_store).process(batch)

        assert len(outcome.new_records) == 1
        assert outcome.new_records[0].snippet == "first"
        assert memory_store.get(ResultKey("A", "x")).snippet == "first"

    def test_idempotent_rerun(self, make_result, memory_store):
        batch = [make_result(title=t, link=f"https://example.com/{t}") for t in "ABCD"]
        dedup = Deduplicator(memory_store)

        first = dedup.process(batch)
        second = dedup.process(batch)

        assert len(first.new_records) == len(batch)
        assert second.new_records == []
        assert len(second.seen) == len(batch)

    def test_rank_change_is_still_seen(self, make_result, memory_store):
        dedup = Deduplicator(memory_store)
        dedup.process([make_result(title="A", link="x", position=1)])

        outcome = dedup.process([make_result(title="A", link="x", position=2)])

        assert outcome.new_records == []
        assert outcome.seen == [ResultKey("A", "x")]

    def test_same_title_different_link_is_new(self, make_result, memory_store):
        dedup = Deduplicator(memory_store)
        dedup.process([make_result(title="A", link="x")])

        outcome = dedup.process([make_result(title="A", link="y")])

        assert [r.key for r in outcome.new_records] == [ResultKey("A", "y")]

    def test_empty_batch(self, memory_store):
        outcome = Deduplicator(memory_store).process([])
        assert outcome == DedupOutcome()


class TestFailureIsolation:
    """Test that one result's store failure never aborts the batch."""

    def test_unavailable_middle_result(self, make_result):
        store = FlakyStore(unavailable={"B"})
        batch = [
            make_result(title="A", link="x"),
            make_result(title="B", link="y"),
            make_result(title="C", link="z"),
        ]

        outcome = Deduplicator(store).process(batch)

        assert [r.key for r in outcome.new_records] == [ResultKey("A", "x"), ResultKey("C", "z")]
        assert store.exists(ResultKey("A", "x"))
        assert store.exists(ResultKey("C", "z"))
        assert not store.exists(ResultKey("B", "y"))
        assert len(outcome.errors) == 1
        assert isinstance(outcome.errors[0], ProcessError)
        assert outcome.errors[0].key == ResultKey("B", "y")
        assert isinstance(outcome.errors[0].cause, StoreUnavailable)
        assert not outcome.ok

    def test_unavailable_result_is_new_on_retry(self, make_result):
        store = FlakyStore(unavailable={"B"})
        batch = [make_result(title="A", link="x"), make_result(title="B", link="y")]
        dedup = Deduplicator(store)
        dedup.process(batch)

        store.unavailable.clear()
        retry = dedup.process(batch)

        assert [r.key for r in retry.new_records] == [ResultKey("B", "y")]

    def test_corrupt_is_treated_as_seen(self, make_result):
        store = FlakyStore(corrupt={"B"})
        batch = [make_result(title="B", link="y")]

        outcome = Deduplicator(store).process(batch)

        assert outcome.new_records == []
        assert outcome.seen == [ResultKey("B", "y")]
        assert isinstance(outcome.errors[0].cause, StoreCorrupt)

    def test_rejected_result_is_skipped(self, make_result):
        store = FlakyStore(rejected={"B"})
        batch = [make_result(title="B", link="y"), make_result(title="C", link="z")]

        outcome = Deduplicator(store).process(batch)

        assert [r.key for r in outcome.new_records] == [ResultKey("C", "z")]
        assert outcome.seen == []
        assert isinstance(outcome.errors[0].cause, StoreRejected)

    def test_process_error_str(self):
        error = ProcessError(key=ResultKey("A", "x"), cause=StoreUnavailable("throttled"))
        assert str(error) == "('A', 'x'): throttled"
