"""Read-through store used in dry-run mode."""

import threading
from typing import Dict, Optional

from doorkeep.models import ResultKey, StoredRecord
from .base import ResultStore


class DryRunResultStore(ResultStore):
    """Classify against a backing store without writing to it.

    Keys already in the backing store are SEEN. Everything else is kept in
    an in-memory overlay, so repeats within the run are still SEEN while
    the backing store stays untouched and a later real run alerts them.
    """

    def __init__(self, backing: ResultStore):
        super().__init__(f"{backing.name}+dry-run")
        self.backing = backing
        self.overlay: Dict[ResultKey, StoredRecord] = {}
        self._lock = threading.Lock()

    def exists(self, key: ResultKey) -> bool:
        with self._lock:
            if key in self.overlay:
                return True
        return self.backing.exists(key)

    def insert_if_absent(self, key: ResultKey, record: StoredRecord) -> bool:
        # Backing store errors propagate as StoreUnavailable
        stored = self.backing.exists(key)

        with self._lock:
            if stored or key in self.overlay:
                inserted = False
            else:
                self.overlay[key] = record
                inserted = True
        self._record_insert(inserted)
        return inserted

    def get(self, key: ResultKey) -> Optional[StoredRecord]:
        with self._lock:
            record = self.overlay.get(key)
        if record is not None:
            return record
        return self.backing.get(key)

    def close(self) -> None:
        self.backing.close()

    def get_stats(self):
        return {**super().get_stats(), "backing": self.backing.get_stats()}
