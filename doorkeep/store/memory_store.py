"""In-memory result store for tests and dry runs."""

import threading
from typing import Dict, Optional

from doorkeep.models import ResultKey, StoredRecord
from .base import ResultStore


class MemoryResultStore(ResultStore):
    """Dict-backed store; forgets everything when the process exits."""

    def __init__(self, name: str = "memory"):
        super().__init__(name)
        self.records: Dict[ResultKey, StoredRecord] = {}
        self._lock = threading.Lock()

    def exists(self, key: ResultKey) -> bool:
        with self._lock:
            return key in self.records

    def insert_if_absent(self, key: ResultKey, record: StoredRecord) -> bool:
        with self._lock:
            if key in self.records:
                inserted = False
            else:
                self.records[key] = record
                inserted = True
        self._record_insert(inserted)
        return inserted

    def get(self, key: ResultKey) -> Optional[StoredRecord]:
        with self._lock:
            return self.records.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self.records)

    def get_stats(self):
        return {**super().get_stats(), "size": len(self)}
