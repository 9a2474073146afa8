"""Abstract base class for result stores."""

import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from doorkeep.models import ResultKey, StoredRecord


class ResultStore(ABC):
    """Append-only key-value store of previously seen search results.

    Implementations must make :meth:`insert_if_absent` an atomic
    check-and-set: it is the only shared-mutation point when queries are
    processed in parallel.
    """

    def __init__(self, name: str):
        self.name = name
        self.inserted = 0
        self.already_present = 0
        self.errors = 0
        self._stats_lock = threading.Lock()

    @abstractmethod
    def exists(self, key: ResultKey) -> bool:
        """Return whether a record with this key is stored.

        Raises:
            StoreUnavailable: the backend could not be reached.
        """

    @abstractmethod
    def insert_if_absent(self, key: ResultKey, record: StoredRecord) -> bool:
        """Insert ``record`` only if ``key`` is absent.

        Returns:
            True if this call created the record, False if it already existed
            (including when a concurrent writer won the race).

        Raises:
            StoreUnavailable: the backend could not be reached.
        """

    @abstractmethod
    def get(self, key: ResultKey) -> Optional[StoredRecord]:
        """Read back a stored record.

        Raises:
            StoreUnavailable: the backend could not be reached.
            StoreCorrupt: the stored payload could not be decoded.
        """

    def close(self) -> None:
        """Release backend resources."""

    def get_stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        return {
            "backend": self.name,
            "inserted": self.inserted,
            "already_present": self.already_present,
            "errors": self.errors,
        }

    def _record_insert(self, inserted: bool) -> None:
        with self._stats_lock:
            if inserted:
                self.inserted += 1
            else:
                self.already_present += 1

    def _record_error(self) -> None:
        with self._stats_lock:
            self.errors += 1

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
