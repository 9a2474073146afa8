"""File-based persistent result store."""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from doorkeep.errors import StoreCorrupt, StoreUnavailable
from doorkeep.models import ResultKey, StoredRecord
from .base import ResultStore

FILE_FORMAT_VERSION = 1


class FileResultStore(ResultStore):
    """JSON-file store for single-instance deployments.

    The whole document is rewritten atomically (temp file + ``os.replace``)
    on every insert. Check-and-set is atomic within one process only.
    """

    def __init__(self, path: str = ".doorkeep/results.json", name: str = "file"):
        super().__init__(name)
        self.path = Path(path)
        self._lock = threading.Lock()
        self._records: Optional[Dict[str, Dict[str, Any]]] = None

    def _load(self) -> Dict[str, Dict[str, Any]]:
        """Load the document on first use. Caller holds the lock."""
        if self._records is not None:
            return self._records

        if not self.path.exists():
            self._records = {}
            return self._records

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            self._record_error()
            raise StoreCorrupt(f"{self.path} is not valid JSON: {e}") from e
        except OSError as e:
            self._record_error()
            raise StoreUnavailable(f"Cannot read {self.path}: {e}") from e

        records = data.get("records") if isinstance(data, dict) else None
        if not isinstance(records, dict):
            self._record_error()
            raise StoreCorrupt(f"{self.path} has no 'records' mapping")

        self._records = records
        return self._records

    def _save(self, records: Dict[str, Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".results-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"version": FILE_FORMAT_VERSION, "records": records}, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def exists(self, key: ResultKey) -> bool:
        with self._lock:
            return key.render() in self._load()

    def insert_if_absent(self, key: ResultKey, record: StoredRecord) -> bool:
        rendered = key.render()
        with self._lock:
            records = self._load()
            if rendered in records:
                self._record_insert(False)
                return False

            records[rendered] = record.to_item()
            try:
                self._save(records)
            except OSError as e:
                del records[rendered]
                self._record_error()
                raise StoreUnavailable(f"Cannot write {self.path}: {e}") from e

        self._record_insert(True)
        return True

    def get(self, key: ResultKey) -> Optional[StoredRecord]:
        with self._lock:
            item = self._load().get(key.render())
        if item is None:
            return None
        try:
            return StoredRecord.from_item(item)
        except (KeyError, TypeError) as e:
            self._record_error()
            raise StoreCorrupt(f"Stored record {key} is malformed: {e}") from e

    def get_stats(self):
        with self._lock:
            size = len(self._records) if self._records is not None else None
        return {**super().get_stats(), "path": str(self.path), "size": size}
