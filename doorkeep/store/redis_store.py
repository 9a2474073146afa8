"""Redis-based result store."""

import json
from typing import Optional

import redis

from doorkeep.errors import StoreCorrupt, StoreUnavailable
from doorkeep.models import ResultKey, StoredRecord
from .base import ResultStore


class RedisResultStore(ResultStore):
    """Redis store using ``SET ... NX`` as the conditional insert."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0",
                 key_prefix: str = "doorkeep:", name: str = "redis",
                 client: Optional[redis.Redis] = None):
        super().__init__(name)
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.client = client if client is not None else redis.Redis.from_url(redis_url)

    def _make_key(self, key: ResultKey) -> str:
        """Create Redis key with prefix."""
        return f"{self.key_prefix}{key.render()}"

    def exists(self, key: ResultKey) -> bool:
        try:
            return self.client.exists(self._make_key(key)) > 0
        except redis.RedisError as e:
            self._record_error()
            raise StoreUnavailable(f"Redis lookup failed: {e}") from e

    def insert_if_absent(self, key: ResultKey, record: StoredRecord) -> bool:
        payload = json.dumps(record.to_item(), ensure_ascii=False)
        try:
            created = self.client.set(self._make_key(key), payload, nx=True)
        except redis.RedisError as e:
            self._record_error()
            raise StoreUnavailable(f"Redis insert failed: {e}") from e

        inserted = bool(created)
        self._record_insert(inserted)
        return inserted

    def get(self, key: ResultKey) -> Optional[StoredRecord]:
        try:
            raw = self.client.get(self._make_key(key))
        except redis.RedisError as e:
            self._record_error()
            raise StoreUnavailable(f"Redis read failed: {e}") from e

        if raw is None:
            return None
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            return StoredRecord.from_item(json.loads(raw))
        except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
            self._record_error()
            raise StoreCorrupt(f"Stored record {key} is unreadable: {e}") from e

    def ping(self) -> bool:
        """Check the connection; raises StoreUnavailable when Redis is down."""
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            raise StoreUnavailable(f"Redis ping failed: {e}") from e

    def close(self) -> None:
        self.client.close()

    def get_stats(self):
        return {**super().get_stats(), "key_prefix": self.key_prefix}
