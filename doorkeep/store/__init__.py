"""Persistent record of previously seen search results.

Backends:
- DynamoDB: conditional puts on a (title, link) keyed table
- Redis: ``SET NX`` on prefixed keys
- File: JSON document for single-instance deployments
- Memory: tests
- DryRun: read-through wrapper that never writes to its backing store
"""

from .base import ResultStore
from .dry_run_store import DryRunResultStore
from .dynamodb_store import DynamoDBResultStore
from .factory import StoreBackendType, build_store
from .file_store import FileResultStore
from .memory_store import MemoryResultStore
from .redis_store import RedisResultStore

__all__ = [
    "ResultStore",
    "DryRunResultStore",
    "DynamoDBResultStore",
    "RedisResultStore",
    "FileResultStore",
    "MemoryResultStore",
    "StoreBackendType",
    "build_store",
]
