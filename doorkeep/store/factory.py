"""Store construction from configuration."""

from enum import Enum

from doorkeep.utils.logger import log_info
from .base import ResultStore
from .dynamodb_store import DynamoDBResultStore, create_dynamodb_client
from .file_store import FileResultStore
from .memory_store import MemoryResultStore
from .redis_store import RedisResultStore


class StoreBackendType(Enum):
    """Store backend types."""

    DYNAMODB = "dynamodb"
    REDIS = "redis"
    FILE = "file"
    MEMORY = "memory"


def build_store(config) -> ResultStore:
    """Create the store selected by ``config.store_backend``.

    There is no fallback to another backend; an unusable backend surfaces
    as ``StoreUnavailable`` on first use.
    """
    backend_type = StoreBackendType(config.store_backend.lower())

    if backend_type is StoreBackendType.DYNAMODB:
        client = create_dynamodb_client(
            region=config.aws_region,
            access_key_id=config.aws_access_key_id,
            secret_access_key=config.aws_secret_access_key,
            endpoint_url=config.dynamodb_endpoint_url,
        )
        store = DynamoDBResultStore(table_name=config.dynamodb_table, client=client)
    elif backend_type is StoreBackendType.REDIS:
        store = RedisResultStore(redis_url=config.redis_url, key_prefix=config.redis_key_prefix)
    elif backend_type is StoreBackendType.FILE:
        store = FileResultStore(path=config.file_store_path)
    else:
        store = MemoryResultStore()

    log_info("Result store created", backend=store.name)
    return store
