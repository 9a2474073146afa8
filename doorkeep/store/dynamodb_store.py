"""DynamoDB result store.

The table uses ``title`` (S) as partition key and ``link`` (S) as sort key,
so one item exists per :class:`~doorkeep.models.ResultKey`. Inserts are
conditional puts; a failed condition means the key was already stored.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.exceptions import BotoCoreError, ClientError

from doorkeep.errors import StoreCorrupt, StoreRejected, StoreUnavailable
from doorkeep.models import ResultKey, StoredRecord
from doorkeep.utils.logger import log_debug
from .base import ResultStore

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"
VALIDATION_EXCEPTION = "ValidationException"

# DynamoDB key attribute limits, in UTF-8 bytes
PARTITION_KEY_MAX_BYTES = 2048
SORT_KEY_MAX_BYTES = 1024

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


def create_dynamodb_client(
    region: str,
    access_key_id: str = "",
    secret_access_key: str = "",
    endpoint_url: str = "",
):
    """Build a DynamoDB client from explicit settings.

    Static credentials are used when given; otherwise boto3's default chain
    (environment, shared files, instance role) applies.
    """
    kwargs: Dict[str, Any] = {"region_name": region}
    if access_key_id and secret_access_key:
        kwargs["aws_access_key_id"] = access_key_id
        kwargs["aws_secret_access_key"] = secret_access_key
    if endpoint_url:
        kwargs["endpoint_url"] = endpoint_url
    return boto3.client("dynamodb", **kwargs)


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _validate_key(key: ResultKey) -> None:
    """Reject keys DynamoDB can never store, before calling the API."""
    if not key.title or not key.link:
        raise StoreRejected(f"Empty key attribute in {key}")
    if len(key.title.encode("utf-8")) > PARTITION_KEY_MAX_BYTES:
        raise StoreRejected(f"Title exceeds {PARTITION_KEY_MAX_BYTES} bytes: {key.title[:80]!r}")
    if len(key.link.encode("utf-8")) > SORT_KEY_MAX_BYTES:
        raise StoreRejected(f"Link exceeds {SORT_KEY_MAX_BYTES} bytes: {key.link[:80]!r}")


def _serialize_key(key: ResultKey) -> Dict[str, Any]:
    return {"title": {"S": key.title}, "link": {"S": key.link}}


def _serialize_item(record: StoredRecord) -> Dict[str, Any]:
    return {name: _serializer.serialize(value) for name, value in record.to_item().items()}


def _deserialize_item(item: Dict[str, Any]) -> StoredRecord:
    data = {}
    for name, value in item.items():
        plain = _deserializer.deserialize(value)
        # Numbers come back as Decimal
        if isinstance(plain, Decimal):
            plain = int(plain) if plain == plain.to_integral_value() else float(plain)
        data[name] = plain
    return StoredRecord.from_item(data)


class DynamoDBResultStore(ResultStore):
    """DynamoDB-backed store with conditional-put inserts."""

    def __init__(self, table_name: str = "doorkeep", client=None, name: str = "dynamodb"):
        super().__init__(name)
        self.table_name = table_name
        self.client = client if client is not None else create_dynamodb_client("us-east-1")

    def _check_key(self, key: ResultKey) -> None:
        try:
            _validate_key(key)
        except StoreRejected:
            self._record_error()
            raise

    def _client_error(self, e: ClientError, action: str) -> Exception:
        """Map a ClientError to the store error to raise."""
        self._record_error()
        if _error_code(e) == VALIDATION_EXCEPTION:
            return StoreRejected(f"DynamoDB {action} rejected: {e}")
        return StoreUnavailable(f"DynamoDB {action} failed: {e}")

    def exists(self, key: ResultKey) -> bool:
        self._check_key(key)
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key=_serialize_key(key),
                ProjectionExpression="#t",
                ExpressionAttributeNames={"#t": "title"},
                ConsistentRead=True,
            )
        except ClientError as e:
            raise self._client_error(e, "lookup") from e
        except BotoCoreError as e:
            self._record_error()
            raise StoreUnavailable(f"DynamoDB lookup failed: {e}") from e
        return bool(response.get("Item"))

    def insert_if_absent(self, key: ResultKey, record: StoredRecord) -> bool:
        self._check_key(key)
        try:
            self.client.put_item(
                TableName=self.table_name,
                Item=_serialize_item(record),
                ConditionExpression="attribute_not_exists(#t)",
                ExpressionAttributeNames={"#t": "title"},
            )
        except ClientError as e:
            if _error_code(e) == CONDITIONAL_CHECK_FAILED:
                log_debug("Conditional put rejected, key already stored", key=str(key))
                self._record_insert(False)
                return False
            raise self._client_error(e, "insert") from e
        except BotoCoreError as e:
            self._record_error()
            raise StoreUnavailable(f"DynamoDB insert failed: {e}") from e

        self._record_insert(True)
        return True

    def get(self, key: ResultKey) -> Optional[StoredRecord]:
        self._check_key(key)
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key=_serialize_key(key),
                ConsistentRead=True,
            )
        except ClientError as e:
            raise self._client_error(e, "read") from e
        except BotoCoreError as e:
            self._record_error()
            raise StoreUnavailable(f"DynamoDB read failed: {e}") from e

        item = response.get("Item")
        if not item:
            return None
        try:
            return _deserialize_item(item)
        except (KeyError, TypeError, ValueError) as e:
            self._record_error()
            raise StoreCorrupt(f"Stored record {key} is unreadable: {e}") from e

    def describe(self) -> Dict[str, Any]:
        """Return table status; used by the health check."""
        try:
            table = self.client.describe_table(TableName=self.table_name)["Table"]
        except (ClientError, BotoCoreError) as e:
            raise StoreUnavailable(f"DynamoDB describe_table failed: {e}") from e
        return {"status": table.get("TableStatus"), "item_count": table.get("ItemCount")}

    def get_stats(self):
        return {**super().get_stats(), "table": self.table_name}
