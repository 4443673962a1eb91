"""AWS storage adapters — S3 for content, DynamoDB for metadata.

boto3 clients are synchronous; every call runs in a worker thread via
asyncio.to_thread so the event loop stays free.

Layout:
    S3      <ownerId>/<id>                      fragment content
    S3      <ownerId>/versions/<versionId>      version content
    Dynamo  (ownerId, id) recordType=fragment   fragment metadata JSON
    Dynamo  (ownerId, id) recordType=version    version metadata JSON
"""

from __future__ import annotations

import asyncio
from typing import Any

import boto3
import structlog
from boto3.dynamodb.conditions import Attr, Key
from boto3.dynamodb.types import Binary
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from fragments.config.settings import FragmentsSettings
from fragments.exceptions import StorageError
from fragments.storage.base import StorageBackend, StoredValue
from fragments.utils.hashing import hash_owner

logger = structlog.get_logger()

FRAGMENT_RECORD = "fragment"
VERSION_RECORD = "version"
VERSIONS_PREFIX = "versions/"

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}

_BOTO_CONFIG = BotoConfig(retries={"max_attempts": 5, "mode": "standard"})


def _is_missing(exc: ClientError) -> bool:
    code = exc.response.get("Error", {}).get("Code", "")
    return code in _MISSING_CODES


class S3BlobStore:
    """KeyValueStore over one S3 bucket, one key prefix per store."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        *,
        client: Any = None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        if not bucket:
            raise ValueError("S3 bucket name required. Set AWS_S3_BUCKET_NAME.")
        self._bucket = bucket
        self._prefix = prefix
        self._client = client or boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=_BOTO_CONFIG,
        )

    def _object_key(self, owner_id: str, key: str) -> str:
        return f"{owner_id}/{self._prefix}{key}"

    async def put(self, owner_id: str, key: str, value: StoredValue) -> None:
        object_key = self._object_key(owner_id, key)
        body = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=object_key,
                Body=body,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error(
                "Error uploading object to S3",
                bucket=self._bucket,
                key=object_key,
                error=str(exc),
            )
            raise StorageError("unable to upload fragment data", key=object_key) from exc
        logger.debug("Uploaded object to S3", key=object_key, size=len(body))

    def _read_object(self, object_key: str) -> bytes | None:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=object_key)
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise
        return response["Body"].read()

    async def get(self, owner_id: str, key: str) -> bytes | None:
        object_key = self._object_key(owner_id, key)
        try:
            return await asyncio.to_thread(self._read_object, object_key)
        except (ClientError, BotoCoreError) as exc:
            logger.error(
                "Error streaming object from S3",
                bucket=self._bucket,
                key=object_key,
                error=str(exc),
            )
            raise StorageError("unable to read fragment data", key=object_key) from exc

    async def delete(self, owner_id: str, key: str) -> None:
        object_key = self._object_key(owner_id, key)
        try:
            await asyncio.to_thread(
                self._client.delete_object,
                Bucket=self._bucket,
                Key=object_key,
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("Error deleting object from S3", key=object_key, error=str(exc))
            raise StorageError("unable to delete fragment data", key=object_key) from exc

    def _list_sync(self, owner_id: str) -> list[str]:
        prefix = self._object_key(owner_id, "")
        keys: list[str] = []
        paginator = self._client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
            for obj in page.get("Contents", []):
                name = obj["Key"][len(prefix):]
                # Nested prefixes (e.g. versions/) belong to other stores
                if name and "/" not in name:
                    keys.append(name)
        return keys

    async def list_keys(self, owner_id: str) -> list[str]:
        try:
            return await asyncio.to_thread(self._list_sync, owner_id)
        except (ClientError, BotoCoreError) as exc:
            logger.error("Error listing objects in S3", owner=hash_owner(owner_id), error=str(exc))
            raise StorageError("unable to list fragment data") from exc


class DynamoTableStore:
    """KeyValueStore over one DynamoDB table keyed by (ownerId, id).

    Several stores share a table; ``record_type`` keeps their rows apart.
    """

    def __init__(
        self,
        table_name: str,
        record_type: str,
        *,
        table: Any = None,
        region: str | None = None,
        endpoint_url: str | None = None,
    ) -> None:
        if not table_name:
            raise ValueError("DynamoDB table name required. Set AWS_DYNAMODB_TABLE_NAME.")
        self._table_name = table_name
        self._record_type = record_type
        if table is None:
            resource = boto3.resource(
                "dynamodb",
                region_name=region,
                endpoint_url=endpoint_url,
                config=_BOTO_CONFIG,
            )
            table = resource.Table(table_name)
        self._table = table

    async def put(self, owner_id: str, key: str, value: StoredValue) -> None:
        item = {
            "ownerId": owner_id,
            "id": key,
            "recordType": self._record_type,
            "value": value,
        }
        try:
            await asyncio.to_thread(self._table.put_item, Item=item)
        except (ClientError, BotoCoreError) as exc:
            logger.warning(
                "Error writing item to DynamoDB",
                table=self._table_name,
                record_type=self._record_type,
                key=key,
                error=str(exc),
            )
            raise StorageError("unable to write metadata", key=key) from exc

    async def get(self, owner_id: str, key: str) -> StoredValue | None:
        try:
            response = await asyncio.to_thread(
                self._table.get_item,
                Key={"ownerId": owner_id, "id": key},
            )
        except (ClientError, BotoCoreError) as exc:
            logger.warning(
                "Error reading item from DynamoDB",
                table=self._table_name,
                key=key,
                error=str(exc),
            )
            raise StorageError("unable to read metadata", key=key) from exc

        item = response.get("Item")
        if item is None or item.get("recordType") != self._record_type:
            return None
        value = item.get("value")
        if isinstance(value, Binary):
            return bytes(value.value)
        return value

    async def delete(self, owner_id: str, key: str) -> None:
        try:
            await asyncio.to_thread(
                self._table.delete_item,
                Key={"ownerId": owner_id, "id": key},
            )
        except (ClientError, BotoCoreError) as exc:
            logger.error("Error deleting item from DynamoDB", key=key, error=str(exc))
            raise StorageError("unable to delete metadata", key=key) from exc

    def _query_sync(self, owner_id: str) -> list[str]:
        params: dict[str, Any] = {
            "KeyConditionExpression": Key("ownerId").eq(owner_id),
            "FilterExpression": Attr("recordType").eq(self._record_type),
            "ProjectionExpression": "id",
        }
        keys: list[str] = []
        while True:
            response = self._table.query(**params)
            keys.extend(item["id"] for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return keys
            params["ExclusiveStartKey"] = last_key

    async def list_keys(self, owner_id: str) -> list[str]:
        try:
            return await asyncio.to_thread(self._query_sync, owner_id)
        except (ClientError, BotoCoreError) as exc:
            logger.error(
                "Error querying DynamoDB",
                table=self._table_name,
                record_type=self._record_type,
                error=str(exc),
            )
            raise StorageError("unable to list metadata") from exc


def aws_backend(settings: FragmentsSettings) -> StorageBackend:
    """A StorageBackend over the bucket and table named in settings."""
    s3_client = boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
        config=_BOTO_CONFIG,
    )
    dynamodb = boto3.resource(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=settings.dynamodb_endpoint_url,
        config=_BOTO_CONFIG,
    )
    table = dynamodb.Table(settings.dynamodb_table)

    return StorageBackend(
        metadata=DynamoTableStore(settings.dynamodb_table, FRAGMENT_RECORD, table=table),
        data=S3BlobStore(settings.s3_bucket, client=s3_client),
        version_metadata=DynamoTableStore(settings.dynamodb_table, VERSION_RECORD, table=table),
        version_data=S3BlobStore(settings.s3_bucket, VERSIONS_PREFIX, client=s3_client),
    )
