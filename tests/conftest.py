"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import hashlib
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import pytest

from s3_classes.core.config import Settings
from s3_classes.services.storage import (
    AioLocalFileSystem,
    ListPage,
    StorageRemoteError,
)

_TEST_BUCKET = "test-bucket"
_FILE_CONTENTS = b"this is the string I'll use for my file contents"


def _etag(data: bytes) -> str:
    return f'"{hashlib.md5(data).hexdigest()}"'


class InMemoryStorageClient:
    """ObjectStorageClient fake keeping objects in dictionaries.

    Listings are sorted by key and honour ``Prefix`` and ``MaxKeys``; the
    continuation token is the offset of the next key.
    """

    def __init__(self, *buckets: str) -> None:
        self.buckets: dict[str, dict[str, bytes]] = {name: {} for name in buckets}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _record(self, operation: str, params: Mapping[str, Any]) -> None:
        self.calls.append((operation, {k: v for k, v in params.items() if k != "Body"}))

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def _bucket(self, params: Mapping[str, Any]) -> dict[str, bytes]:
        try:
            return self.buckets[params["Bucket"]]
        except KeyError:
            raise StorageRemoteError("NoSuchBucket", params=params) from None

    def _object(self, params: Mapping[str, Any]) -> bytes:
        try:
            return self._bucket(params)[params["Key"]]
        except KeyError:
            raise StorageRemoteError("NoSuchKey", params=params) from None

    async def list_page(self, params: Mapping[str, Any]) -> ListPage:
        self._record("list_page", params)
        objects = self._bucket(params)
        keys = sorted(k for k in objects if k.startswith(params.get("Prefix", "")))
        start = int(params.get("ContinuationToken") or 0)
        max_keys = int(params.get("MaxKeys", 1000))
        end = start + max_keys
        truncated = end < len(keys)
        return ListPage(
            entries=[
                {"Key": key, "Size": len(objects[key]), "ETag": _etag(objects[key])}
                for key in keys[start:end]
            ],
            is_truncated=truncated,
            next_continuation_token=str(end) if truncated else None,
        )

    async def fetch_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        self._record("fetch_object", params)
        data = self._object(params)
        return {"Body": data, "ContentLength": len(data), "ETag": _etag(data)}

    @asynccontextmanager
    async def fetch_object_stream(
        self,
        params: Mapping[str, Any],
    ) -> AsyncIterator[AsyncIterator[bytes]]:
        self._record("fetch_object_stream", params)
        data = self._object(params)

        async def chunks() -> AsyncIterator[bytes]:
            for i in range(0, len(data), 8):
                yield data[i : i + 8]

        yield chunks()

    async def write_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        self._record("write_object", params)
        body = params.get("Body", b"")
        data = bytes(body) if isinstance(body, (bytes, bytearray)) else await body.read()
        self._bucket(params)[params["Key"]] = data
        return {"ETag": _etag(data)}

    async def copy_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        self._record("copy_object", params)
        source_bucket, _, source_key = params["CopySource"].partition("/")
        data = self._object({"Bucket": source_bucket, "Key": source_key})
        self._bucket(params)[params["Key"]] = data
        return {"CopyObjectResult": {"ETag": _etag(data)}}

    async def delete_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        self._record("delete_object", params)
        self._bucket(params).pop(params["Key"], None)
        return {}

    async def delete_objects(self, params: Mapping[str, Any]) -> dict[str, Any]:
        self._record("delete_objects", params)
        objects = self._bucket(params)
        deleted = []
        for item in params["Delete"]["Objects"]:
            objects.pop(item["Key"], None)
            deleted.append({"Key": item["Key"]})
        return {"Deleted": deleted, "Errors": []}


@pytest.fixture
def settings() -> Settings:
    """Provide test settings."""
    return Settings(
        s3_endpoint_url="http://127.0.0.1:9000",
        s3_region="us-east-1",
        s3_access_key_id="test_key",
        s3_secret_access_key="test_secret",
        stream_chunk_size=4,
    )


@pytest.fixture
def storage_client() -> InMemoryStorageClient:
    """Provide an in-memory storage client with an empty test bucket."""
    return InMemoryStorageClient(_TEST_BUCKET)


@pytest.fixture
def filesystem() -> AioLocalFileSystem:
    return AioLocalFileSystem()


@pytest.fixture
def local_file(tmp_path) -> str:
    """Create a local file with known contents."""
    path = tmp_path / "mytest.txt"
    path.write_bytes(_FILE_CONTENTS)
    return str(path)


@pytest.fixture
def bucket_name() -> str:
    """Name of the bucket created in ``storage_client``."""
    return _TEST_BUCKET


@pytest.fixture
def file_contents() -> bytes:
    """Contents of ``local_file``."""
    return _FILE_CONTENTS
