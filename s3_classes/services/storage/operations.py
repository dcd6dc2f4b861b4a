"""Per-operation services over an object storage client.

Each service wraps one family of S3 calls. Request parameters are the
same mappings the S3 API takes; a few results gain ``Bucket`` and ``Key``
for convenience. Highlights over the stock calls:

- get and put stream to and from local files
- list follows continuation tokens until the listing is complete
- batch get fetches many objects with a bounded number of calls in flight
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .base import LocalFileSystem, ObjectStorageClient
from .exceptions import (
    LocalIOError,
    StorageConstructionError,
    StorageError,
    StorageRemoteError,
    StorageValidationError,
)
from .filesystem import AioLocalFileSystem
from .paginator import ListPaginator, require_bucket
from .runner import HybridRunner
from .schemas import LocalFileResult

if TYPE_CHECKING:
    from s3_classes.core.config import Settings

logger = logging.getLogger(__name__)


def _check_client(client: Any, service: str) -> ObjectStorageClient:
    if client is None or not isinstance(client, ObjectStorageClient):
        raise StorageConstructionError(
            f"{service}: a storage client implementing ObjectStorageClient is required"
        )
    return client


def _check_filesystem(filesystem: Any, service: str) -> LocalFileSystem:
    if filesystem is None:
        return AioLocalFileSystem()
    if not isinstance(filesystem, LocalFileSystem):
        raise StorageConstructionError(
            f"{service}: filesystem must implement LocalFileSystem"
        )
    return filesystem


def _with_location(result: Mapping[str, Any], params: Mapping[str, Any]) -> dict[str, Any]:
    """Copy ``result`` adding the request's Bucket and Key."""
    return {**result, "Bucket": params.get("Bucket"), "Key": params.get("Key")}


class CopyService:
    """Server-side object copies."""

    def __init__(self, client: ObjectStorageClient) -> None:
        self._client = _check_client(client, "CopyService")

    async def copy_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Copy an object.

        Args:
            params: ``copy_object`` parameters: target ``Bucket`` and ``Key``,
                and ``CopySource`` as ``"bucket/key"``.

        Returns:
            The ``copy_object`` response.
        """
        result = await self._client.copy_object(params)
        logger.info(f"Copied {params.get('CopySource')} to {params.get('Bucket')}/{params.get('Key')}")
        return result


class DeleteService:
    """Single and bulk object deletion."""

    def __init__(self, client: ObjectStorageClient) -> None:
        self._client = _check_client(client, "DeleteService")

    async def delete_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Delete one object identified by ``Bucket`` and ``Key``."""
        result = await self._client.delete_object(params)
        logger.info(f"Deleted {params.get('Bucket')}/{params.get('Key')}")
        return result

    async def delete_objects(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Delete several objects in one request.

        Args:
            params: ``Bucket`` and ``Delete={"Objects": [{"Key": ...}, ...]}``.

        Returns:
            Response with ``Deleted`` and ``Errors`` lists.
        """
        result = await self._client.delete_objects(params)
        logger.info(
            f"Deleted {len(result.get('Deleted', []))} objects from {params.get('Bucket')}"
        )
        return result


class GetService:
    """Object retrieval to memory or to local files."""

    def __init__(
        self,
        client: ObjectStorageClient,
        filesystem: LocalFileSystem | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize get service.

        Args:
            client: Storage client used for every fetch.
            filesystem: Local file access (aiofiles by default).
            settings: Supplies the default batch concurrency (1 without settings).
        """
        self._client = _check_client(client, "GetService")
        self._filesystem = _check_filesystem(filesystem, "GetService")
        self._default_concurrency = settings.default_concurrency if settings is not None else 1

    async def get_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Fetch an object into memory.

        Args:
            params: ``get_object`` parameters.

        Returns:
            The ``get_object`` response with ``Body`` as bytes, plus
            ``Bucket`` and ``Key`` which S3 does not return.

        Raises:
            StorageValidationError: If ``Bucket`` is missing.
        """
        require_bucket(params, "get_object")
        data = await self._client.fetch_object(params)
        return _with_location(data, params)

    async def get_objects(
        self,
        params_list: Sequence[Mapping[str, Any]],
        concurrency: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch many objects into memory.

        Useful for large lists of small objects. ``concurrency`` bounds how
        many requests are in flight at once. When omitted, the service's
        default applies: ``Settings.default_concurrency``, or 1 (serial)
        without settings.

        Returns:
            One ``get_object`` result per request, in request order.

        Raises:
            StorageValidationError: If concurrency is below 1.
            BatchFailure: On the first failed fetch.
        """
        if concurrency is None:
            concurrency = self._default_concurrency
        runner: HybridRunner[Mapping[str, Any], dict[str, Any]] = HybridRunner(concurrency)
        results = await runner.run(params_list, self.get_object)
        logger.info(f"Fetched {len(results)} objects with concurrency {concurrency}")
        return results

    async def write_object_to_local_file(
        self,
        params: Mapping[str, Any],
        filename: str,
    ) -> LocalFileResult:
        """Stream an object into a new local file.

        The result is returned only after the local file has been closed.
        A partially written file is left in place on failure.

        Raises:
            StorageValidationError: If ``Bucket`` or ``filename`` is missing.
            LocalIOError: If the local file cannot be created or written.
            StorageRemoteError: If the object cannot be read.
        """
        require_bucket(params, "write_object_to_local_file")
        if not filename:
            raise StorageValidationError("write_object_to_local_file: a filename must be supplied")

        config = dict(params)
        try:
            async with self._filesystem.open_write_stream(filename) as out:
                await self._stream_into(config, out, filename)
        except OSError as e:
            raise LocalIOError(f"Failed to write {filename}: {e}", path=filename, cause=e) from e

        logger.info(f"Wrote {config['Bucket']}/{config.get('Key')} to {filename}")
        return LocalFileResult(config=config, filename=filename)

    async def _stream_into(self, config: dict[str, Any], out: Any, filename: str) -> None:
        try:
            async with self._client.fetch_object_stream(config) as chunks:
                await self._copy_chunks(chunks, out, filename)
        except StorageError:
            raise
        except Exception as e:
            raise StorageRemoteError(
                f"Failed to read {config['Bucket']}/{config.get('Key')}: {e}",
                params=config,
                cause=e,
            ) from e

    @staticmethod
    async def _copy_chunks(chunks: AsyncIterator[bytes], out: Any, filename: str) -> None:
        async for chunk in chunks:
            try:
                await out.write(chunk)
            except Exception as e:
                raise LocalIOError(f"Failed to write {filename}: {e}", path=filename, cause=e) from e


class ListService:
    """Complete bucket listings."""

    def __init__(self, client: ObjectStorageClient) -> None:
        self._client = _check_client(client, "ListService")
        self._paginator = ListPaginator(self._client)

    async def list_objects(self, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        """List every object matching ``params``.

        S3 returns at most ``MaxKeys`` (1000 by default) objects per call;
        further pages are requested until the listing is complete. Each
        entry gains a ``Bucket`` field.

        Raises:
            StorageValidationError: If ``Bucket`` is missing.
            ListingError: If any page fails. No partial list is returned.
        """
        return await self._paginator.list_all(params)


class PutService:
    """Object uploads from local files."""

    def __init__(
        self,
        client: ObjectStorageClient,
        filesystem: LocalFileSystem | None = None,
    ) -> None:
        self._client = _check_client(client, "PutService")
        self._filesystem = _check_filesystem(filesystem, "PutService")

    async def write_object_from_local_file(
        self,
        params: Mapping[str, Any],
        filepath: str,
    ) -> dict[str, Any]:
        """Upload a local file, streaming it as the request body.

        Args:
            params: ``put_object`` parameters without ``Body``.
            filepath: File to upload.

        Returns:
            The write response (``ETag``, ...) plus ``Bucket`` and ``Key``.

        Raises:
            StorageValidationError: If ``Bucket`` or ``filepath`` is missing.
            LocalIOError: If the file is not readable. Nothing is sent.
        """
        require_bucket(params, "write_object_from_local_file")
        if not filepath:
            raise StorageValidationError("write_object_from_local_file: a filepath must be supplied")

        await self._filesystem.check_read_access(filepath)
        async with self._filesystem.open_read_stream(filepath) as stream:
            result = await self._client.write_object({**params, "Body": stream})

        logger.info(f"Uploaded {filepath} to {params['Bucket']}/{params.get('Key')}")
        return _with_location(result, params)
