"""aioboto3-backed object storage client."""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, NoReturn

import aioboto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import StorageRemoteError
from .schemas import ListPage

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client

    from s3_classes.core.config import Settings

logger = logging.getLogger(__name__)

# Parameters consumed directly by upload_fileobj rather than passed as ExtraArgs
_UPLOAD_POSITIONAL = ("Bucket", "Key", "Body")


def _loggable(params: Mapping[str, Any]) -> dict[str, Any]:
    """Request parameters without the body, for errors and logs."""
    return {k: v for k, v in params.items() if k != "Body"}


def _is_async_reader(body: Any) -> bool:
    return inspect.iscoroutinefunction(getattr(body, "read", None))


class S3StorageClient:
    """S3-compatible storage client.

    Works with AWS S3, MinIO, R2 and other S3-compatible services.
    Authentication, transport and retries are delegated to botocore.
    Each call opens its own client context.
    """

    def __init__(self, settings: Settings, session: aioboto3.Session | None = None) -> None:
        """Initialize S3 client.

        Args:
            settings: Connection and transport settings.
            session: aioboto3 session to reuse (a new one by default).
        """
        self._settings = settings
        self._session = session or aioboto3.Session()
        self._client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": settings.s3_addressing_style.value},
            retries={
                "max_attempts": settings.s3_max_attempts,
                "mode": settings.s3_retry_mode.value,
            },
            connect_timeout=settings.s3_connect_timeout,
            read_timeout=settings.s3_read_timeout,
        )
        if not settings.s3_use_ssl:
            logger.warning("S3 SSL is disabled; data and credentials are sent in cleartext")

    @asynccontextmanager
    async def _get_client(self) -> AsyncIterator[S3Client]:
        """Get S3 client with context management.

        Yields:
            Configured S3 client.
        """
        kwargs: dict[str, Any] = {
            "config": self._client_config,
            "use_ssl": self._settings.s3_use_ssl,
        }
        if self._settings.s3_endpoint_url:
            kwargs["endpoint_url"] = self._settings.s3_endpoint_url
        if self._settings.s3_region:
            kwargs["region_name"] = self._settings.s3_region
        if self._settings.s3_configured:
            kwargs["aws_access_key_id"] = self._settings.s3_access_key_id
            kwargs["aws_secret_access_key"] = self._settings.s3_secret_access_key

        async with self._session.client("s3", **kwargs) as client:  # type: ignore[reportGeneralTypeIssues]
            yield client

    def _raise_remote(self, e: Exception, operation: str, params: Mapping[str, Any]) -> NoReturn:
        """Wrap an SDK failure, keeping the request parameters for diagnosis."""
        request = _loggable(params)
        if isinstance(e, ClientError):
            error = e.response.get("Error", {})
            detail = f"{error.get('Code', 'Unknown')}: {error.get('Message', str(e))}"
        else:
            detail = str(e)
        logger.error(f"S3 {operation} failed for {request}: {detail}")
        raise StorageRemoteError(
            f"S3 {operation} failed for {request.get('Bucket')}/{request.get('Key', '')}: {detail}",
            params=request,
            cause=e,
        ) from e

    async def list_page(self, params: Mapping[str, Any]) -> ListPage:
        """Call ``list_objects_v2`` once."""
        try:
            async with self._get_client() as client:
                response = await client.list_objects_v2(**params)
        except (ClientError, BotoCoreError) as e:
            self._raise_remote(e, "list", params)

        return ListPage(
            entries=list(response.get("Contents", [])),
            is_truncated=bool(response.get("IsTruncated", False)),
            next_continuation_token=response.get("NextContinuationToken"),
        )

    async def fetch_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Call ``get_object`` and read the body into memory."""
        try:
            async with self._get_client() as client:
                response = await client.get_object(**params)
                async with response["Body"] as stream:
                    data = await stream.read()
        except (ClientError, BotoCoreError) as e:
            self._raise_remote(e, "get", params)

        logger.debug(f"Downloaded {len(data)} bytes from {params.get('Bucket')}/{params.get('Key')}")
        return {**response, "Body": data}

    @asynccontextmanager
    async def fetch_object_stream(self, params: Mapping[str, Any]) -> AsyncIterator[AsyncIterator[bytes]]:
        """Open ``get_object`` and yield its body as chunks."""
        chunk_size = self._settings.stream_chunk_size

        async def chunks(body: Any) -> AsyncIterator[bytes]:
            try:
                async for chunk in body.iter_chunks(chunk_size):
                    yield chunk
            except (ClientError, BotoCoreError, OSError) as e:
                self._raise_remote(e, "stream", params)

        try:
            async with self._get_client() as client:
                response = await client.get_object(**params)
                async with response["Body"] as body:
                    yield chunks(body)
        except (ClientError, BotoCoreError) as e:
            self._raise_remote(e, "stream", params)

    async def write_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Store an object from bytes or an async readable file.

        Async file bodies are streamed with ``upload_fileobj``, which does not
        return the stored object's metadata, so ``ETag`` and ``VersionId``
        are read back with ``head_object``.
        """
        body = params.get("Body")
        try:
            async with self._get_client() as client:
                if not _is_async_reader(body):
                    return dict(await client.put_object(**params))

                extra_args = {k: v for k, v in params.items() if k not in _UPLOAD_POSITIONAL}
                await client.upload_fileobj(
                    body,
                    params["Bucket"],
                    params["Key"],
                    ExtraArgs=extra_args or None,
                )
                head = await client.head_object(Bucket=params["Bucket"], Key=params["Key"])
        except (ClientError, BotoCoreError) as e:
            self._raise_remote(e, "put", params)

        result = {"ETag": head.get("ETag")}
        if head.get("VersionId"):
            result["VersionId"] = head["VersionId"]
        return result

    async def copy_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        try:
            async with self._get_client() as client:
                return dict(await client.copy_object(**params))
        except (ClientError, BotoCoreError) as e:
            self._raise_remote(e, "copy", params)

    async def delete_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        try:
            async with self._get_client() as client:
                return dict(await client.delete_object(**params))
        except (ClientError, BotoCoreError) as e:
            self._raise_remote(e, "delete", params)

    async def delete_objects(self, params: Mapping[str, Any]) -> dict[str, Any]:
        try:
            async with self._get_client() as client:
                response = dict(await client.delete_objects(**params))
        except (ClientError, BotoCoreError) as e:
            self._raise_remote(e, "batch delete", params)

        response.setdefault("Deleted", [])
        response.setdefault("Errors", [])
        return response
