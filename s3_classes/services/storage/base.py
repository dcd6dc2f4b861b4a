"""Collaborator protocol definitions."""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from aiofiles.threadpool.binary import AsyncBufferedIOBase, AsyncBufferedReader

    from .schemas import ListPage


@runtime_checkable
class ObjectStorageClient(Protocol):
    """Protocol for the low-level object storage client.

    Implementations own transport, authentication and retries. Every
    method takes the request parameters exactly as the S3 API names them
    (``Bucket``, ``Key``, ...).
    """

    async def list_page(self, params: Mapping[str, Any]) -> ListPage:
        """Fetch one page of a bucket listing.

        Args:
            params: ``list_objects_v2`` parameters, including an optional
                ``ContinuationToken``.

        Returns:
            The page entries with its truncation flag and continuation token.

        Raises:
            StorageRemoteError: If the call fails.
        """
        ...

    async def fetch_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Fetch an object with its body read into memory.

        Args:
            params: ``get_object`` parameters.

        Returns:
            The ``get_object`` response with ``Body`` as bytes.

        Raises:
            StorageRemoteError: If the call fails.
        """
        ...

    def fetch_object_stream(
        self,
        params: Mapping[str, Any],
    ) -> AbstractAsyncContextManager[AsyncIterator[bytes]]:
        """Open an object body as a stream of byte chunks.

        Args:
            params: ``get_object`` parameters.

        Returns:
            Async context manager yielding an async iterator of chunks.
            The remote stream is released when the context exits.

        Raises:
            StorageRemoteError: If the object cannot be opened or read.
        """
        ...

    async def write_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Store an object.

        Args:
            params: ``put_object`` parameters. ``Body`` is bytes or an
                async readable binary file.

        Returns:
            Response containing at least ``ETag``.

        Raises:
            StorageRemoteError: If the call fails.
        """
        ...

    async def copy_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Copy an object server side."""
        ...

    async def delete_object(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Delete a single object."""
        ...

    async def delete_objects(self, params: Mapping[str, Any]) -> dict[str, Any]:
        """Delete several objects in one request."""
        ...


@runtime_checkable
class LocalFileSystem(Protocol):
    """Protocol for local file access used by the streaming operations."""

    async def check_read_access(self, path: str) -> None:
        """Verify ``path`` is a readable regular file.

        Raises:
            LocalIOError: If the file is missing or unreadable.
        """
        ...

    def open_read_stream(
        self,
        path: str,
    ) -> AbstractAsyncContextManager[AsyncBufferedReader]:
        """Open ``path`` for streamed binary reading.

        Raises:
            LocalIOError: If the file cannot be opened.
        """
        ...

    def open_write_stream(
        self,
        path: str,
    ) -> AbstractAsyncContextManager[AsyncBufferedIOBase]:
        """Create (or truncate) ``path`` for streamed binary writing.

        Raises:
            LocalIOError: If the file cannot be created.
        """
        ...
