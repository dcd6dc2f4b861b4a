"""Local filesystem access backed by aiofiles."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import aiofiles
import aiofiles.os

from .exceptions import LocalIOError

if TYPE_CHECKING:
    from aiofiles.threadpool.binary import AsyncBufferedIOBase, AsyncBufferedReader

logger = logging.getLogger(__name__)


class AioLocalFileSystem:
    """Non-blocking local file access for streamed uploads and downloads."""

    async def check_read_access(self, path: str) -> None:
        """Raise ``LocalIOError`` unless ``path`` is a readable regular file."""
        if not await aiofiles.os.path.isfile(path):
            raise LocalIOError(f"Not a readable file: {path}", path=path)
        if not await aiofiles.os.access(path, os.R_OK):
            raise LocalIOError(f"Permission denied reading {path}", path=path)

    @asynccontextmanager
    async def open_read_stream(self, path: str) -> AsyncIterator[AsyncBufferedReader]:
        try:
            handle = await aiofiles.open(path, "rb")
        except OSError as e:
            raise LocalIOError(f"Cannot open {path} for reading: {e}", path=path, cause=e) from e
        try:
            yield handle
        finally:
            await handle.close()

    @asynccontextmanager
    async def open_write_stream(self, path: str) -> AsyncIterator[AsyncBufferedIOBase]:
        try:
            handle = await aiofiles.open(path, "wb")
        except OSError as e:
            raise LocalIOError(f"Cannot open {path} for writing: {e}", path=path, cause=e) from e
        logger.debug(f"Opened {path} for writing")
        try:
            yield handle
        finally:
            await handle.close()
