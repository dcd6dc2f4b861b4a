"""Storage service module.

Async convenience services over an S3-compatible object store,
with an aioboto3 client implementation.
"""

from .base import LocalFileSystem, ObjectStorageClient
from .exceptions import (
    BatchFailure,
    ListingError,
    LocalIOError,
    StorageConstructionError,
    StorageError,
    StorageRemoteError,
    StorageValidationError,
)
from .filesystem import AioLocalFileSystem
from .operations import CopyService, DeleteService, GetService, ListService, PutService
from .paginator import ListPaginator
from .runner import HybridRunner
from .s3 import S3StorageClient
from .schemas import ListPage, LocalFileResult

__all__ = [
    # Protocols
    "LocalFileSystem",
    "ObjectStorageClient",
    # Implementations
    "AioLocalFileSystem",
    "S3StorageClient",
    # Services
    "CopyService",
    "DeleteService",
    "GetService",
    "ListService",
    "PutService",
    # Engines
    "HybridRunner",
    "ListPaginator",
    # Schemas
    "ListPage",
    "LocalFileResult",
    # Exceptions
    "BatchFailure",
    "ListingError",
    "LocalIOError",
    "StorageConstructionError",
    "StorageError",
    "StorageRemoteError",
    "StorageValidationError",
]
