"""Services module."""

from .storage import (
    CopyService,
    DeleteService,
    GetService,
    ListService,
    PutService,
    S3StorageClient,
)

__all__ = [
    "CopyService",
    "DeleteService",
    "GetService",
    "ListService",
    "PutService",
    "S3StorageClient",
]
