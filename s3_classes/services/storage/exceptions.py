"""Storage service exceptions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class StorageError(Exception):
    """Base exception for storage operations."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class StorageConstructionError(StorageError, TypeError):
    """Raised when a service is built with an unusable collaborator handle."""


class StorageValidationError(StorageError, ValueError):
    """Raised when a required request field is missing or invalid."""


class LocalIOError(StorageError):
    """Raised when local filesystem access or streaming fails."""

    def __init__(self, message: str, path: str, cause: Exception | None = None) -> None:
        super().__init__(message, cause)
        self.path = path


class StorageRemoteError(StorageError):
    """Raised when a call to the storage backend fails."""

    def __init__(
        self,
        message: str,
        params: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, cause)
        self.params = dict(params) if params is not None else {}


class ListingError(StorageRemoteError):
    """Raised when any page of a paginated listing fails.

    No partial listing is returned; ``params`` holds the request that
    started the listing.
    """


class BatchFailure(StorageError):
    """Raised by the batch runner on the first failed work item."""

    def __init__(
        self,
        message: str,
        index: int,
        descriptor: Any,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause if isinstance(cause, Exception) else None)
        self.index = index
        self.descriptor = descriptor
