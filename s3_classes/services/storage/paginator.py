"""Accumulates a truncated bucket listing into one result set."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from typing import TYPE_CHECKING, Any

from .exceptions import ListingError, StorageValidationError

if TYPE_CHECKING:
    from .base import ObjectStorageClient
    from .schemas import ListPage

logger = logging.getLogger(__name__)


def require_bucket(params: Mapping[str, Any] | None, operation: str) -> None:
    """Fail fast if the request does not name a bucket.

    Raises:
        StorageValidationError: If ``params`` is missing or has no ``Bucket``.
    """
    if not params or not params.get("Bucket"):
        raise StorageValidationError(f"{operation}: request parameters must include 'Bucket'")


class ListPaginator:
    """Walks ``list_page`` calls until the backend reports no more pages.

    Pages are fetched strictly one after another since each request needs
    the previous page's continuation token. Termination relies on the
    backend eventually returning a page that is not truncated.
    """

    def __init__(self, client: ObjectStorageClient) -> None:
        self._client = client

    async def iter_pages(self, params: Mapping[str, Any]) -> AsyncIterator[ListPage]:
        """Yield listing pages in request order.

        Each request is a fresh copy of ``params``; from the second page
        on it carries the previous page's ``ContinuationToken``.
        """
        require_bucket(params, "list_objects")
        request = dict(params)
        page_number = 1
        page = await self._client.list_page(request)
        logger.debug(f"Listed page {page_number} of {params['Bucket']}: {len(page.entries)} entries")
        yield page

        while page.is_truncated:
            request = {**request, "ContinuationToken": page.next_continuation_token}
            page_number += 1
            page = await self._client.list_page(request)
            logger.debug(
                f"Listed page {page_number} of {params['Bucket']}: {len(page.entries)} entries"
            )
            yield page

    async def list_all(self, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Return every entry of the listing, annotated with its ``Bucket``.

        Entries keep page order, then intra-page order. Any failed page
        discards everything gathered so far.

        Raises:
            StorageValidationError: If ``Bucket`` is missing. No call is made.
            ListingError: If any page request fails.
        """
        require_bucket(params, "list_objects")
        bucket = params["Bucket"]
        accumulated: list[dict[str, Any]] = []
        pages = 0

        try:
            async for page in self.iter_pages(params):
                pages += 1
                for entry in page.entries:
                    accumulated.append({**entry, "Bucket": bucket})
        except Exception as e:
            logger.error(f"Listing of {bucket} failed on page {pages + 1}: {e}")
            raise ListingError(
                f"Failed to list objects in {bucket}: {e}",
                params=params,
                cause=e,
            ) from e

        logger.debug(f"Listed {len(accumulated)} objects from {bucket} in {pages} page(s)")
        return accumulated
