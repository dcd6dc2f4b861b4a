"""Tests for the listing paginator."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from s3_classes.services.storage import (
    ListingError,
    ListPage,
    ListPaginator,
    StorageRemoteError,
    StorageValidationError,
)


def _page(keys: list[str], token: str | None = None) -> ListPage:
    return ListPage(
        entries=[{"Key": key, "Size": 1} for key in keys],
        is_truncated=token is not None,
        next_continuation_token=token,
    )


@pytest.fixture
def mock_client() -> MagicMock:
    """Create a client whose list_page returns canned pages."""
    client = MagicMock()
    client.list_page = AsyncMock()
    return client


class TestListPaginator:
    """Tests for ListPaginator.list_all."""

    @pytest.mark.asyncio
    async def test_accumulates_three_pages(self, mock_client: MagicMock) -> None:
        """Test pages of 2, 2 and 1 entries are flattened in order."""
        mock_client.list_page.side_effect = [
            _page(["a", "b"], "token-1"),
            _page(["c", "d"], "token-2"),
            _page(["e"]),
        ]

        entries = await ListPaginator(mock_client).list_all({"Bucket": "bucket"})

        assert [e["Key"] for e in entries] == ["a", "b", "c", "d", "e"]
        assert mock_client.list_page.await_count == 3
        requests = [call.args[0] for call in mock_client.list_page.await_args_list]
        assert "ContinuationToken" not in requests[0]
        assert requests[1]["ContinuationToken"] == "token-1"
        assert requests[2]["ContinuationToken"] == "token-2"

    @pytest.mark.asyncio
    async def test_entries_annotated_with_bucket(self, mock_client: MagicMock) -> None:
        """Test each entry gains the listed bucket."""
        mock_client.list_page.return_value = _page(["a"])

        entries = await ListPaginator(mock_client).list_all({"Bucket": "bucket"})

        assert entries == [{"Key": "a", "Size": 1, "Bucket": "bucket"}]

    @pytest.mark.asyncio
    async def test_empty_listing(self, mock_client: MagicMock) -> None:
        """Test an empty untruncated first page ends after one call."""
        mock_client.list_page.return_value = _page([])

        entries = await ListPaginator(mock_client).list_all({"Bucket": "bucket"})

        assert entries == []
        mock_client.list_page.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_caller_params_not_modified(self, mock_client: MagicMock) -> None:
        """Test the continuation token is not written into the caller's params."""
        mock_client.list_page.side_effect = [_page(["a"], "token-1"), _page(["b"])]
        params = {"Bucket": "bucket", "Prefix": "a"}

        await ListPaginator(mock_client).list_all(params)

        assert params == {"Bucket": "bucket", "Prefix": "a"}
        last_request = mock_client.list_page.await_args_list[-1].args[0]
        assert last_request["Prefix"] == "a"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [None, {}, {"Prefix": "x"}, {"Bucket": ""}])
    async def test_missing_bucket_fails_without_calls(
        self,
        mock_client: MagicMock,
        params,
    ) -> None:
        """Test a request without a bucket never reaches the client."""
        with pytest.raises(StorageValidationError, match="Bucket"):
            await ListPaginator(mock_client).list_all(params)

        mock_client.list_page.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_page_failure_discards_partial_listing(self, mock_client: MagicMock) -> None:
        """Test a failing page aborts with the request params attached."""
        cause = StorageRemoteError("AccessDenied")
        mock_client.list_page.side_effect = [_page(["a", "b"], "token-1"), cause]
        params = {"Bucket": "bucket", "Prefix": "p/"}

        with pytest.raises(ListingError) as exc_info:
            await ListPaginator(mock_client).list_all(params)

        assert exc_info.value.params == params
        assert exc_info.value.cause is cause
        assert "AccessDenied" in str(exc_info.value)
        assert isinstance(exc_info.value, StorageRemoteError)


class TestListPaginatorPages:
    """Tests for ListPaginator.iter_pages."""

    @pytest.mark.asyncio
    async def test_yields_pages_in_request_order(self, mock_client: MagicMock) -> None:
        """Test pages are yielded as they are fetched."""
        mock_client.list_page.side_effect = [_page(["a"], "t"), _page(["b"])]

        pages = [page async for page in ListPaginator(mock_client).iter_pages({"Bucket": "b"})]

        assert [[e["Key"] for e in page.entries] for page in pages] == [["a"], ["b"]]
        assert pages[-1].is_truncated is False
