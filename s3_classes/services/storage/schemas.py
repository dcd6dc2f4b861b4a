"""Storage service DTOs using msgspec."""

from __future__ import annotations

from typing import Any

import msgspec


class ListPage(msgspec.Struct, kw_only=True):
    """One response of a single list call.

    ``next_continuation_token`` is only meaningful when ``is_truncated`` is set.
    """

    entries: list[dict[str, Any]] = msgspec.field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: str | None = None


class LocalFileResult(msgspec.Struct, kw_only=True):
    """Result of streaming an object into a local file."""

    config: dict[str, Any]  # Request parameters that produced the file
    filename: str
