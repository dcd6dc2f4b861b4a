"""Bounded-concurrency runner for batches of independent async calls."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from functools import partial
from typing import Any, Generic, TypeVar

from .exceptions import BatchFailure, StorageValidationError

logger = logging.getLogger(__name__)

D = TypeVar("D")
R = TypeVar("R")


class HybridRunner(Generic[D, R]):
    """Runs one worker over many descriptors with at most N calls in flight.

    Scheduling is a continuously refilled pipeline rather than fixed
    batches: whenever a call settles its slot is handed to the next
    unstarted descriptor. Results come back in input order regardless of
    completion order.

    The first failing call fails the whole run with ``BatchFailure``. No
    further calls are started after that; calls already in flight are not
    cancelled and their outcomes are discarded.

    With ``concurrency=1`` calls run strictly one after another.
    """

    def __init__(self, concurrency: int = 1) -> None:
        """Initialize runner.

        Args:
            concurrency: Maximum number of in-flight worker calls.

        Raises:
            StorageValidationError: If concurrency is below 1.
        """
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise StorageValidationError(
                f"Concurrency must be a positive integer, got {concurrency!r}"
            )
        self._concurrency = concurrency

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def run(
        self,
        descriptors: Sequence[D],
        worker: Callable[[D], Awaitable[R]],
    ) -> list[R]:
        """Run ``worker`` over every descriptor.

        Args:
            descriptors: Work items, passed to the worker unchanged.
            worker: Async callable producing one result per descriptor.

        Returns:
            Worker results ordered like ``descriptors``.

        Raises:
            BatchFailure: On the first worker failure.
        """
        items = list(descriptors)
        total = len(items)
        if total == 0:
            return []

        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[list[R]] = loop.create_future()
        results: list[Any] = [None] * total
        in_flight: set[asyncio.Future[R]] = set()
        cursor = 0
        settled = 0

        def fill_slots() -> None:
            nonlocal cursor
            while not outcome.done() and len(in_flight) < self._concurrency and cursor < total:
                index = cursor
                cursor += 1
                try:
                    call = asyncio.ensure_future(worker(items[index]))
                except Exception as e:
                    fail(index, e)
                    return
                in_flight.add(call)
                call.add_done_callback(partial(on_settled, index))

        def fail(index: int, error: BaseException) -> None:
            failure = BatchFailure(
                f"Work item {index} of {total} failed: {error}",
                index=index,
                descriptor=items[index],
                cause=error,
            )
            failure.__cause__ = error
            outcome.set_exception(failure)
            if in_flight:
                logger.warning(
                    f"Batch failed at item {index}; discarding {len(in_flight)} in-flight result(s)"
                )

        def on_settled(index: int, call: asyncio.Future[R]) -> None:
            nonlocal settled
            in_flight.discard(call)
            settled += 1

            if call.cancelled():
                error: BaseException | None = asyncio.CancelledError()
            else:
                error = call.exception()

            if outcome.done():
                # Already failed (or the caller went away); outcome discarded
                return

            if error is not None:
                fail(index, error)
                return

            results[index] = call.result()
            logger.debug(f"Work item {index} settled ({settled}/{total})")
            if settled == total:
                outcome.set_result(results)
                return
            fill_slots()

        fill_slots()
        return await outcome
