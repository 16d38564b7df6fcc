"""Cancellation handle shared between a computation run and its provider calls."""

import asyncio
from typing import Awaitable, TypeVar

from hybrid_route_planner.errors import RunCancelled

T = TypeVar("T")


class CancellationToken:
    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RunCancelled()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the token is cancelled first.

        On cancellation the pending call is cancelled and its result, even one
        that arrives in the same loop iteration, is dropped.
        """
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if self._event.is_set():
            if not task.cancel() and not task.cancelled():
                # already finished: mark a late failure as retrieved
                task.exception()
            raise RunCancelled()
        return task.result()
