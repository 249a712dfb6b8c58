"""Cancellation tokens for scrape-triggered requests."""

import asyncio
from typing import Awaitable, Optional, TypeVar

from .errors import RequestCancelled

T = TypeVar('T')


class CancellationToken:
    """Signal shared between a page context and the requests it started.

    Navigating away from a delivery page calls ``cancel()``; every request
    that was handed the token is aborted and raises ``RequestCancelled``.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: Optional[str] = None) -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T], endpoint: str) -> T:
        """Await ``awaitable`` unless the token fires first."""
        if self.cancelled:
            # Close the coroutine so it is not reported as never awaited
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise RequestCancelled(endpoint)

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work in done:
            return work.result()

        work.cancel()
        try:
            await work
        except asyncio.CancelledError:
            pass
        raise RequestCancelled(endpoint)
