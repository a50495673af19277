# src/llm/cancellation.py - v1
"""Cooperative cancellation for in-flight invocations.

A CancellationToken is checked before every attempt, interrupts retry
backoff sleeps, and cancels the in-flight provider task when it fires.
``cancel()`` must be called from the event loop's thread; from other
threads use ``loop.call_soon_threadsafe(token.cancel)``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from inferlink.core.errors import InvocationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal shared between a caller and an invocation."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        """Fire the signal. Later calls are no-ops."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.debug("Cancellation requested: %s", reason or "no reason given")

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise InvocationCancelledError(self._reason)

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, aborting early if cancelled.

        Raises:
            InvocationCancelledError: The token fired before or during the sleep.
        """
        self.raise_if_cancelled()
        if delay <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise InvocationCancelledError(self._reason)

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Run ``fn()`` as a task, cancelling it if the token fires first.

        Raises:
            InvocationCancelledError: The token fired before ``fn`` completed.
        """
        self.raise_if_cancelled()
        task = asyncio.ensure_future(fn())
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        # Let the task unwind (spans end, connections close) before reporting.
        await asyncio.gather(task, return_exceptions=True)
        logger.info("In-flight call cancelled: %s", self._reason or "no reason given")
        raise InvocationCancelledError(self._reason)
