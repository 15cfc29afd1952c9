"""RequestContext - per-call cancellation, deadline and idempotency"""

import asyncio
import time
from collections.abc import Awaitable
from contextlib import suppress
from typing import TypeVar

from midaz_client.shared.exceptions import (
    CancellationError,
    DeadlineExceededError,
)

T = TypeVar("T")


class RequestContext:
    """Caller-supplied context for a single logical call

    The deadline bounds the whole call, retries and backoff included. Every
    blocking point of the call goes through ``run`` so that ``cancel()`` or an
    expired deadline interrupts it promptly.
    """

    def __init__(
        self,
        idempotency_key: str | None = None,
        debug: bool | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize request context

        Args:
            idempotency_key: Opaque key sent as X-Idempotency on every attempt
            debug: Per-call override of the client's debug logging flag
            timeout: Overall deadline for the call in seconds
        """
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        self.idempotency_key = idempotency_key or None
        self.debug = debug
        self._deadline = (
            time.monotonic() + timeout if timeout is not None else None
        )
        self._cancelled = asyncio.Event()

    @property
    def deadline(self) -> float | None:
        """Monotonic deadline of the call, or None when unbounded"""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Abort every pending and future wait of this call"""
        self._cancelled.set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative)"""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self, operation: str = "") -> None:
        """Raise if the context is already cancelled or past its deadline

        Raises:
            CancellationError: If cancel() was called
            DeadlineExceededError: If the deadline has passed
        """
        if self.cancelled:
            raise CancellationError(operation, "operation cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise DeadlineExceededError(operation, "deadline exceeded")

    async def run(self, awaitable: Awaitable[T], operation: str = "") -> T:
        """Await ``awaitable`` unless the context is cancelled first

        Args:
            awaitable: Coroutine or future to wait for
            operation: Operation name attached to cancellation errors

        Returns:
            Result of the awaitable

        Raises:
            CancellationError: If cancel() is called while waiting
            DeadlineExceededError: If the deadline passes while waiting
        """
        task = asyncio.ensure_future(awaitable)
        try:
            self.check(operation)
        except CancellationError:
            await self._discard(task)
            raise

        waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            waiter.cancel()
            await self._discard(task)
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        waiter.cancel()
        await self._discard(task)
        if waiter in done:
            raise CancellationError(operation, "operation cancelled")
        raise DeadlineExceededError(operation, "deadline exceeded")

    async def sleep(self, delay: float, operation: str = "") -> None:
        """Sleep for ``delay`` seconds, returning early on cancellation"""
        await self.run(asyncio.sleep(delay), operation)

    @staticmethod
    async def _discard(task: asyncio.Future) -> None:
        task.cancel()
        with suppress(asyncio.CancelledError, Exception):
            await task

    def __repr__(self) -> str:
        return (
            f"RequestContext(idempotency_key={self.idempotency_key!r}, "
            f"debug={self.debug!r}, remaining={self.remaining()!r})"
        )
