# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Cooperative cancellation for request attempts.

Two pieces live here:

1. CancellationToken - owned by the caller. Passing one in a request lets the
   caller abort the call at any time by calling ``token.cancel()``.
2. CombinedCancellation - created once per attempt by the executor. It merges
   the caller's token with the attempt timeout and records which of the two
   fired, so the classifier can tell Cancelled apart from Timeout.

Precedence is decided in one place: when the attempt is aborted, the caller's
token is checked first. A token that has fired always yields CANCELLED, even
if the timeout elapsed in the same loop iteration.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AbortReason(Enum):
    """Which signal aborted an attempt."""

    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


class AttemptAborted(Exception):
    """
    Raised by CombinedCancellation when an attempt was aborted.

    This never escapes the executor: it is classified into a RequestError
    with kind CANCELLED or TIMEOUT.

    Attributes:
        reason: Which signal fired
        timeout: The attempt timeout that was armed (seconds)
    """

    def __init__(self, reason: AbortReason, timeout: float | None = None):
        if reason is AbortReason.TIMEOUT:
            message = f"Attempt timed out after {timeout}s"
        else:
            message = "Request cancelled by caller"
        super().__init__(message)
        self.reason = reason
        self.timeout = timeout


class CancellationToken:
    """
    Caller-owned cancellation handle.

    The token is single-shot: once cancelled it stays cancelled. It may be
    shared by several requests to cancel them together.

    Example:
        token = CancellationToken()
        task = asyncio.create_task(controller.query("roadmap", cancel_token=token))
        ...
        token.cancel("user navigated away")
    """

    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    def cancel(self, reason: str | None = None) -> None:
        """Fire the token. Later calls are no-ops."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    async def wait(self) -> None:
        """Suspend until the token fires."""
        await self._event.wait()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "active"
        return f"CancellationToken({state})"


class CombinedCancellation:
    """
    Per-attempt signal that fires on caller cancellation or timeout.

    One instance is created for each attempt and used once. After ``run()``
    raises AttemptAborted, ``reason`` tells which signal fired.

    Attributes:
        token: The caller's token (may be None)
        timeout: Attempt timeout in seconds (None disables the timeout)
        reason: None until the attempt is aborted
    """

    __slots__ = ("reason", "timeout", "token")

    def __init__(
        self,
        token: CancellationToken | None,
        timeout: float | None,
    ) -> None:
        self.token = token
        self.timeout = timeout
        self.reason: AbortReason | None = None

    @property
    def fired(self) -> bool:
        return self.reason is not None

    def _abort(self) -> AttemptAborted:
        self.reason = (
            AbortReason.CANCELLED
            if self.token is not None and self.token.cancelled
            else AbortReason.TIMEOUT
        )
        return AttemptAborted(self.reason, self.timeout)

    async def run(
        self,
        awaitable: Awaitable[T],
        discard: Callable[[T], Awaitable[None]] | None = None,
    ) -> T:
        """
        Run one attempt under the combined signal.

        Args:
            awaitable: The attempt
            discard: Cleanup for a result that completed after the attempt
                was already aborted (e.g. closing an open response)

        Returns:
            The attempt's result

        Raises:
            AttemptAborted: If the caller's token fired or the timeout elapsed
                before the attempt completed. The attempt is cancelled.
            Exception: Whatever the attempt itself raised
        """
        if self.token is not None and self.token.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise self._abort()

        attempt: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        watchers: set[asyncio.Future[Any]] = {attempt}
        token_waiter: asyncio.Future[None] | None = None
        if self.token is not None:
            token_waiter = asyncio.ensure_future(self.token.wait())
            watchers.add(token_waiter)

        try:
            done, _ = await asyncio.wait(
                watchers,
                timeout=self.timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            attempt.cancel()
            raise
        finally:
            if token_waiter is not None:
                token_waiter.cancel()

        if attempt in done:
            return attempt.result()

        aborted = self._abort()
        logger.debug(f"Aborting attempt: {aborted}")
        attempt.cancel()
        await asyncio.wait({attempt})
        # The attempt may still have finished before the cancellation landed.
        if not attempt.cancelled() and attempt.exception() is None:
            if discard is not None:
                await discard(attempt.result())
        raise aborted


async def wait_or_cancel(token: CancellationToken | None, delay: float) -> bool:
    """
    Sleep for ``delay`` seconds unless the token fires first.

    Returns:
        True if the full delay elapsed, False if the token fired
    """
    if token is None:
        await asyncio.sleep(delay)
        return True
    if token.cancelled:
        return False

    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({waiter}, timeout=delay)
    finally:
        waiter.cancel()
    return waiter not in done


__all__ = [
    "AbortReason",
    "AttemptAborted",
    "CancellationToken",
    "CombinedCancellation",
    "wait_or_cancel",
]
