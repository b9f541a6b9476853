"""
Unit tests for cancellation primitives.

Tests cover:
- CancellationToken state and waiting
- CombinedCancellation: completion, timeout, caller cancellation, precedence
- wait_or_cancel()
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from sekha_sdk.cancellation import (
    AbortReason,
    AttemptAborted,
    CancellationToken,
    CombinedCancellation,
    wait_or_cancel,
)


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_initial_state(self):
        token = CancellationToken()
        assert token.cancelled is False
        assert token.reason is None
        assert repr(token) == "CancellationToken(active)"

    def test_cancel(self):
        token = CancellationToken()
        token.cancel("user left")
        assert token.cancelled is True
        assert token.reason == "user left"
        assert repr(token) == "CancellationToken(cancelled)"

    def test_cancel_is_idempotent(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.reason == "first"

    @pytest.mark.asyncio
    async def test_wait_returns_after_cancel(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        await asyncio.wait_for(token.wait(), timeout=1.0)

        assert token.cancelled


class TestCombinedCancellation:
    """Tests for CombinedCancellation.run()."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def attempt() -> str:
            return "ok"

        signal = CombinedCancellation(CancellationToken(), timeout=1.0)

        assert await signal.run(attempt()) == "ok"
        assert signal.fired is False
        assert signal.reason is None

    @pytest.mark.asyncio
    async def test_propagates_attempt_exception(self):
        async def attempt() -> None:
            raise ConnectionResetError("reset")

        with pytest.raises(ConnectionResetError):
            await CombinedCancellation(None, timeout=1.0).run(attempt())

    @pytest.mark.asyncio
    async def test_timeout(self):
        signal = CombinedCancellation(None, timeout=0.01)

        with pytest.raises(AttemptAborted) as exc_info:
            await signal.run(asyncio.sleep(10))

        assert exc_info.value.reason is AbortReason.TIMEOUT
        assert exc_info.value.timeout == 0.01
        assert signal.reason is AbortReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_caller_cancellation(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)
        signal = CombinedCancellation(token, timeout=10.0)

        with pytest.raises(AttemptAborted) as exc_info:
            await signal.run(asyncio.sleep(10))

        assert exc_info.value.reason is AbortReason.CANCELLED

    @pytest.mark.asyncio
    async def test_cancellation_wins_over_timeout(self):
        """If the token has fired by the time the timeout is handled, CANCELLED wins."""
        token = CancellationToken()

        async def attempt() -> None:
            token.cancel()
            await asyncio.sleep(10)

        signal = CombinedCancellation(token, timeout=0.0)

        with pytest.raises(AttemptAborted) as exc_info:
            await signal.run(attempt())

        assert exc_info.value.reason is AbortReason.CANCELLED

    @pytest.mark.asyncio
    async def test_already_cancelled_token_never_starts_attempt(self):
        token = CancellationToken()
        token.cancel()
        started = False

        async def attempt() -> None:
            nonlocal started
            started = True

        with pytest.raises(AttemptAborted):
            await CombinedCancellation(token, timeout=1.0).run(attempt())

        assert started is False

    @pytest.mark.asyncio
    async def test_aborted_attempt_is_cancelled(self):
        cancelled = asyncio.Event()

        async def attempt() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        with pytest.raises(AttemptAborted):
            await CombinedCancellation(None, timeout=0.01).run(attempt())

        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_late_result_is_discarded(self):
        """An attempt that completes despite being cancelled is handed to discard."""
        discard = AsyncMock()

        async def attempt() -> str:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                return "late response"
            return "never"

        with pytest.raises(AttemptAborted):
            await CombinedCancellation(None, timeout=0.01).run(
                attempt(), discard=discard
            )

        discard.assert_awaited_once_with("late response")

    @pytest.mark.asyncio
    async def test_outer_cancellation_propagates(self):
        attempt_cancelled = asyncio.Event()

        async def attempt() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                attempt_cancelled.set()
                raise

        task = asyncio.ensure_future(
            CombinedCancellation(CancellationToken(), timeout=10.0).run(attempt())
        )
        await asyncio.sleep(0.01)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0)
        assert attempt_cancelled.is_set()


class TestWaitOrCancel:
    """Tests for wait_or_cancel()."""

    @pytest.mark.asyncio
    async def test_full_delay_without_token(self):
        assert await wait_or_cancel(None, 0.0) is True

    @pytest.mark.asyncio
    async def test_full_delay_with_quiet_token(self):
        assert await wait_or_cancel(CancellationToken(), 0.01) is True

    @pytest.mark.asyncio
    async def test_token_cuts_wait_short(self):
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        completed = await asyncio.wait_for(wait_or_cancel(token, 10.0), timeout=1.0)

        assert completed is False

    @pytest.mark.asyncio
    async def test_already_cancelled(self):
        token = CancellationToken()
        token.cancel()
        assert await wait_or_cancel(token, 10.0) is False
