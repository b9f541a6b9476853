# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Async iterator over the frames of a streaming response.

StreamSource is what the executor hands back for a streaming call. It owns the
open response and one StreamDecoder, and:
1. Reads body chunks lazily, only when the consumer asks for the next frame
2. Ends at end-of-body (after flushing the decoder) or at the terminal frame
3. Closes the response on every exit path (exhaustion, error, early close)

The source is forward-only and cannot be restarted. For early exit use the
context manager form so the response is released:

    async with await executor.execute(descriptor) as frames:
        async for frame in frames:
            if done(frame):
                break
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

import httpx

from ..exceptions import RequestError
from ..observability.constants import STREAM_FRAMES_TOTAL, STREAM_MALFORMED_TOTAL
from ..retry.classifier import classify_exception
from ..types.errors import ErrorKind
from ..types.stream import StreamFrame
from .decoder import StreamDecoder

if TYPE_CHECKING:
    from ..cancellation import CancellationToken
    from ..observability.collector import UnifiedMetricsCollector

logger = logging.getLogger(__name__)


class StreamSource(AsyncIterator[StreamFrame]):
    """
    Lazy, forward-only sequence of StreamFrames backed by a response body.

    Terminal frames are consumed internally: iteration simply stops. Errors
    while reading the body are raised as RequestError and are not retried,
    since frames may already have been handed to the consumer.

    Attributes:
        decoder: The decoder owning this body's buffer
        frame_count: Number of frames yielded so far
        attempts: Attempts the executor needed to open the stream
    """

    __slots__ = (
        "__weakref__",
        "_chunks",
        "_closed",
        "_exhausted",
        "_metrics",
        "_pending",
        "_response",
        "_token",
        "attempts",
        "decoder",
        "frame_count",
    )

    def __init__(
        self,
        response: httpx.Response,
        decoder: StreamDecoder | None = None,
        token: CancellationToken | None = None,
        attempts: int = 1,
        metrics: UnifiedMetricsCollector | None = None,
    ) -> None:
        """
        Initialize the stream source.

        Args:
            response: A streamed response whose body has not been read
            decoder: Decoder to use (a fresh one by default)
            token: Caller's cancellation token, checked on every read
            attempts: Attempts it took to open the stream (for errors)
            metrics: Optional metrics collector
        """
        self._response = response
        self._chunks = response.aiter_bytes()
        self._token = token
        self._metrics = metrics
        self._pending: deque[StreamFrame] = deque()
        self._exhausted = False
        self._closed = False
        self.decoder = decoder if decoder is not None else StreamDecoder()
        self.attempts = attempts
        self.frame_count = 0

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def closed(self) -> bool:
        return self._closed

    async def __anext__(self) -> StreamFrame:
        """
        Return the next data frame.

        Raises:
            StopAsyncIteration: At end-of-body or after the terminal frame
            RequestError: CANCELLED if the caller's token fired, CONNECTION or
                TIMEOUT if the body read failed
        """
        while True:
            if self._closed:
                raise StopAsyncIteration

            if self._pending:
                frame = self._pending.popleft()
                if frame.terminal:
                    logger.debug(
                        f"Stream terminated by sentinel after {self.frame_count} frames"
                    )
                    await self.aclose()
                    raise StopAsyncIteration
                self.frame_count += 1
                if self._metrics is not None:
                    self._metrics.inc_counter(STREAM_FRAMES_TOTAL)
                return frame

            if self._exhausted:
                logger.debug(f"Stream ended after {self.frame_count} frames")
                await self.aclose()
                raise StopAsyncIteration

            chunk = await self._read_chunk()
            if chunk is None:
                self._exhausted = True
                self._pending.extend(self.decoder.finish())
            else:
                self._pending.extend(self.decoder.feed(chunk))

    async def _next_chunk(self) -> bytes | None:
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            return None

    async def _read_chunk(self) -> bytes | None:
        """
        Read the next body chunk, racing the caller's token.

        Returns:
            The chunk, or None at end-of-body
        """
        if self._token is not None and self._token.cancelled:
            await self._fail_cancelled()

        try:
            if self._token is None:
                return await self._next_chunk()

            read = asyncio.ensure_future(self._next_chunk())
            token_waiter = asyncio.ensure_future(self._token.wait())
            try:
                done, _ = await asyncio.wait(
                    {read, token_waiter}, return_when=asyncio.FIRST_COMPLETED
                )
            except asyncio.CancelledError:
                read.cancel()
                raise
            finally:
                token_waiter.cancel()

            if read in done:
                return read.result()

            read.cancel()
            await asyncio.wait({read})
            await self._fail_cancelled()

        except (httpx.TransportError, OSError) as e:
            classification = classify_exception(e)
            logger.warning(
                f"Stream read failed after {self.frame_count} frames: "
                f"{type(e).__name__}: {e}"
            )
            await self.aclose()
            raise RequestError.from_classification(
                classification, attempts=self.attempts
            ) from e

        return None  # unreachable: _fail_cancelled always raises

    async def _fail_cancelled(self) -> Any:
        logger.debug(f"Stream cancelled by caller after {self.frame_count} frames")
        await self.aclose()
        raise RequestError(
            "Request cancelled by caller",
            kind=ErrorKind.CANCELLED,
            attempts=self.attempts,
        )

    async def aclose(self) -> None:
        """
        Close the stream and release the response.

        Idempotent. Buffered bytes are discarded.
        """
        if self._closed:
            return
        self._closed = True
        self._pending.clear()

        if self._metrics is not None and self.decoder.malformed_count:
            self._metrics.inc_counter(
                STREAM_MALFORMED_TOTAL, value=self.decoder.malformed_count
            )

        try:
            await self._response.aclose()
        except Exception as e:
            # Log but don't propagate - we're in cleanup
            logger.debug(f"Error closing stream response: {type(e).__name__}: {e}")

    def __aiter__(self) -> StreamSource:
        """Return self as the async iterator."""
        return self

    async def __aenter__(self) -> StreamSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["StreamSource"]
