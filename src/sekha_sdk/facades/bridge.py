# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
LLM bridge facade: chat completions, embeddings and text analysis.

The bridge may run without authentication, so a credential is optional.
LLM calls are slow; the default per-attempt timeout is 60 seconds.

Example:
    >>> async with BridgeClient.connect("http://localhost:5001") as bridge:
    ...     async for chunk in bridge.stream_complete(
    ...         [{"role": "user", "content": "Hello"}]
    ...     ):
    ...         print(chunk["choices"][0]["delta"].get("content", ""), end="")
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any, ClassVar

from ..cancellation import CancellationToken
from .base import Facade, check_choice, compact
from .controller import SUMMARY_LEVELS


class BridgeClient(Facade):
    """Client for the LLM bridge service."""

    CONFIG_DEFAULTS: ClassVar[dict[str, Any]] = {
        "require_credential": False,
        "min_credential_length": 1,
        "timeout": 60.0,
    }

    async def complete(
        self,
        messages: Sequence[dict[str, Any]],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Non-streaming chat completion."""
        body = compact(
            messages=list(messages),
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        body["stream"] = False
        return await self._call(
            "POST", "/v1/chat/completions", body=body, cancel_token=cancel_token
        )

    async def stream_complete(
        self,
        messages: Sequence[dict[str, Any]],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[Any]:
        """
        Streaming chat completion.

        Yields the parsed completion chunks in order. The underlying response
        is released when iteration ends, fails, or the generator is closed.
        """
        body = compact(
            messages=list(messages),
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        body["stream"] = True
        source = await self._call(
            "POST",
            "/v1/chat/completions",
            body=body,
            cancel_token=cancel_token,
            stream=True,
        )
        async with source:
            async for frame in source:
                yield frame.payload

    async def embed(
        self,
        text: str,
        model: str | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._call(
            "POST",
            "/api/v1/embed",
            body=compact(text=text, model=model),
            cancel_token=cancel_token,
        )

    async def summarize(
        self,
        messages: Sequence[str],
        level: str = "daily",
        model: str | None = None,
        max_words: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """
        Summarize message texts.

        Raises:
            ValueError: If level is not daily, weekly or monthly
        """
        check_choice("level", level, SUMMARY_LEVELS)
        return await self._call(
            "POST",
            "/api/v1/summarize",
            body=compact(
                messages=list(messages), level=level, model=model, max_words=max_words
            ),
            cancel_token=cancel_token,
        )

    async def extract(
        self,
        text: str,
        model: str | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Named entity extraction."""
        return await self._call(
            "POST",
            "/api/v1/extract",
            body=compact(text=text, model=model),
            cancel_token=cancel_token,
        )

    async def score(
        self,
        text: str,
        model: str | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Importance score (1-10) with reasoning."""
        return await self._call(
            "POST",
            "/api/v1/score",
            body=compact(text=text, model=model),
            cancel_token=cancel_token,
        )

    async def health(self, *, cancel_token: CancellationToken | None = None) -> Any:
        return await self._call("GET", "/health", cancel_token=cancel_token)


__all__ = ["BridgeClient"]
