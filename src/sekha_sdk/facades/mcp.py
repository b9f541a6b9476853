# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
MCP tool facade (``POST /mcp/tools/<tool>``).

Every tool answers with an envelope ``{"success": bool, "data": ..., "error":
...}``. A failed envelope raises ToolError; a successful one is returned
whole so callers can read ``data``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, ClassVar

from ..cancellation import CancellationToken
from ..exceptions import ToolError
from .base import Facade, compact

logger = logging.getLogger(__name__)

TOOL_PREFIX = "/mcp/tools/"


class MCPClient(Facade):
    """Memory tools exposed over the MCP endpoint."""

    CONFIG_DEFAULTS: ClassVar[dict[str, Any]] = {"min_credential_length": 16}

    async def call_tool(
        self,
        tool: str,
        arguments: dict[str, Any] | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """
        Invoke one MCP tool.

        Returns:
            The response envelope

        Raises:
            ToolError: If the envelope reports ``success: false``
            RequestError: If the HTTP exchange itself failed
        """
        envelope = await self._call(
            "POST",
            f"{TOOL_PREFIX}{tool}",
            body=arguments or {},
            cancel_token=cancel_token,
        )
        if isinstance(envelope, dict) and envelope.get("success") is False:
            error = envelope.get("error") or "unknown error"
            logger.debug(f"MCP tool {tool} reported failure: {error}")
            raise ToolError(f"MCP tool {tool} failed: {error}", tool, envelope)
        return envelope

    async def memory_store(
        self,
        messages: Sequence[dict[str, Any]],
        label: str,
        folder: str,
        importance_score: float | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self.call_tool(
            "memory_store",
            compact(
                messages=list(messages),
                label=label,
                folder=folder,
                importance_score=importance_score,
            ),
            cancel_token=cancel_token,
        )

    async def memory_search(
        self,
        query: str,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self.call_tool(
            "memory_search",
            compact(query=query, filters=filters, limit=limit, offset=offset),
            cancel_token=cancel_token,
        )

    async def memory_get_context(
        self, conversation_id: str, *, cancel_token: CancellationToken | None = None
    ) -> Any:
        return await self.call_tool(
            "memory_get_context",
            {"conversation_id": conversation_id},
            cancel_token=cancel_token,
        )

    async def memory_update(
        self,
        conversation_id: str,
        label: str | None = None,
        folder: str | None = None,
        status: str | None = None,
        importance_score: float | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self.call_tool(
            "memory_update",
            compact(
                conversation_id=conversation_id,
                label=label,
                folder=folder,
                status=status,
                importance_score=importance_score,
            ),
            cancel_token=cancel_token,
        )

    async def memory_prune(
        self,
        threshold_days: int = 30,
        importance_threshold: float = 5.0,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self.call_tool(
            "memory_prune",
            {
                "threshold_days": threshold_days,
                "importance_threshold": importance_threshold,
            },
            cancel_token=cancel_token,
        )

    async def memory_export(
        self,
        conversation_id: str,
        format: str = "json",
        include_metadata: bool = True,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self.call_tool(
            "memory_export",
            {
                "conversation_id": conversation_id,
                "format": format,
                "include_metadata": include_metadata,
            },
            cancel_token=cancel_token,
        )

    async def memory_stats(
        self,
        folder: str | None = None,
        label: str | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self.call_tool(
            "memory_stats",
            compact(folder=folder, label=label),
            cancel_token=cancel_token,
        )


__all__ = ["TOOL_PREFIX", "MCPClient"]
