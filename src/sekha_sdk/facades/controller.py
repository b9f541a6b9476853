# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Memory controller facade (REST API under ``/api/v1``).

Example:
    >>> async with MemoryController.connect(
    ...     "http://localhost:8080", credential=api_key
    ... ) as memory:
    ...     conversation = await memory.store(
    ...         messages=[{"role": "user", "content": "What is semantic search?"}],
    ...         label="Learning: Semantic Search",
    ...         folder="/education",
    ...     )
    ...     hits = await memory.query("semantic search", limit=5)
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Sequence
from typing import Any, ClassVar

from ..cancellation import CancellationToken
from ..types.request import NO_CONTENT
from .base import Facade, check_choice, compact

SUMMARY_LEVELS = ("daily", "weekly", "monthly")
EXPORT_FORMATS = ("markdown", "json")
EXPORT_CHUNK_SIZE = 1024


class MemoryController(Facade):
    """
    Conversation storage, search, context assembly and maintenance.

    Every method accepts an optional ``cancel_token``.
    """

    CONFIG_DEFAULTS: ClassVar[dict[str, Any]] = {"min_credential_length": 32}

    # === Conversations ===

    async def store(
        self,
        messages: Sequence[dict[str, Any]],
        label: str,
        folder: str | None = None,
        importance_score: float | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Store a new conversation. Returns the created conversation."""
        body = compact(
            messages=list(messages),
            label=label,
            folder=folder,
            importance_score=importance_score,
        )
        return await self._call(
            "POST", "/api/v1/conversations", body=body, cancel_token=cancel_token
        )

    async def get(
        self, conversation_id: str, *, cancel_token: CancellationToken | None = None
    ) -> Any:
        return await self._call(
            "GET", f"/api/v1/conversations/{conversation_id}", cancel_token=cancel_token
        )

    async def list(
        self,
        label: str | None = None,
        folder: str | None = None,
        status: str | None = None,
        pinned: bool | None = None,
        archived: bool | None = None,
        page: int | None = None,
        page_size: int | None = None,
        limit: int | None = None,
        offset: int | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """List conversations; unset filters are left out of the query."""
        params = {
            "label": label,
            "folder": folder,
            "status": status,
            "pinned": pinned,
            "archived": archived,
            "page": page,
            "page_size": page_size,
            "limit": limit,
            "offset": offset,
        }
        return await self._call(
            "GET", "/api/v1/conversations", params=params, cancel_token=cancel_token
        )

    async def count(
        self,
        label: str | None = None,
        folder: str | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._call(
            "GET",
            "/api/v1/conversations/count",
            params={"label": label, "folder": folder},
            cancel_token=cancel_token,
        )

    async def update_label(
        self,
        conversation_id: str,
        label: str,
        folder: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._call(
            "PUT",
            f"/api/v1/conversations/{conversation_id}/label",
            body={"label": label, "folder": folder},
            cancel_token=cancel_token,
        )

    async def update_folder(
        self,
        conversation_id: str,
        folder: str,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        return await self._call(
            "PUT",
            f"/api/v1/conversations/{conversation_id}/folder",
            body={"folder": folder},
            cancel_token=cancel_token,
        )

    async def update(
        self,
        conversation_id: str,
        label: str | None = None,
        folder: str | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """
        Move and/or relabel a conversation.

        A label change needs the folder as well (the label endpoint takes
        both); a folder alone goes through update_folder.

        Raises:
            ValueError: If only a label, or nothing, is given
        """
        if label is not None and folder is not None:
            return await self.update_label(
                conversation_id, label, folder, cancel_token=cancel_token
            )
        if folder is not None:
            return await self.update_folder(
                conversation_id, folder, cancel_token=cancel_token
            )
        if label is not None:
            raise ValueError("updating the label requires a folder as well")
        raise ValueError("update needs a label and folder, or a folder")

    async def delete(
        self, conversation_id: str, *, cancel_token: CancellationToken | None = None
    ) -> Any:
        return await self._call(
            "DELETE",
            f"/api/v1/conversations/{conversation_id}",
            cancel_token=cancel_token,
        )

    async def pin(
        self, conversation_id: str, *, cancel_token: CancellationToken | None = None
    ) -> Any:
        return await self._call(
            "PUT",
            f"/api/v1/conversations/{conversation_id}/pin",
            cancel_token=cancel_token,
        )

    async def archive(
        self, conversation_id: str, *, cancel_token: CancellationToken | None = None
    ) -> Any:
        return await self._call(
            "PUT",
            f"/api/v1/conversations/{conversation_id}/archive",
            cancel_token=cancel_token,
        )

    # === Search ===

    async def query(
        self,
        query: str,
        limit: int = 10,
        offset: int = 0,
        filters: dict[str, Any] | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Semantic search over stored messages."""
        body = compact(query=query, limit=limit, offset=offset, filters=filters)
        return await self._call(
            "POST", "/api/v1/query", body=body, cancel_token=cancel_token
        )

    async def search_fts(
        self,
        query: str,
        limit: int = 50,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Full-text search."""
        return await self._call(
            "POST",
            "/api/v1/search/fts",
            body={"query": query, "limit": limit},
            cancel_token=cancel_token,
        )

    # === Memory Operations ===

    async def assemble_context(
        self,
        query: str,
        context_budget: int = 8000,
        preferred_labels: Sequence[str] | None = None,
        excluded_folders: Sequence[str] | None = None,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Assemble LLM context for ``query`` within a token budget."""
        body = compact(
            query=query,
            context_budget=context_budget,
            preferred_labels=list(preferred_labels) if preferred_labels else None,
            excluded_folders=list(excluded_folders) if excluded_folders else None,
        )
        return await self._call(
            "POST", "/api/v1/context/assemble", body=body, cancel_token=cancel_token
        )

    async def summarize(
        self,
        conversation_id: str,
        level: str = "daily",
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """
        Generate a hierarchical summary of a conversation.

        Raises:
            ValueError: If level is not daily, weekly or monthly
        """
        check_choice("level", level, SUMMARY_LEVELS)
        return await self._call(
            "POST",
            "/api/v1/summarize",
            body={"conversation_id": conversation_id, "level": level},
            cancel_token=cancel_token,
        )

    async def rebuild_embeddings(
        self, *, cancel_token: CancellationToken | None = None
    ) -> Any:
        """Start a background embedding rebuild (the server answers 202)."""
        return await self._call(
            "POST", "/api/v1/rebuild-embeddings", cancel_token=cancel_token
        )

    # === Pruning ===

    async def prune_dry_run(
        self,
        threshold_days: int = 30,
        importance_threshold: float = 5.0,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Pruning suggestions based on age and importance."""
        return await self._call(
            "POST",
            "/api/v1/prune/dry-run",
            body={
                "threshold_days": threshold_days,
                "importance_threshold": importance_threshold,
            },
            cancel_token=cancel_token,
        )

    async def prune_execute(
        self,
        conversation_ids: Sequence[str],
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """Archive the given conversations."""
        return await self._call(
            "POST",
            "/api/v1/prune/execute",
            body={"conversation_ids": list(conversation_ids)},
            cancel_token=cancel_token,
        )

    async def suggest_labels(
        self, conversation_id: str, *, cancel_token: CancellationToken | None = None
    ) -> Any:
        return await self._call(
            "POST",
            "/api/v1/labels/suggest",
            body={"conversation_id": conversation_id},
            cancel_token=cancel_token,
        )

    async def export(
        self,
        conversation_id: str | None = None,
        label: str | None = None,
        format: str | None = None,
        include_metadata: bool = True,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        """
        Export conversations.

        With ``conversation_id`` a single conversation is exported through the
        memory_export tool (JSON by default); otherwise conversations matching
        ``label`` are exported (markdown by default).
        """
        if format is not None:
            check_choice("format", format, EXPORT_FORMATS)

        if conversation_id is not None:
            return await self._call(
                "POST",
                "/mcp/tools/memory_export",
                body={
                    "conversation_id": conversation_id,
                    "format": format or "json",
                    "include_metadata": include_metadata,
                },
                cancel_token=cancel_token,
            )
        return await self._call(
            "GET",
            "/api/v1/export",
            params={"label": label, "format": format or "markdown"},
            cancel_token=cancel_token,
        )

    async def export_stream(
        self,
        conversation_id: str | None = None,
        label: str | None = None,
        format: str | None = None,
        include_metadata: bool = True,
        chunk_size: int = EXPORT_CHUNK_SIZE,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """
        Export conversations as a sequence of text chunks.

        The export is fetched whole, then yielded ``chunk_size`` characters
        at a time. Non-text exports are serialised as JSON first.
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        content = await self.export(
            conversation_id,
            label=label,
            format=format,
            include_metadata=include_metadata,
            cancel_token=cancel_token,
        )
        if content is NO_CONTENT:
            return
        text = content if isinstance(content, str) else json.dumps(content)
        for start in range(0, len(text), chunk_size):
            yield text[start : start + chunk_size]

    # === System ===

    async def health(self, *, cancel_token: CancellationToken | None = None) -> Any:
        return await self._call("GET", "/health", cancel_token=cancel_token)

    async def metrics(self, *, cancel_token: CancellationToken | None = None) -> Any:
        """Server metrics (Prometheus text or JSON, as the server sends it)."""
        return await self._call("GET", "/metrics", cancel_token=cancel_token)

    async def mcp_tools(self, *, cancel_token: CancellationToken | None = None) -> Any:
        return await self._call("GET", "/mcp/tools", cancel_token=cancel_token)

    # === Aliases ===

    create = store
    get_conversation = get
    get_context = get
    search = query


__all__ = ["EXPORT_CHUNK_SIZE", "EXPORT_FORMATS", "SUMMARY_LEVELS", "MemoryController"]
