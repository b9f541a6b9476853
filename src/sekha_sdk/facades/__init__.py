# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol facades.

Thin method sets that build RequestDescriptors and delegate to a shared
RequestExecutor:

    MemoryController: REST controller API (conversations, search, pruning)
    MCPClient: MCP memory tools
    BridgeClient: LLM bridge (completions, embeddings, analysis)
    UnifiedClient: all three, plus a combined health check
"""

from .base import Facade
from .bridge import BridgeClient
from .controller import MemoryController
from .mcp import MCPClient
from .unified import UnifiedClient

__all__ = ["BridgeClient", "Facade", "MCPClient", "MemoryController", "UnifiedClient"]
