# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Sekha SDK - async client for the Sekha memory platform.

One RequestExecutor carries every call: it paces requests with a sliding
window rate limiter, retries transient failures with exponential backoff,
honours caller cancellation and per-attempt timeouts, and decodes streamed
responses incrementally. Thin facades map the controller, MCP and bridge
APIs onto it.

Key Features:
    - Sliding window admission control shared by every facade on an executor
    - One classifier deciding which failures are retried
    - Tagged RequestError carrying kind, status, cause and attempt count
    - CancellationToken support at admission, attempt and backoff
    - Incremental SSE decoding tolerant of split and malformed records
    - Prometheus metrics via prometheus_client

Quick Start:
    >>> from sekha_sdk import MemoryController, RequestError, ErrorKind
    >>>
    >>> async with MemoryController.connect(
    ...     "http://localhost:8080", credential=api_key
    ... ) as memory:
    ...     try:
    ...         conversation = await memory.get(conversation_id)
    ...     except RequestError as e:
    ...         if e.kind is ErrorKind.NOT_FOUND:
    ...             conversation = None

Main Exports:
    - RequestExecutor, ClientConfig: The shared engine and its configuration
    - MemoryController, MCPClient, BridgeClient: Protocol facades
    - UnifiedClient: All three facades behind one handle
    - RequestDescriptor, NO_CONTENT: Request description and empty result
    - CancellationToken: Caller-owned cancellation
    - SekhaError, RequestError, ToolError, ConfigurationError: Errors

Version: 1.0.0
"""

__version__ = "1.0.0"

from .cancellation import CancellationToken
from .exceptions import ConfigurationError, RequestError, SekhaError, ToolError
from .executor import ClientConfig, RequestExecutor
from .facades import BridgeClient, MCPClient, MemoryController, UnifiedClient
from .ratelimit import RateLimiter
from .retry import BackoffPolicy
from .streaming import StreamDecoder, StreamSource
from .types import (
    NO_CONTENT,
    AttemptRecord,
    ErrorClassification,
    ErrorKind,
    NoContent,
    RequestDescriptor,
    StreamFrame,
)

__all__ = [
    "NO_CONTENT",
    "AttemptRecord",
    "BackoffPolicy",
    "BridgeClient",
    "CancellationToken",
    "ClientConfig",
    "ConfigurationError",
    "ErrorClassification",
    "ErrorKind",
    "MCPClient",
    "MemoryController",
    "NoContent",
    "RateLimiter",
    "RequestDescriptor",
    "RequestError",
    "RequestExecutor",
    "SekhaError",
    "StreamDecoder",
    "StreamFrame",
    "StreamSource",
    "ToolError",
    "UnifiedClient",
    "__version__",
]
