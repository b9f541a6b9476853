# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Request descriptor types.

This module defines the immutable request descriptor that facades hand to the
executor, the per-attempt record kept while a call is in flight, and the
explicit empty result returned for 204 responses.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from ..cancellation import CancellationToken
    from .errors import ErrorKind


class NoContent:
    """
    Explicit empty result of a successful call without a body (e.g. 204).

    A single instance, NO_CONTENT, exists. It is falsy and compares unequal to
    every JSON value, so ``result is NO_CONTENT`` can never be confused with a
    legitimately empty ``{}``, ``[]``, ``""`` or ``null`` payload.
    """

    _instance: NoContent | None = None

    def __new__(cls) -> NoContent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_CONTENT"


NO_CONTENT: Final = NoContent()


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Everything the executor needs to perform one logical call.

    Descriptors are built by facades and are immutable once built: the header
    and parameter mappings are exposed as read-only views.

    Attributes:
        verb: HTTP method, normalised to upper case
        path: Path relative to the configured base URL (must start with "/")
        headers: Extra headers; they override the executor defaults
        body: JSON-serialisable request body, or None for no body
        params: Query parameters; None values are dropped
        cancel_token: Caller-owned cancellation token
        timeout: Per-attempt timeout override in seconds (None = config default)
        stream: Return a StreamSource over the response body instead of a
            parsed value
    """

    verb: str
    path: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    params: Mapping[str, Any] | None = None
    cancel_token: CancellationToken | None = field(default=None, compare=False)
    timeout: float | None = None
    stream: bool = False

    def __post_init__(self) -> None:
        """Normalise and freeze the descriptor."""
        if not self.path.startswith("/"):
            raise ValueError(f"path must start with '/': {self.path!r}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout override must be positive")
        object.__setattr__(self, "verb", self.verb.upper())
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))
        if self.params is not None:
            cleaned = {k: v for k, v in self.params.items() if v is not None}
            object.__setattr__(self, "params", MappingProxyType(cleaned))

    @property
    def has_body(self) -> bool:
        return self.body is not None


@dataclass(frozen=True)
class AttemptRecord:
    """
    Outcome of one transport-level attempt of a logical request.

    Attributes:
        index: Attempt index (0-based)
        elapsed: Seconds spent in the attempt (admission wait excluded)
        error_kind: None on success, the classified ErrorKind otherwise
        status_code: HTTP status, when a response was received
    """

    index: int
    elapsed: float
    error_kind: ErrorKind | None = None
    status_code: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.error_kind is None


__all__ = [
    "NO_CONTENT",
    "AttemptRecord",
    "NoContent",
    "RequestDescriptor",
]
