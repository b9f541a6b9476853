# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the Sekha SDK.

This module defines the exception hierarchy used throughout the SDK.
All exceptions inherit from SekhaError, making it easy to catch
every SDK failure with a single except clause.

Request failures are NOT split into one class per failure kind. A single
RequestError carries the classified ErrorKind, so callers branch on
``error.kind`` instead of on the exception type.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .types.errors import ErrorKind

if TYPE_CHECKING:
    from .types.errors import ErrorClassification
    from .types.request import AttemptRecord


class SekhaError(Exception):
    """Base exception for all Sekha SDK errors.

    Example:
        try:
            await controller.get(conversation_id)
        except SekhaError as e:
            logger.error(f"Sekha call failed: {e}")
    """

    pass


class ConfigurationError(SekhaError, ValueError):
    """Raised when client configuration is invalid.

    This is raised at construction time, before any request is attempted.

    Common causes include:
    - A base URL that is not an absolute http(s) URL
    - A missing or undersized credential
    - Non-positive timeouts, attempt bounds or rate limits
    """

    pass


class RequestError(SekhaError):
    """Raised when a logical request fails.

    The error carries everything a caller needs to tell "never reachable"
    apart from "reachable but gave up".

    Attributes:
        kind: The classified ErrorKind.
        status_code: HTTP status of the last attempt, or None for transport
            failures, timeouts and cancellations.
        cause: The underlying transport exception, if any.
        attempts: Number of attempts made before giving up.
        retryable: Whether the last failure was classified as retryable.
        body: The parsed error body of the last response, if any.
        history: AttemptRecords for every attempt of the call.

    Example:
        try:
            await controller.get(conversation_id)
        except RequestError as e:
            if e.kind is ErrorKind.NOT_FOUND:
                return None
            raise
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: int | None = None,
        cause: BaseException | None = None,
        attempts: int = 1,
        retryable: bool = False,
        body: Any = None,
        history: tuple[AttemptRecord, ...] = (),
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.cause = cause
        self.attempts = attempts
        self.retryable = retryable
        self.body = body
        self.history = history

    @classmethod
    def from_classification(
        cls,
        classification: ErrorClassification,
        attempts: int,
        history: tuple[AttemptRecord, ...] = (),
    ) -> RequestError:
        """Build the user-visible error from a classifier verdict."""
        return cls(
            classification.message,
            kind=classification.kind,
            status_code=classification.status_code,
            cause=classification.cause,
            attempts=attempts,
            retryable=classification.retryable,
            body=classification.body,
            history=history,
        )

    def __str__(self) -> str:
        detail = f"[{self.kind.value}"
        if self.status_code is not None:
            detail += f" {self.status_code}"
        suffix = "attempt" if self.attempts == 1 else "attempts"
        return f"{self.message} {detail}, {self.attempts} {suffix}]"


class ToolError(SekhaError):
    """Raised when an MCP tool answers with ``success: false``.

    The HTTP exchange itself succeeded; the tool reported a failure in its
    response envelope.

    Attributes:
        tool: Name of the MCP tool that failed.
        response: The full response envelope.
    """

    def __init__(self, message: str, tool: str, response: Any = None):
        super().__init__(message)
        self.tool = tool
        self.response = response


__all__ = [
    "ConfigurationError",
    "RequestError",
    "SekhaError",
    "ToolError",
]
