# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Failure classification for request attempts.

This module is the single authority on retryability. The executor hands it
every failed attempt and acts on the verdict; no other component decides
whether to retry.

Status codes:
    * 400, other 4xx, 3xx -> VALIDATION, not retryable
    * 401, 403            -> AUTHENTICATION, not retryable
    * 404                 -> NOT_FOUND, not retryable
    * 429                 -> RATE_LIMITED, retryable
    * >= 500              -> SERVER_FAULT, retryable

Transport failures:
    * Caller cancellation -> CANCELLED, not retryable
    * Attempt timeout     -> TIMEOUT, retryable
    * Other network error -> CONNECTION, retryable
"""

import logging
from typing import Any

import httpx

from ..cancellation import AbortReason, AttemptAborted
from ..types.errors import ErrorClassification, ErrorKind

logger = logging.getLogger(__name__)

# Error body fields that may carry the server's message, in lookup order
MESSAGE_FIELDS = ("error", "message", "detail")

_STATUS_KINDS: dict[int, tuple[ErrorKind, bool]] = {
    400: (ErrorKind.VALIDATION, False),
    401: (ErrorKind.AUTHENTICATION, False),
    403: (ErrorKind.AUTHENTICATION, False),
    404: (ErrorKind.NOT_FOUND, False),
    429: (ErrorKind.RATE_LIMITED, True),
}

_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.AUTHENTICATION: "Authentication failed. Check your API key.",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded. Please slow down.",
}


def extract_message(body: Any, default: str) -> str:
    """
    Pull a human-readable message out of an error body.

    Args:
        body: Parsed JSON body, raw text, or None
        default: Fallback when the body has no usable message

    Returns:
        The first non-empty message field, the text body, or ``default``
    """
    if isinstance(body, dict):
        for name in MESSAGE_FIELDS:
            value = body.get(name)
            if isinstance(value, dict):
                value = value.get("message")
            if value:
                return str(value)
    elif isinstance(body, str) and body.strip():
        return body.strip()
    return default


def classify_status(
    status_code: int, body: Any = None, reason: str = ""
) -> ErrorClassification:
    """
    Classify a non-2xx response.

    Args:
        status_code: HTTP status of the response
        body: Parsed error body (dict, text or None)
        reason: HTTP reason phrase, used when the body has no message

    Returns:
        The classification for the attempt
    """
    if status_code >= 500:
        kind, retryable = ErrorKind.SERVER_FAULT, True
    else:
        kind, retryable = _STATUS_KINDS.get(
            status_code, (ErrorKind.VALIDATION, False)
        )

    detail = extract_message(body, "")
    canned = _DEFAULT_MESSAGES.get(kind)
    if canned:
        message = f"{canned} ({detail})" if detail else canned
    else:
        message = detail or reason or f"HTTP {status_code}"

    return ErrorClassification(
        kind=kind,
        retryable=retryable,
        message=message,
        status_code=status_code,
        body=body,
    )


def classify_exception(error: BaseException) -> ErrorClassification:
    """
    Classify an attempt that produced no response.

    Args:
        error: AttemptAborted from the combined signal, or a transport
            exception raised by httpx / the socket layer

    Returns:
        The classification for the attempt

    Raises:
        TypeError: If ``error`` is not a transport-level failure. Programming
            errors are never turned into retryable outcomes.
    """
    if isinstance(error, AttemptAborted):
        if error.reason is AbortReason.CANCELLED:
            return ErrorClassification(
                kind=ErrorKind.CANCELLED,
                retryable=False,
                message=str(error),
                cause=error,
            )
        return ErrorClassification(
            kind=ErrorKind.TIMEOUT,
            retryable=True,
            message=str(error),
            cause=error,
        )

    if isinstance(error, httpx.TimeoutException):
        return ErrorClassification(
            kind=ErrorKind.TIMEOUT,
            retryable=True,
            message=f"Request timed out: {type(error).__name__}",
            cause=error,
        )

    if isinstance(error, (httpx.TransportError, OSError)):
        return ErrorClassification(
            kind=ErrorKind.CONNECTION,
            retryable=True,
            message=f"Request failed: {type(error).__name__}: {error}",
            cause=error,
        )

    raise TypeError(f"Not a transport failure: {type(error).__name__}")


def classify_undecodable_body(
    status_code: int, error: BaseException
) -> ErrorClassification:
    """
    Classify a 2xx response whose body could not be decoded as JSON.

    The server answered but broke its own content type; repeating the same
    request is not expected to help.
    """
    return ErrorClassification(
        kind=ErrorKind.SERVER_FAULT,
        retryable=False,
        message=f"Malformed response body: {error}",
        status_code=status_code,
        cause=error,
    )


__all__ = [
    "MESSAGE_FIELDS",
    "classify_exception",
    "classify_status",
    "classify_undecodable_body",
    "extract_message",
]
