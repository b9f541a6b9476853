# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Error kinds and classification results.

The classifier returns data, not exceptions: an ErrorClassification is a
tagged value carrying the ErrorKind plus whatever diagnostics the failed
attempt produced.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """
    Closed set of failure kinds a request attempt can end in.

    Kinds:
        * **VALIDATION**: The server rejected the request (400, other 4xx)
        * **AUTHENTICATION**: Credential missing or refused (401, 403)
        * **NOT_FOUND**: Resource does not exist (404)
        * **RATE_LIMITED**: Server-side throttling (429)
        * **SERVER_FAULT**: Server error (5xx) or an undecodable success body
        * **CONNECTION**: DNS failure, refused or reset connection
        * **TIMEOUT**: The attempt exceeded its timeout
        * **CANCELLED**: The caller cancelled the request
    """

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_FAULT = "server_fault"
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ErrorClassification:
    """
    Verdict for one failed attempt.

    Attributes:
        kind: The classified failure kind
        retryable: Whether another attempt may succeed
        message: Human-readable message (from the error body when available)
        status_code: HTTP status, None for transport-level failures
        cause: The transport exception that caused the failure, if any
        body: Parsed error body, if any
    """

    kind: ErrorKind
    retryable: bool
    message: str
    status_code: int | None = None
    cause: BaseException | None = None
    body: Any = None


__all__ = [
    "ErrorClassification",
    "ErrorKind",
]
