# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions and constants."""

from .errors import ErrorClassification, ErrorKind
from .request import NO_CONTENT, AttemptRecord, NoContent, RequestDescriptor
from .stream import StreamFrame

__all__ = [
    "NO_CONTENT",
    "AttemptRecord",
    # Errors
    "ErrorClassification",
    "ErrorKind",
    "NoContent",
    # Requests
    "RequestDescriptor",
    # Streaming
    "StreamFrame",
]
