# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Streaming response support.

Classes:
    StreamDecoder: Incremental decoder turning raw body chunks into
        StreamFrames, tolerant of records split across reads.
    StreamSource: Async iterator handed to callers for streaming calls; owns
        the open response and one decoder.
"""

from .decoder import RECORD_DELIMITER, TERMINAL_SENTINEL, StreamDecoder
from .source import StreamSource

__all__ = [
    "RECORD_DELIMITER",
    "TERMINAL_SENTINEL",
    "StreamDecoder",
    "StreamSource",
]
