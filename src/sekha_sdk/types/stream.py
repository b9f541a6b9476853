# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Stream frame type produced by the event-stream decoder."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class StreamFrame:
    """
    One decoded record of an event stream.

    Attributes:
        payload: The parsed JSON payload (None for a terminal frame)
        event: Value of the record's ``event:`` field, if present
        id: Value of the record's ``id:`` field, if present
        terminal: True when the record was the end-of-stream sentinel
    """

    payload: Any = None
    event: str | None = None
    id: str | None = None
    terminal: bool = False


__all__ = ["StreamFrame"]
