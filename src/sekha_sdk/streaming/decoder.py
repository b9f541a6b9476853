# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Incremental decoder for server-sent event streams.

Completion streams arrive as records separated by a blank line, each data
line prefixed with ``data:``. Network reads split those records at arbitrary
byte offsets, so the decoder buffers bytes and only parses complete records:

    data: {"choices": [...]}\\n
    \\n
    data: [DONE]\\n
    \\n

Feeding the same bytes in one call or split across many calls yields the
same frames. A record that fails to parse is dropped and counted; it never
aborts the stream or loses the records after it.
"""

from __future__ import annotations

import json
import logging

from ..types.stream import StreamFrame

logger = logging.getLogger(__name__)

RECORD_DELIMITER = b"\n\n"
TERMINAL_SENTINEL = "[DONE]"


class StreamDecoder:
    """
    Turns raw body chunks into StreamFrames.

    One decoder serves one response body. Once the terminal sentinel has been
    decoded, all further input is ignored.

    Attributes:
        malformed_count: Number of records dropped because they did not parse
        terminated: True once the terminal sentinel was seen

    Example:
        >>> decoder = StreamDecoder()
        >>> decoder.feed(b"dat")
        []
        >>> decoder.feed(b'a: {"n":1}\\n\\n')
        [StreamFrame(payload={'n': 1}, event=None, id=None, terminal=False)]
    """

    __slots__ = ("_buffer", "malformed_count", "terminated")

    def __init__(self) -> None:
        self._buffer = bytearray()
        self.malformed_count = 0
        self.terminated = False

    @property
    def buffered(self) -> int:
        """Number of bytes waiting for a record delimiter."""
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[StreamFrame]:
        """
        Append a chunk and decode every record it completes.

        Args:
            chunk: Raw bytes read from the response body

        Returns:
            Frames for the records completed by this chunk, in stream order
        """
        if self.terminated or not chunk:
            return []

        self._buffer += chunk
        # A CR at the very end may still pair with the next chunk's LF.
        if b"\r\n" in self._buffer:
            self._buffer = bytearray(self._buffer.replace(b"\r\n", b"\n"))

        frames: list[StreamFrame] = []
        while not self.terminated:
            end = self._buffer.find(RECORD_DELIMITER)
            if end < 0:
                break
            record = bytes(self._buffer[:end])
            del self._buffer[: end + len(RECORD_DELIMITER)]
            frame = self._decode_record(record)
            if frame is not None:
                frames.append(frame)
        return frames

    def finish(self) -> list[StreamFrame]:
        """
        Flush whatever is left after the body ended.

        A trailing record without its delimiter is decoded as a final record.

        Returns:
            Zero or one frame
        """
        if self.terminated or not self._buffer:
            self._buffer.clear()
            return []
        record = bytes(self._buffer).rstrip(b"\r\n")
        self._buffer.clear()
        frame = self._decode_record(record)
        return [frame] if frame is not None else []

    def _decode_record(self, record: bytes) -> StreamFrame | None:
        """
        Decode one complete record.

        Returns:
            A frame, or None for blank, keep-alive and malformed records
        """
        try:
            text = record.decode("utf-8")
        except UnicodeDecodeError as e:
            self._drop(f"invalid UTF-8: {e}")
            return None

        data_lines: list[str] = []
        event: str | None = None
        event_id: str | None = None
        for line in text.split("\n"):
            if not line or line.startswith(":"):
                # Blank line or keep-alive comment
                continue
            field_name, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]
            if field_name == "data":
                data_lines.append(value)
            elif field_name == "event":
                event = value
            elif field_name == "id":
                event_id = value
            else:
                logger.debug(f"Ignoring stream field {field_name!r}")

        if not data_lines:
            return None

        data = "\n".join(data_lines)
        if data.strip() == TERMINAL_SENTINEL:
            self.terminated = True
            self._buffer.clear()
            return StreamFrame(event=event, id=event_id, terminal=True)
        if not data.strip():
            return None

        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            self._drop(f"{e}: {data[:80]!r}")
            return None
        return StreamFrame(payload=payload, event=event, id=event_id)

    def _drop(self, detail: str) -> None:
        self.malformed_count += 1
        logger.debug(f"Dropping malformed stream record: {detail}")


__all__ = [
    "RECORD_DELIMITER",
    "TERMINAL_SENTINEL",
    "StreamDecoder",
]
