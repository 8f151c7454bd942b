# openrouter_client/streaming/sse.py
"""
Server-Sent Events decoder for chat-completion streams.

Framing
-------
  - A line ends at ``\\n``; one trailing ``\\r`` is stripped.
  - Non-blank lines accumulate into the current event; a blank line ends it.
  - Lines starting with ``:`` are comments and are ignored.
  - ``data:`` lines are collected (prefix and one leading space removed) and
    joined with ``\\n``.

Dispatch
--------
  - no ``data:`` lines          → event ignored
  - single ``data: [DONE]``     → DoneEvent, decoding stops
  - payload is not valid JSON   → event dropped, decoding continues
  - payload has an ``error``    → StreamProtocolError
  - choices[0].finish_reason == "error" → StreamProtocolError
  - anything else               → ChunkEvent(payload)

If the byte stream ends without a ``[DONE]`` event, one DoneEvent is still
emitted at the very end, so consumers always see exactly one completion.

Line splitting works on bytes and only decodes complete lines, so the result
is identical whether the transport delivers one byte or the whole body per
read (including multi-byte UTF-8 characters split across reads).
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, Union

import structlog

from ..constants import (
    SSE_COMMENT_PREFIX,
    SSE_DATA_PREFIX,
    SSE_DONE_SENTINEL,
    SSE_ERROR_FINISH_REASON,
)
from ..exceptions import StreamProtocolError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ChunkEvent:
    """One decoded JSON chunk."""

    data: Any


@dataclass(frozen=True)
class DoneEvent:
    """Terminal marker. Always the last event of a stream."""


StreamEvent = Union[ChunkEvent, DoneEvent]

_DONE = DoneEvent()


async def iter_lines(byte_chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """
    Re-split an async byte stream into text lines.

    A final line without a terminating newline is still yielded.
    """
    pending = bytearray()
    async for data in byte_chunks:
        pending.extend(data)
        start = 0
        while True:
            end = pending.find(b"\n", start)
            if end == -1:
                break
            yield _decode_line(pending[start:end])
            start = end + 1
        del pending[:start]
    if pending:
        yield _decode_line(pending)


def _decode_line(raw: bytes | bytearray) -> str:
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def _data_value(line: str) -> str:
    value = line[len(SSE_DATA_PREFIX):]
    if value.startswith(" "):
        value = value[1:]
    return value


def parse_event(lines: Iterable[str]) -> StreamEvent | None:
    """
    Dispatch one event block.

    Returns
    -------
    ChunkEvent | DoneEvent | None
        None when the event carries nothing deliverable (comments only,
        no data lines, or a payload that is not valid JSON).

    Raises
    ------
    StreamProtocolError
        When the payload reports an error.
    """
    data_lines = [
        _data_value(line)
        for line in lines
        if not line.startswith(SSE_COMMENT_PREFIX) and line.startswith(SSE_DATA_PREFIX)
    ]
    if not data_lines:
        return None

    if len(data_lines) == 1 and data_lines[0].strip() == SSE_DONE_SENTINEL:
        return _DONE

    payload = "\n".join(data_lines)
    try:
        decoded = json.loads(payload)
    except json.JSONDecodeError:
        return None

    if isinstance(decoded, dict):
        error = decoded.get("error")
        if error is not None:
            message = error.get("message") if isinstance(error, dict) else error
            raise StreamProtocolError(
                f"Stream error: {message or 'Unknown stream error'}", payload=decoded
            )
        choices = decoded.get("choices")
        if (
            isinstance(choices, list)
            and choices
            and isinstance(choices[0], dict)
            and choices[0].get("finish_reason") == SSE_ERROR_FINISH_REASON
        ):
            raise StreamProtocolError(
                "Stream terminated due to finish_reason=error", payload=decoded
            )

    return ChunkEvent(decoded)


class SSEDecoder:
    """
    One stream session: owns the event-line buffer and the decode loop.

    A decoder is single-use. Create a new one for every stream.

    Attributes
    ----------
    events:
        Event blocks dispatched so far.
    chunks:
        ChunkEvents emitted.
    dropped:
        Events discarded because their payload was not valid JSON.
    """

    def __init__(self) -> None:
        self.events = 0
        self.chunks = 0
        self.dropped = 0
        self._done = False
        self._started = False

    @property
    def done(self) -> bool:
        return self._done

    async def decode(self, byte_chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
        if self._started:
            raise RuntimeError("SSEDecoder is single-use; create a new one per stream")
        self._started = True

        event_lines: list[str] = []
        async with aclosing(iter_lines(byte_chunks)) as lines:
            async for line in lines:
                if line:
                    event_lines.append(line)
                    continue
                if not event_lines:
                    continue
                event = self._dispatch(event_lines)
                event_lines = []
                if event is not None:
                    yield event
                    if self._done:
                        return

        if event_lines:
            event = self._dispatch(event_lines)
            if event is not None:
                yield event
                if self._done:
                    return

        self._done = True
        yield _DONE

    def _dispatch(self, lines: list[str]) -> StreamEvent | None:
        self.events += 1
        try:
            event = parse_event(lines)
        except StreamProtocolError as exc:
            self._done = True
            logger.warning("stream_protocol_error", error=exc.message)
            raise

        if isinstance(event, DoneEvent):
            self._done = True
        elif isinstance(event, ChunkEvent):
            self.chunks += 1
        elif any(line.startswith(SSE_DATA_PREFIX) for line in lines):
            self.dropped += 1
            logger.debug("stream_fragment_dropped", lines=len(lines))
        return event


def decode_stream(byte_chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """Decode a byte stream with a fresh SSEDecoder session."""
    return SSEDecoder().decode(byte_chunks)
