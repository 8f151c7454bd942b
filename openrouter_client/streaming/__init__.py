from .sse import (
    ChunkEvent,
    DoneEvent,
    SSEDecoder,
    StreamEvent,
    decode_stream,
    iter_lines,
    parse_event,
)

__all__ = [
    "ChunkEvent",
    "DoneEvent",
    "SSEDecoder",
    "StreamEvent",
    "decode_stream",
    "iter_lines",
    "parse_event",
]
