from .base import HTTPSender, JSONValue, RawResponse, RequestEnvelope, StreamingResponse
from .httpx_sender import HTTPXSender

__all__ = [
    "HTTPSender",
    "HTTPXSender",
    "JSONValue",
    "RawResponse",
    "RequestEnvelope",
    "StreamingResponse",
]
