# openrouter_client/__init__.py
"""
openrouter-client — async client for the OpenRouter chat-completions API.

Public API surface:
  OpenRouter            — main class; wires config, transport, chat service
  ClientConfig          — top-level configuration model
  TransportClient       — request() with retries, iter_stream() / stream() over SSE
  RetryPolicy           — bounded retry with exponential backoff and rate-limit waits
  SSEDecoder            — byte stream → ChunkEvent / DoneEvent
  ChatService           — create() / stream() / simple_chat() / list_models()
  ChatCompletionRequest — request model passed to ChatService
  ChatMessage           — message model with system/user/assistant/tool constructors
  OpenRouterError       — base of every error; carries an ErrorKind discriminant
"""

from .client import TransportClient
from .config import AppHeaders, CacheConfig, ClientConfig, RetryConfig
from .exceptions import (
    ErrorKind,
    HTTPStatusError,
    InvalidResponseError,
    MaxRetriesExceeded,
    NetworkError,
    OpenRouterError,
    RequestValidationError,
    StreamProtocolError,
)
from .models import (
    ChatChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ChatUsage,
    ResponseFormat,
)
from .retry.policy import RetryPolicy
from .router import OpenRouter
from .services.chat import ChatService
from .streaming.sse import ChunkEvent, DoneEvent, SSEDecoder, StreamEvent
from .transport.base import HTTPSender, RawResponse, RequestEnvelope
from .transport.httpx_sender import HTTPXSender

__all__ = [
    "OpenRouter",
    "ClientConfig",
    "AppHeaders",
    "CacheConfig",
    "RetryConfig",
    "TransportClient",
    "RetryPolicy",
    "SSEDecoder",
    "ChunkEvent",
    "DoneEvent",
    "StreamEvent",
    "ChatService",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatChoice",
    "ChatMessage",
    "ChatUsage",
    "ResponseFormat",
    "HTTPSender",
    "HTTPXSender",
    "RawResponse",
    "RequestEnvelope",
    "ErrorKind",
    "OpenRouterError",
    "NetworkError",
    "HTTPStatusError",
    "InvalidResponseError",
    "MaxRetriesExceeded",
    "StreamProtocolError",
    "RequestValidationError",
]

__version__ = "0.1.0"
