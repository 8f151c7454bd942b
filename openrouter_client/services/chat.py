# openrouter_client/services/chat.py
"""
ChatService — chat completions on top of the TransportClient.

Maps between the typed request/response models and the JSON the transport
sends and receives:
  - create()      POST /chat/completions, returns ChatCompletionResponse
  - stream()      POST /chat/completions with stream=true, yields raw chunks
  - stream_text() like stream(), but yields only the delta text
  - simple_chat() one user prompt in, completion text out
  - list_models() GET /models
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any, Union

import structlog
from pydantic import ValidationError

from ..cache.base import AbstractResponseCache, cache_key
from ..client import TransportClient
from ..config import ClientConfig
from ..constants import CHAT_COMPLETIONS_PATH, MODELS_PATH
from ..exceptions import RequestValidationError
from ..models import ChatCompletionRequest, ChatCompletionResponse, ChatMessage
from ..streaming.sse import ChunkEvent

logger = structlog.get_logger(__name__)

RequestLike = Union[ChatCompletionRequest, dict[str, Any]]


def _coerce_request(request: RequestLike) -> ChatCompletionRequest:
    if isinstance(request, ChatCompletionRequest):
        return request
    try:
        return ChatCompletionRequest.model_validate(request)
    except ValidationError as exc:
        errors = {
            ".".join(str(part) for part in err["loc"]) or "request": err["msg"]
            for err in exc.errors()
        }
        raise RequestValidationError(
            "Chat completion request validation failed",
            errors=errors,
            context="ChatCompletionRequest",
        ) from exc


class ChatService:
    """
    Chat completion operations.

    Parameters
    ----------
    client:
        Transport used for every call.
    config:
        Supplies ``default_model`` and cache TTL. Defaults to ``client.config``.
    cache:
        Optional response cache; consulted for non-streaming completions only.
    """

    def __init__(
        self,
        client: TransportClient,
        config: ClientConfig | None = None,
        cache: AbstractResponseCache | None = None,
    ) -> None:
        self._client = client
        self._config = config or client.config
        self._cache = cache

    def _payload(self, request: ChatCompletionRequest) -> dict[str, Any]:
        payload = request.to_payload()
        if request.model is None and self._config.default_model:
            payload["model"] = self._config.default_model
        return payload

    async def create(self, request: RequestLike) -> ChatCompletionResponse:
        """Create a chat completion."""
        req = _coerce_request(request)
        payload = self._payload(req)
        payload.pop("stream", None)

        key = cache_key(payload) if self._cache is not None else None
        if key is not None:
            cached = await self._cache.get(key)  # type: ignore[union-attr]
            if cached is not None:
                logger.debug("cache_hit", model=payload.get("model"))
                return ChatCompletionResponse.from_api(cached)

        data = await self._client.request("POST", CHAT_COMPLETIONS_PATH, json=payload)

        if key is not None:
            await self._cache.set(key, data, self._config.cache.ttl_seconds)  # type: ignore[union-attr]
        return ChatCompletionResponse.from_api(data)

    async def stream(self, request: RequestLike) -> AsyncIterator[dict[str, Any]]:
        """
        Stream a chat completion.

        Yields each decoded chunk dict as it arrives, including a final
        usage-only chunk when the API sends one.
        """
        payload = self._payload(_coerce_request(request).with_streaming())
        async with aclosing(self._client.iter_stream(CHAT_COMPLETIONS_PATH, payload)) as events:
            async for event in events:
                if isinstance(event, ChunkEvent):
                    yield event.data

    async def stream_text(self, request: RequestLike) -> AsyncIterator[str]:
        """Stream only the non-empty ``choices[0].delta.content`` strings."""
        async with aclosing(self.stream(request)) as chunks:
            async for chunk in chunks:
                choices = chunk.get("choices") if isinstance(chunk, dict) else None
                if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
                    continue
                delta = choices[0].get("delta")
                text = delta.get("content") if isinstance(delta, dict) else None
                if isinstance(text, str) and text:
                    yield text

    async def simple_chat(self, prompt: str, model: str | None = None) -> str:
        """Send one user prompt and return the completion text."""
        request = ChatCompletionRequest(messages=[ChatMessage.user(prompt)], model=model)
        response = await self.create(request)
        return response.content

    async def list_models(self) -> list[dict[str, Any]]:
        """Return the model catalogue (the ``data`` list of GET /models)."""
        data = await self._client.request("GET", MODELS_PATH)
        if isinstance(data, dict):
            return list(data.get("data") or [])
        return list(data or [])
