# openrouter_client/router.py
"""
OpenRouter — the primary class the developer interacts with.

Wires the pieces together:
  1. ClientConfig supplies credentials, base URL, timeout and retry budget.
  2. An HTTPSender (httpx by default, or your own) moves the bytes.
  3. TransportClient adds header merging, retries and SSE decoding.
  4. ChatService maps typed requests/responses onto the transport.
  5. An optional response cache (in-memory or Redis) fronts completions.
"""

from __future__ import annotations

from typing import Any

from .cache.base import AbstractResponseCache
from .cache.memory import InMemoryResponseCache
from .client import TransportClient
from .config import ClientConfig
from .retry.policy import RetryPolicy
from .services.chat import ChatService
from .transport.base import HTTPSender


class OpenRouter:
    """
    High-level OpenRouter client.

    Parameters
    ----------
    config:
        Full client configuration. Use one of the factory class methods
        (from_dict, from_yaml, from_env) for convenient construction.
    sender:
        Optional HTTP sender. When omitted an httpx-based sender is created
        and closed together with this client.
    retry_policy:
        Optional policy override, e.g. with a deterministic jitter source.
    cache:
        Optional cache backend. When omitted and ``config.cache.enabled``
        is set, an in-memory cache (or Redis, if ``cache.redis_url`` is
        configured) is created.
    """

    def __init__(
        self,
        config: ClientConfig,
        sender: HTTPSender | None = None,
        retry_policy: RetryPolicy | None = None,
        cache: AbstractResponseCache | None = None,
    ) -> None:
        self._config = config
        self._client = TransportClient(config, sender=sender, retry_policy=retry_policy)
        self._cache = cache if cache is not None else self._build_cache(config)
        self._chat = ChatService(self._client, config, cache=self._cache)

    @staticmethod
    def _build_cache(config: ClientConfig) -> AbstractResponseCache | None:
        if not config.cache.enabled:
            return None
        if config.cache.redis_url:
            from .cache.redis import RedisResponseCache

            return RedisResponseCache(config.cache.redis_url)
        return InMemoryResponseCache()

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> "OpenRouter":
        """Construct from a plain Python dictionary."""
        sender = kwargs.pop("sender", None)
        return cls(ClientConfig.from_dict(data, **kwargs), sender=sender)

    @classmethod
    def from_yaml(cls, path: str, **kwargs: Any) -> "OpenRouter":
        """Construct from a YAML config file."""
        sender = kwargs.pop("sender", None)
        return cls(ClientConfig.from_yaml(path, **kwargs), sender=sender)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "OpenRouter":
        """Construct from environment variables."""
        sender = kwargs.pop("sender", None)
        return cls(ClientConfig.from_env(**kwargs), sender=sender)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def client(self) -> TransportClient:
        """Low-level transport: request(), iter_stream(), stream()."""
        return self._client

    @property
    def chat(self) -> ChatService:
        return self._chat

    async def list_models(self) -> list[dict[str, Any]]:
        """Return the model catalogue."""
        return await self._chat.list_models()

    async def close(self) -> None:
        """Release all resources (HTTP connections, Redis connections, etc.)."""
        await self._client.close()
        if self._cache is not None:
            await self._cache.close()

    async def __aenter__(self) -> "OpenRouter":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
