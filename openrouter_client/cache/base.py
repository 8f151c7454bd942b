# openrouter_client/cache/base.py
"""
Abstract interface that every response cache backend must implement.

The cache stores decoded JSON bodies of non-streaming chat completions,
keyed by a hash of the exact request payload. Streams are never cached.
"""

from __future__ import annotations

import hashlib
import json
from abc import ABC, abstractmethod
from typing import Any


def cache_key(payload: Any) -> str:
    """SHA-256 of the canonical JSON encoding of *payload*."""
    normalized = json.dumps(payload, ensure_ascii=True, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


class AbstractResponseCache(ABC):
    """Interface contract for all response cache implementations."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value for *key*, or None if absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """
        Store *value* under *key*.

        Parameters
        ----------
        key:
            Cache key, usually from cache_key().
        value:
            JSON-serialisable decoded response body.
        ttl_seconds:
            Entry lifetime. Expired entries must never be returned.
        """

    async def close(self) -> None:
        """Release any resources held by this backend (e.g. Redis connections)."""
