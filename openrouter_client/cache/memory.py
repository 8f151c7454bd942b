# openrouter_client/cache/memory.py
"""
In-process, in-memory response cache.

Uses asyncio.Lock for safe concurrent access within a single event loop.
All entries are lost when the process exits — appropriate for single-instance
deployments and development/testing.

Entries are stored as (value, expiry_timestamp); an expired entry is removed
when it is read, and every write sweeps out all expired entries so keys that
are never read again do not accumulate.
"""

from __future__ import annotations

import asyncio
import copy
import time
from typing import Any

from .base import AbstractResponseCache


class InMemoryResponseCache(AbstractResponseCache):
    """In-process TTL cache (default, zero deps)."""

    def __init__(self) -> None:
        # key → (value, expiry_timestamp)
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        now = time.time()
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expiry = entry
            if now > expiry:
                del self._entries[key]
                return None
        # Callers get their own copy so mutations never leak into the cache.
        return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        now = time.time()
        async with self._lock:
            self._purge(now)
            self._entries[key] = (copy.deepcopy(value), now + ttl_seconds)

    def _purge(self, now: float) -> None:
        """Drop every expired entry. Must be called while holding self._lock."""
        expired = [key for key, (_, expiry) in self._entries.items() if now > expiry]
        for key in expired:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)
