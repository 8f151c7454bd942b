from .base import AbstractResponseCache, cache_key
from .memory import InMemoryResponseCache

__all__ = ["AbstractResponseCache", "InMemoryResponseCache", "cache_key"]
