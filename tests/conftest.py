# tests/conftest.py
"""
Shared pytest fixtures for openrouter-client tests.

No test talks to the network: every exchange goes through a ScriptedSender
that replays canned responses and records what it was asked to send.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import pytest
import pytest_asyncio

from openrouter_client.cache.memory import InMemoryResponseCache
from openrouter_client.client import TransportClient
from openrouter_client.config import AppHeaders, ClientConfig, RetryConfig
from openrouter_client.retry.policy import RetryPolicy
from openrouter_client.transport.base import (
    HTTPSender,
    RawResponse,
    RequestEnvelope,
    StreamingResponse,
)

API_KEY = "sk-or-v1-" + "0123456789abcdef" * 4
BASE_URL = "https://openrouter.test/api/v1"


def split_bytes(data: bytes, size: int | None) -> list[bytes]:
    """Cut *data* into reads of *size* bytes (one read when size is None)."""
    if not size:
        return [data]
    return [data[i:i + size] for i in range(0, len(data), size)]


class FakeStreamingResponse(StreamingResponse):
    def __init__(
        self,
        chunks: list[bytes],
        status_code: int = 200,
        reason: str = "OK",
        headers: Mapping[str, str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.headers = dict(headers or {})
        self._chunks = chunks
        self._error = error
        self.reads = 0
        self.closed = False

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        try:
            for data in self._chunks:
                self.reads += 1
                yield data
            if self._error is not None:
                raise self._error
        finally:
            self.closed = True

    async def aread(self) -> bytes:
        return b"".join(self._chunks)


class ScriptedSender(HTTPSender):
    """
    Replays queued outcomes in order.

    ``responses`` feeds send(); ``streams`` feeds open_stream(). An entry
    that is an exception instance is raised instead of returned.
    """

    def __init__(self) -> None:
        self.responses: list[RawResponse | Exception] = []
        self.streams: list[FakeStreamingResponse | Exception] = []
        self.requests: list[RequestEnvelope] = []
        self.stream_calls: list[tuple[str, dict[str, str], Any]] = []
        self.closed = False

    def queue(self, *outcomes: RawResponse | Exception) -> None:
        self.responses.extend(outcomes)

    async def send(self, request: RequestEnvelope) -> RawResponse:
        self.requests.append(request)
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @asynccontextmanager
    async def open_stream(self, url, headers, body):
        self.stream_calls.append((url, dict(headers), body))
        outcome = self.streams.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        yield outcome

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def json_response(body: bytes = b"{}", status_code: int = 200, headers=None, reason: str = "") -> RawResponse:
    return RawResponse(status_code=status_code, headers=headers or {}, body=body, reason=reason)


@pytest.fixture
def api_key():
    return API_KEY


@pytest.fixture
def config():
    return ClientConfig(
        api_key=API_KEY,
        base_url=BASE_URL,
        headers=AppHeaders(http_referer="https://app.example", x_title="Test App"),
        retry=RetryConfig(max_attempts=3, backoff_ms=1000),
    )


@pytest.fixture
def sender():
    return ScriptedSender()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def retry_policy(recording_sleep):
    # No jitter, so delays are exactly base * 2^(attempt-1).
    return RetryPolicy(3, 1000, rand=lambda a, b: 0.0, sleep=recording_sleep)


@pytest.fixture
def transport(config, sender, retry_policy):
    return TransportClient(config, sender=sender, retry_policy=retry_policy)


@pytest.fixture
def respond():
    """Factory for canned request/response outcomes."""
    return json_response


@pytest.fixture
def make_stream():
    """Factory: make_stream(body, size=None, status_code=200, ...) → FakeStreamingResponse."""

    def _make(
        body: bytes,
        size: int | None = None,
        status_code: int = 200,
        reason: str = "OK",
        headers: Mapping[str, str] | None = None,
        error: Exception | None = None,
    ) -> FakeStreamingResponse:
        return FakeStreamingResponse(
            split_bytes(body, size),
            status_code=status_code,
            reason=reason,
            headers=headers,
            error=error,
        )

    return _make


@pytest_asyncio.fixture
async def memory_cache():
    return InMemoryResponseCache()
