# openrouter_client/transport/base.py
"""
HTTPSender — abstract contract for the low-level HTTP layer.

The transport client never touches a networking library directly; it always
goes through a sender. A sender only has to:
  - send one request and return status, headers and body bytes, and
  - open a streaming request and hand back the body as an async byte iterator.

Failure shapes must stay distinguishable:
  - no response at all (refused, timed out, interrupted) → raise NetworkError
  - a response with a non-2xx status → return it; never raise

Connection pooling, TLS and HTTP/2 are entirely the sender's business.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Any, Union

# Request bodies and decoded responses.
JSONValue = Union[dict[str, "JSONValue"], list["JSONValue"], str, int, float, bool, None]


@dataclass(frozen=True)
class RequestEnvelope:
    """One fully-resolved outbound request. Built per call, never mutated."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    json: JSONValue = None
    timeout: float | None = None

    @property
    def has_body(self) -> bool:
        return self.json is not None


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and body of one completed exchange."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class StreamingResponse(ABC):
    """An open streaming response whose body has not been consumed yet."""

    status_code: int
    reason: str
    headers: Mapping[str, str]

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @abstractmethod
    def aiter_bytes(self) -> AsyncIterator[bytes]:
        """
        Async generator of body bytes in whatever read sizes the transport produces.

        Consumers close it with aclose() once they stop reading.
        """

    @abstractmethod
    async def aread(self) -> bytes:
        """Read the remaining body in full (used for error responses)."""


class HTTPSender(ABC):
    """Abstract base class for low-level HTTP senders."""

    @abstractmethod
    async def send(self, request: RequestEnvelope) -> RawResponse:
        """
        Perform one request/response exchange.

        Returns
        -------
        RawResponse
            For every status code, including 4xx/5xx.

        Raises
        ------
        NetworkError
            When no complete response could be obtained.
        """

    @abstractmethod
    def open_stream(
        self,
        url: str,
        headers: Mapping[str, str],
        body: Any,
    ) -> AbstractAsyncContextManager[StreamingResponse]:
        """
        Open a streaming POST.

        Usage::

            async with sender.open_stream(url, headers, body) as response:
                async for data in response.aiter_bytes():
                    ...

        Network failures while connecting or reading raise NetworkError.
        """

    async def close(self) -> None:
        """Release any resources held by this sender (connection pools, etc.)."""
