# openrouter_client/transport/httpx_sender.py
"""
httpx-backed HTTP sender.

The client registers this sender when the developer either:
  a) Provides nothing (sender creates and owns its own AsyncClient), or
  b) Passes ``client=httpx.AsyncClient(...)`` — bring your own client
     (sender uses it directly and leaves closing it to the caller).

Every httpx.RequestError (connect errors, timeouts, read errors, protocol
errors, undecodable content encodings, redirect loops) is translated to
NetworkError so the retry policy can classify it without knowing about httpx.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

import httpx

from .base import HTTPSender, RawResponse, RequestEnvelope, StreamingResponse
from ..exceptions import NetworkError


class _HTTPXStreamingResponse(StreamingResponse):
    """Wraps an open httpx.Response so read errors surface as NetworkError."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.status_code = response.status_code
        self.reason = response.reason_phrase
        self.headers = response.headers

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        try:
            async for data in self._response.aiter_bytes():
                yield data
        except httpx.RequestError as exc:
            raise NetworkError(f"Stream interrupted: {exc}") from exc

    async def aread(self) -> bytes:
        try:
            return await self._response.aread()
        except httpx.RequestError as exc:
            raise NetworkError(f"Stream interrupted: {exc}") from exc


class HTTPXSender(HTTPSender):
    """Sender wrapping httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            self._client = httpx.AsyncClient(
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20)
            )
            self._owns_client = True

    async def send(self, request: RequestEnvelope) -> RawResponse:
        kwargs: dict[str, Any] = {"headers": dict(request.headers)}
        if request.has_body:
            kwargs["json"] = request.json
        if request.timeout is not None:
            kwargs["timeout"] = request.timeout

        try:
            response = await self._client.request(request.method, request.url, **kwargs)
        except httpx.RequestError as exc:
            raise NetworkError(f"{type(exc).__name__}: {exc}") from exc

        return RawResponse(
            status_code=response.status_code,
            headers=response.headers,
            body=response.content,
            reason=response.reason_phrase,
        )

    @asynccontextmanager
    async def open_stream(
        self,
        url: str,
        headers: Mapping[str, str],
        body: Any,
    ) -> AsyncIterator[StreamingResponse]:
        # Streams have no overall deadline; only connect/read blocking applies.
        request = self._client.build_request(
            "POST",
            url,
            headers=dict(headers),
            json=body,
            timeout=httpx.Timeout(None),
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as exc:
            raise NetworkError(f"{type(exc).__name__}: {exc}") from exc

        try:
            yield _HTTPXStreamingResponse(response)
        finally:
            await response.aclose()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
