# openrouter_client/client.py
"""
TransportClient — turns logical API calls into wire traffic.

Request/response pipeline:
  1. Resolve the URI against the configured base URL.
  2. Merge caller headers over the configured defaults (caller wins).
  3. Force Content-Type: application/json when a JSON body is present.
  4. Send through the HTTP sender under the retry policy.
  5. Turn non-2xx responses into HTTPStatusError (what the policy classifies).
  6. Decode the body as JSON; an empty body decodes to {}.

Streaming pipeline:
  1. POST once with Accept: text/event-stream. Never retried here;
     reconnecting is the caller's decision.
  2. Raise HTTPStatusError on a non-2xx status.
  3. Feed the body bytes through a fresh SSEDecoder session.
  4. Yield ChunkEvent / DoneEvent values in wire order (iter_stream), or
     relay them to on_chunk / on_complete callbacks (stream).
"""

from __future__ import annotations

import inspect
import json
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import aclosing
from typing import Any

import structlog

from .config import ClientConfig
from .constants import (
    ALLOWED_METHODS,
    EVENT_STREAM_CONTENT_TYPE,
    HEADER_ACCEPT,
    HEADER_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
)
from .exceptions import HTTPStatusError, InvalidResponseError
from .retry.policy import RetryPolicy
from .streaming.sse import ChunkEvent, DoneEvent, SSEDecoder, StreamEvent
from .transport.base import HTTPSender, JSONValue, RawResponse, RequestEnvelope
from .transport.httpx_sender import HTTPXSender

logger = structlog.get_logger(__name__)


def merge_headers(
    defaults: Mapping[str, str],
    overrides: Mapping[str, str] | None,
) -> dict[str, str]:
    """
    Merge *overrides* over *defaults*.

    Header names are case-insensitive, so an override of ``x-title``
    replaces a default ``X-Title`` rather than sending both.
    """
    merged = dict(defaults)
    for name, value in (overrides or {}).items():
        for existing in [k for k in merged if k.lower() == name.lower()]:
            del merged[existing]
        merged[name] = value
    return merged


def _status_error(status_code: int, reason: str, headers: Mapping[str, str], body: bytes) -> HTTPStatusError:
    return HTTPStatusError(
        f"HTTP {status_code}: {reason}".rstrip(": "),
        status_code=status_code,
        reason=reason,
        headers=headers,
        body=body,
    )


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class TransportClient:
    """
    Executes request/response and streaming exchanges against the API.

    Parameters
    ----------
    config:
        Settings object providing base_url, timeout and default headers.
    sender:
        Low-level HTTP sender. Defaults to an HTTPXSender owned (and closed)
        by this client.
    retry_policy:
        Policy for non-streaming requests. Defaults to one built from
        ``config.retry``.
    """

    def __init__(
        self,
        config: ClientConfig,
        sender: HTTPSender | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._config = config
        self._owns_sender = sender is None
        self._sender: HTTPSender = sender if sender is not None else HTTPXSender()
        self._retry = retry_policy or RetryPolicy.from_config(config.retry)

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def resolve_url(self, uri: str) -> str:
        """Absolute URIs pass through; relative ones join the base URL."""
        if uri.startswith(("http://", "https://")):
            return uri
        return f"{self._config.base_url}/{uri.lstrip('/')}"

    def build_request(
        self,
        method: str,
        uri: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: JSONValue = None,
        timeout: float | None = None,
    ) -> RequestEnvelope:
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(
                f"Unsupported HTTP method '{method}'. Expected one of {sorted(ALLOWED_METHODS)}"
            )

        merged = merge_headers(self._config.default_headers(), headers)
        if json is not None:
            merged = merge_headers(merged, {HEADER_CONTENT_TYPE: JSON_CONTENT_TYPE})

        return RequestEnvelope(
            method=method,
            url=self.resolve_url(uri),
            headers=merged,
            json=json,
            timeout=timeout if timeout is not None else self._config.timeout,
        )

    # ------------------------------------------------------------------
    # Request / response
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        uri: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: JSONValue = None,
        timeout: float | None = None,
    ) -> Any:
        """
        Perform one logical request and return the decoded JSON body.

        Raises
        ------
        MaxRetriesExceeded
            Retryable failures (network errors, 5xx, 429) persisted for
            every attempt.
        HTTPStatusError
            Non-retryable status (4xx other than 429).
        InvalidResponseError
            A 2xx body that is not valid JSON.
        """
        envelope = self.build_request(method, uri, headers=headers, json=json, timeout=timeout)

        async def _attempt() -> Any:
            response = await self._sender.send(envelope)
            if not response.is_success:
                raise _status_error(
                    response.status_code, response.reason, response.headers, response.body
                )
            return self._decode(response)

        return await self._retry.run(_attempt)

    @staticmethod
    def _decode(response: RawResponse) -> Any:
        if not response.body.strip():
            return {}
        try:
            return json.loads(response.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidResponseError(
                f"Invalid JSON response: {exc}",
                status_code=response.status_code,
                headers=response.headers,
                body=response.body,
            ) from exc

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def iter_stream(
        self,
        uri: str,
        body: Any,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Open one streaming exchange and yield decoded events.

        The body is sent as-is; set ``"stream": true`` in it before calling.
        Yields ChunkEvent for every JSON chunk and exactly one trailing
        DoneEvent. Each call opens a fresh session; a stream cannot be
        resumed once interrupted.

        Raises
        ------
        NetworkError
            Connecting or reading failed.
        HTTPStatusError
            The stream was answered with a non-2xx status.
        StreamProtocolError
            An event reported an error; nothing is yielded after it.
        """
        merged = merge_headers(self._config.default_headers(), headers)
        merged = merge_headers(
            merged,
            {HEADER_ACCEPT: EVENT_STREAM_CONTENT_TYPE, HEADER_CONTENT_TYPE: JSON_CONTENT_TYPE},
        )
        url = self.resolve_url(uri)

        async with self._sender.open_stream(url, merged, body) as response:
            if not response.is_success:
                raise _status_error(
                    response.status_code, response.reason, response.headers, await response.aread()
                )

            logger.info("stream_opened", url=url)
            decoder = SSEDecoder()
            async with aclosing(response.aiter_bytes()) as chunks, aclosing(
                decoder.decode(chunks)
            ) as events:
                async for event in events:
                    yield event
            logger.info(
                "stream_completed",
                url=url,
                chunks=decoder.chunks,
                dropped=decoder.dropped,
            )

    async def stream(
        self,
        uri: str,
        body: Any,
        on_chunk: Callable[[Any], Any],
        on_complete: Callable[[], Any] | None = None,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """
        Callback form of iter_stream().

        ``on_chunk(data)`` runs for every decoded chunk, in wire order;
        ``on_complete()`` runs once, last. Either may be a coroutine
        function, in which case it is awaited before the next event is read.
        """
        async with aclosing(self.iter_stream(uri, body, headers=headers)) as events:
            async for event in events:
                if isinstance(event, ChunkEvent):
                    await _invoke(on_chunk, event.data)
                elif isinstance(event, DoneEvent) and on_complete is not None:
                    await _invoke(on_complete)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the sender if this client created it."""
        if self._owns_sender:
            await self._sender.close()

    async def __aenter__(self) -> "TransportClient":
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
