# tests/test_httpx_sender.py
"""
Tests for HTTPXSender using httpx.MockTransport (no sockets opened).

Verifies:
  - Non-2xx responses are returned, not raised.
  - Method, URL, headers, JSON body and timeout reach httpx.
  - httpx request-layer errors (transport, undecodable content encoding,
    redirect loops) become NetworkError, both on send and mid-stream.
  - Streaming bodies are exposed as async byte chunks.
  - A caller-supplied AsyncClient is never closed by the sender.
  - End to end with TransportClient: retries and SSE decoding.
"""

from __future__ import annotations

import gzip
import json

import httpx
import pytest

from openrouter_client.client import TransportClient
from openrouter_client.exceptions import MaxRetriesExceeded, NetworkError
from openrouter_client.retry.policy import RetryPolicy
from openrouter_client.streaming.sse import ChunkEvent, DoneEvent
from openrouter_client.transport.base import RequestEnvelope
from openrouter_client.transport.httpx_sender import HTTPXSender


def _sender(handler) -> HTTPXSender:
    return HTTPXSender(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
class TestHTTPXSend:
    async def test_request_reaches_httpx(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["title"] = request.headers.get("X-Title")
            seen["body"] = json.loads(request.content)
            seen["timeout"] = request.extensions["timeout"]
            return httpx.Response(200, json={"id": "gen-1"})

        sender = _sender(handler)
        response = await sender.send(
            RequestEnvelope(
                method="POST",
                url="https://openrouter.test/api/v1/chat/completions",
                headers={"X-Title": "Test App"},
                json={"model": "openai/gpt-4o"},
                timeout=5,
            )
        )
        assert response.status_code == 200
        assert json.loads(response.body) == {"id": "gen-1"}
        assert seen["method"] == "POST"
        assert seen["url"] == "https://openrouter.test/api/v1/chat/completions"
        assert seen["title"] == "Test App"
        assert seen["body"] == {"model": "openai/gpt-4o"}
        assert seen["timeout"]["read"] == 5

    async def test_error_status_returned(self):
        sender = _sender(lambda request: httpx.Response(503, text="down"))
        response = await sender.send(RequestEnvelope(method="GET", url="https://openrouter.test/x"))
        assert response.status_code == 503
        assert response.reason == "Service Unavailable"
        assert response.body == b"down"
        assert not response.is_success

    async def test_connect_error_becomes_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        sender = _sender(handler)
        with pytest.raises(NetworkError, match="ConnectError"):
            await sender.send(RequestEnvelope(method="GET", url="https://openrouter.test/x"))

    async def test_timeout_becomes_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        sender = _sender(handler)
        with pytest.raises(NetworkError):
            await sender.send(RequestEnvelope(method="GET", url="https://openrouter.test/x"))

    async def test_undecodable_body_becomes_network_error(self):
        sender = _sender(
            lambda request: httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b'{"data": []}'
            )
        )
        with pytest.raises(NetworkError, match="DecodingError"):
            await sender.send(RequestEnvelope(method="GET", url="https://openrouter.test/x"))

    async def test_redirect_loop_becomes_network_error(self):
        def handler(request):
            return httpx.Response(302, headers={"Location": "https://openrouter.test/loop"})

        client = httpx.AsyncClient(
            transport=httpx.MockTransport(handler), follow_redirects=True, max_redirects=3
        )
        sender = HTTPXSender(client=client)
        with pytest.raises(NetworkError, match="TooManyRedirects"):
            await sender.send(RequestEnvelope(method="GET", url="https://openrouter.test/loop"))

    async def test_external_client_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        sender = HTTPXSender(client=client)
        await sender.close()
        assert not client.is_closed
        await client.aclose()


@pytest.mark.asyncio
class TestHTTPXStream:
    async def test_stream_bytes(self):
        sender = _sender(lambda request: httpx.Response(200, content=b"data: [DONE]\n\n"))
        async with sender.open_stream("https://openrouter.test/x", {}, {"stream": True}) as response:
            assert response.is_success
            body = b"".join([data async for data in response.aiter_bytes()])
        assert body == b"data: [DONE]\n\n"

    async def test_stream_error_status_readable(self):
        sender = _sender(lambda request: httpx.Response(401, json={"error": "bad key"}))
        async with sender.open_stream("https://openrouter.test/x", {}, {}) as response:
            assert response.status_code == 401
            assert b"bad key" in await response.aread()

    async def test_read_error_mid_stream(self):
        async def body():
            yield b'data: {"n":1}\n\n'
            raise httpx.ReadError("connection reset")

        sender = _sender(lambda request: httpx.Response(200, content=body()))
        received = []
        with pytest.raises(NetworkError, match="Stream interrupted"):
            async with sender.open_stream("https://openrouter.test/x", {}, {}) as response:
                async for data in response.aiter_bytes():
                    received.append(data)
        assert received == [b'data: {"n":1}\n\n']


@pytest.mark.asyncio
class TestEndToEnd:
    async def test_retry_then_success(self, config, recording_sleep):
        statuses = [500, 502, 200]

        def handler(request):
            status = statuses.pop(0)
            return httpx.Response(status, json={"ok": status == 200})

        client = TransportClient(
            config,
            sender=_sender(handler),
            retry_policy=RetryPolicy(3, 1000, rand=lambda a, b: 0.0, sleep=recording_sleep),
        )
        assert await client.request("GET", "/models") == {"ok": True}
        assert recording_sleep.delays == [1.0, 2.0]

    async def test_connect_errors_exhaust(self, config, recording_sleep):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        client = TransportClient(
            config,
            sender=_sender(handler),
            retry_policy=RetryPolicy(3, 10, rand=lambda a, b: 0.0, sleep=recording_sleep),
        )
        with pytest.raises(MaxRetriesExceeded) as exc_info:
            await client.request("GET", "/models")
        assert len(calls) == 3
        assert isinstance(exc_info.value.last_error, NetworkError)

    async def test_stream_decodes(self, config):
        body = (
            b": OPENROUTER PROCESSING\n\n"
            b'data: {"choices":[{"delta":{"content":"hi"}}]}\n\n'
            b"data: [DONE]\n\n"
        )

        def handler(request):
            assert request.headers["Accept"] == "text/event-stream"
            assert json.loads(request.content)["stream"] is True
            return httpx.Response(200, content=body, headers={"Content-Type": "text/event-stream"})

        client = TransportClient(config, sender=_sender(handler))
        events = [e async for e in client.iter_stream("/chat/completions", {"stream": True})]
        assert events == [ChunkEvent({"choices": [{"delta": {"content": "hi"}}]}), DoneEvent()]

    async def test_undecodable_body_through_request(self, config, recording_sleep):
        sender = _sender(
            lambda request: httpx.Response(
                200, headers={"Content-Encoding": "gzip"}, content=b'{"data": []}'
            )
        )
        client = TransportClient(
            config,
            sender=sender,
            retry_policy=RetryPolicy(3, 10, rand=lambda a, b: 0.0, sleep=recording_sleep),
        )
        with pytest.raises(MaxRetriesExceeded) as exc_info:
            await client.request("GET", "/models")
        assert isinstance(exc_info.value.last_error, NetworkError)

    async def test_corrupt_gzip_stream_through_stream(self, config):
        compressed = bytearray(
            gzip.compress(b'data: {"choices":[{"delta":{"content":"hi"}}]}\n\ndata: [DONE]\n\n')
        )
        # Flip a CRC byte in the gzip trailer.
        compressed[-8] ^= 0xFF

        sender = _sender(
            lambda request: httpx.Response(
                200,
                headers={"Content-Type": "text/event-stream", "Content-Encoding": "gzip"},
                content=bytes(compressed),
            )
        )
        client = TransportClient(config, sender=sender)
        completions = []
        with pytest.raises(NetworkError, match="Stream interrupted"):
            await client.stream(
                "/chat/completions",
                {"stream": True},
                lambda data: None,
                lambda: completions.append(1),
            )
        assert completions == []
