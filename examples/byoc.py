# examples/byoc.py
"""
BYOC — Bring Your Own Client.

The developer keeps their existing, fully configured httpx.AsyncClient
(proxies, HTTP/2, custom CA bundle, event hooks...). The client library
sends through it and adds retries and SSE decoding on top.

Run with:
  OPENROUTER_API_KEY=sk-or-... python examples/byoc.py
"""

import asyncio
import os

import httpx

from openrouter_client import ClientConfig, HTTPXSender, OpenRouter


async def log_request(request: httpx.Request) -> None:
    print(f"→ {request.method} {request.url}")


async def main():
    # Developer's existing client, unchanged.
    http_client = httpx.AsyncClient(
        limits=httpx.Limits(max_connections=10),
        event_hooks={"request": [log_request]},
    )

    config = ClientConfig(
        api_key=os.environ["OPENROUTER_API_KEY"],
        default_model="openai/gpt-4o-mini",
        timeout=60,
    )

    async with http_client:
        async with OpenRouter(config, sender=HTTPXSender(client=http_client)) as client:
            models = await client.list_models()
            print(f"{len(models)} models available")

            print(await client.chat.simple_chat("What is OpenRouter?"))

        # The sender never closes a client it did not create.
        assert not http_client.is_closed


if __name__ == "__main__":
    asyncio.run(main())
