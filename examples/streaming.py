# examples/streaming.py
"""
Streaming chat completion, as an iterator and with callbacks.

Run with:
  OPENROUTER_API_KEY=sk-or-... python examples/streaming.py
"""

import asyncio

from openrouter_client import ChatCompletionRequest, ChatMessage, OpenRouter


async def main():
    async with OpenRouter.from_env(default_model="openai/gpt-4o-mini") as client:
        request = ChatCompletionRequest(
            messages=[ChatMessage.user("Tell me a short story about a robot.")],
        )

        print("Streaming response:\n")
        async for text in client.chat.stream_text(request):
            print(text, end="", flush=True)
        print("\n\nDone.")

        # Low-level callback form: raw chunks straight off the wire.
        chunks = []
        await client.client.stream(
            "/chat/completions",
            request.with_model("anthropic/claude-3-haiku").with_streaming().to_payload(),
            on_chunk=chunks.append,
            on_complete=lambda: print(f"\nReceived {len(chunks)} chunks."),
        )


if __name__ == "__main__":
    asyncio.run(main())
