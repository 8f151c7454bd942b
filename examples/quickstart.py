# examples/quickstart.py
"""
Quickstart — one chat completion via dict config.

Run with:
  OPENROUTER_API_KEY=sk-or-... python examples/quickstart.py
"""

import asyncio
import os

from openrouter_client import ChatCompletionRequest, ChatMessage, OpenRouter


async def main():
    client = OpenRouter.from_dict({
        "api_key": os.environ["OPENROUTER_API_KEY"],
        "default_model": "openai/gpt-4o-mini",
        "headers": {"http_referer": "https://example.com", "x_title": "Quickstart"},
        "retry": {"max_attempts": 4, "backoff_ms": 500},
    })

    async with client:
        response = await client.chat.create(ChatCompletionRequest(
            messages=[
                ChatMessage.system("Answer in two sentences."),
                ChatMessage.user("Summarise the benefits of functional programming."),
            ],
            temperature=0.3,
        ))

        print(f"Content:    {response.content[:200]}...")
        print(f"Model:      {response.model}")
        print(f"Finish:     {response.choices[0].finish_reason}")
        if response.usage:
            print(f"Tokens in:  {response.usage.prompt_tokens}")
            print(f"Tokens out: {response.usage.completion_tokens}")

        # Shortcut for a single prompt
        print(await client.chat.simple_chat("Name one prime number."))


if __name__ == "__main__":
    asyncio.run(main())
