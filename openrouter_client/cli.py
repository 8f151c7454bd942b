# openrouter_client/cli.py
"""
CLI entry point for openrouter-client.

Available commands:
  openrouter-client chat PROMPT [--model M] [--system S] [--stream] [--config openrouter.yaml]
  openrouter-client models [--filter TEXT] [--config openrouter.yaml]

Requires: pip install "openrouter-client[cli]"
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

try:
    import typer
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "CLI dependencies missing. Install with: pip install 'openrouter-client[cli]'"
    ) from exc

import structlog
from pydantic import ValidationError

from .exceptions import OpenRouterError
from .models import ChatCompletionRequest, ChatMessage
from .router import OpenRouter

app = typer.Typer(
    name="openrouter-client",
    help="Chat with any model on OpenRouter from the terminal.",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        logger_factory=structlog.PrintLoggerFactory(file=err_console.file),
    )


def _load_client(config_path: Optional[str]) -> OpenRouter:
    if config_path:
        return OpenRouter.from_yaml(config_path)
    return OpenRouter.from_env()


def _format_price(value: Any) -> str:
    try:
        per_million = float(value) * 1_000_000
    except (TypeError, ValueError):
        return "-"
    return f"${per_million:,.2f}/M"


def _build_models_table(models: list[dict[str, Any]]) -> Table:
    """Render the model catalogue as a Rich table."""
    table = Table(title="OpenRouter — Models", show_lines=False)
    table.add_column("Model", style="bold cyan", no_wrap=True)
    table.add_column("Context", justify="right")
    table.add_column("Prompt", justify="right")
    table.add_column("Completion", justify="right")

    for model in models:
        pricing = model.get("pricing") or {}
        context = model.get("context_length")
        table.add_row(
            str(model.get("id", "")),
            f"{context:,}" if isinstance(context, int) else "-",
            _format_price(pricing.get("prompt")),
            _format_price(pricing.get("completion")),
        )
    return table


async def _run_chat(
    config_path: Optional[str],
    request: ChatCompletionRequest,
    stream: bool,
) -> None:
    async with _load_client(config_path) as client:
        if stream:
            async for text in client.chat.stream_text(request):
                console.print(text, end="", soft_wrap=True, highlight=False, markup=False)
            console.print()
            return
        response = await client.chat.create(request)
        console.print(response.content, highlight=False, markup=False)
        if response.usage is not None:
            err_console.print(
                f"[dim]{response.model} · {response.usage.prompt_tokens} prompt + "
                f"{response.usage.completion_tokens} completion tokens[/dim]"
            )


async def _fetch_models(config_path: Optional[str]) -> list[dict[str, Any]]:
    async with _load_client(config_path) as client:
        return await client.list_models()


@app.command()
def chat(
    prompt: str = typer.Argument(..., help="User prompt to send"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model id, e.g. openai/gpt-4o"),
    system: Optional[str] = typer.Option(None, "--system", "-s", help="Optional system message"),
    stream: bool = typer.Option(False, "--stream", help="Print tokens as they arrive"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to openrouter.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log retries and stream events"),
) -> None:
    """Send one prompt and print the completion."""
    _configure_logging(verbose)
    try:
        messages = [ChatMessage.user(prompt)]
        if system:
            messages.insert(0, ChatMessage.system(system))
        request = ChatCompletionRequest(messages=messages, model=model)
        asyncio.run(_run_chat(config, request, stream))
    except OpenRouterError as exc:
        err_console.print(f"[red]{exc.kind.value}:[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    except ValidationError as exc:
        err_console.print(f"[red]invalid input:[/red] {escape(str(exc))}")
        raise typer.Exit(1)


@app.command()
def models(
    filter_: Optional[str] = typer.Option(None, "--filter", "-f", help="Only show ids containing TEXT"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to openrouter.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log retries"),
) -> None:
    """List available models with context length and pricing."""
    _configure_logging(verbose)
    try:
        catalogue = asyncio.run(_fetch_models(config))
    except OpenRouterError as exc:
        err_console.print(f"[red]{exc.kind.value}:[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    except ValidationError as exc:
        err_console.print(f"[red]configuration:[/red] {escape(str(exc))}")
        raise typer.Exit(1)
    if filter_:
        needle = filter_.lower()
        catalogue = [m for m in catalogue if needle in str(m.get("id", "")).lower()]
    console.print(_build_models_table(catalogue))
