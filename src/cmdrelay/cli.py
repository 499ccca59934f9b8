"""Command line entry points."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console

from cmdrelay.config import Settings, get_settings
from cmdrelay.errors import ConfigurationError
from cmdrelay.logging_utils import configure_logging
from cmdrelay.reply import SessionState, build_templating_context, run_command_reply
from cmdrelay.tools import ToolDefinition, ToolRegistry

app = typer.Typer(
    name="cmdrelay",
    help="Relay chat messages to a command-line assistant.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _load_settings() -> Settings:
    settings = get_settings()
    configure_logging(profile="cli", level=settings.log_level)
    return settings


@app.command()
def reply(
    body: str = typer.Argument(..., help="Inbound message content"),
    session_id: str = typer.Option("", "--session-id", help="Assistant session id"),
    new_session: bool = typer.Option(True, "--new-session/--resume", help="Start or resume the session"),
    first_turn: bool = typer.Option(False, "--first-turn", help="First turn in this session"),
    system_sent: bool = typer.Option(False, "--system-sent", help="Identity line already sent"),
    send_system_once: bool | None = typer.Option(
        None,
        "--send-system-once/--send-system-always",
        help="Override CMDRELAY_SEND_SYSTEM_ONCE for this run",
    ),
) -> None:
    """Run one message through the configured command and print the reply."""
    settings = _load_settings()
    try:
        spec = settings.reply_spec()
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc

    state = SessionState(
        is_new_session=new_session,
        is_first_turn_in_session=first_turn,
        system_sent=system_sent,
        send_system_once=settings.send_system_once if send_system_once is None else send_system_once,
    )
    ctx = build_templating_context(body, session_id=session_id, is_new_session=new_session)
    result = asyncio.run(
        run_command_reply(
            spec,
            ctx,
            state,
            timeout_ms=settings.timeout_ms,
            timeout_seconds=settings.timeout_seconds,
            identity=settings.identity_prefix,
        )
    )

    if result.payload is None:
        console.print("[dim](no reply)[/dim]")
    else:
        console.print(result.payload.text, markup=False, highlight=False)
        for url in result.payload.media_urls or ():
            console.print(f"media: {url}", markup=False)
    meta = result.meta
    console.print(
        f"[dim]queued_ms={meta.queued_ms} ahead={meta.queued_ahead} killed={meta.killed} "
        f"{meta.claude_meta or ''}[/dim]".rstrip()
    )


@app.command("clean-schema")
def clean_schema(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON schema file"),  # noqa: B008
    provider: str = typer.Option("gemini", "--provider", "-p", help="Target provider, e.g. gemini, openai, anthropic"),
    name: str = typer.Option("tool", "--name", help="Tool name used for provider-specific rules"),
) -> None:
    """Print the provider variant of a tool parameter schema."""
    _load_settings()
    try:
        schema = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        console.print(f"[red]invalid JSON in {path}: {exc}[/red]")
        raise typer.Exit(1) from exc

    definition = ToolDefinition(name=name, description="", parameters=schema, execute=lambda *_: None)
    adapted = ToolRegistry().adapt(definition, provider)
    typer.echo(json.dumps(adapted.parameters, indent=2, ensure_ascii=False))
