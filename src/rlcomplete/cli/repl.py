"""Interactive REPL — prompt_toolkit session whose Tab completion comes from the engine."""

from __future__ import annotations

import os

import click
from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from rich.console import Console
from rich.panel import Panel

from rlcomplete.cli.completer import ShellCompleter
from rlcomplete.cli.main import BridgeContext, pass_context
from rlcomplete.core.config import get_history_path
from rlcomplete.core.exceptions import RLCompleteError

console = Console()


def _show_help() -> None:
    """Display REPL help."""
    help_text = (
        "[bold cyan]USAGE[/bold cyan]\n"
        "  Type a command line and press Tab to complete it with your shell.\n"
        "  Press Enter to list the completions for the whole line.\n"
        "\n"
        "[bold cyan]COMMANDS[/bold cyan]\n"
        "  /status       — Show the current engine session\n"
        "  /cd DIR       — Complete relative to DIR (restarts the engine)\n"
        "  /reset        — Restart the engine\n"
        "  /help         — This help message\n"
        "  /quit         — Exit"
    )
    console.print(Panel(help_text, title="rlcomplete Help", border_style="cyan"))


def _show_status(ctx: BridgeContext) -> None:
    completion_ctx = ctx.get_completion_context()
    session = completion_ctx.session
    if completion_ctx.disabled:
        ctx.formatter.warning("Completion is disabled: the configured shell is not the expected engine.")
    if session is None:
        ctx.formatter.info(f"No engine running. Directory: {completion_ctx.cwd}")
        return
    ctx.formatter.table(
        title="Engine session",
        columns=[("Field", "cyan"), ("Value", "bold")],
        rows=[
            ["id", session.id],
            ["directory", session.cwd],
            ["alive", str(session.is_alive)],
            ["outstanding", str(session.outstanding)],
            ["idle", f"{session.idle_for():.1f}s"],
        ],
    )


def _route_slash_command(ctx: BridgeContext, command: str) -> None:
    """Handle a REPL slash command."""
    parts = command.lstrip("/").split(None, 1)
    cmd_name = parts[0].lower() if parts else ""
    rest = parts[1].strip() if len(parts) > 1 else ""

    if cmd_name in ("quit", "exit"):
        raise EOFError()

    if cmd_name == "help":
        _show_help()
        return

    if cmd_name == "status":
        _show_status(ctx)
        return

    service = ctx.get_service()
    completion_ctx = ctx.get_completion_context()

    if cmd_name == "reset":
        service.manager.destroy(completion_ctx)
        completion_ctx.cache.clear()
        ctx.formatter.success("Engine will restart on the next completion.")
        return

    if cmd_name == "cd":
        target = os.path.abspath(os.path.join(completion_ctx.cwd, os.path.expanduser(rest or "~")))
        if not os.path.isdir(target):
            ctx.formatter.error(f"Not a directory: {target}")
            return
        completion_ctx.chdir(target)
        # The old engine still runs in the previous directory
        service.manager.destroy(completion_ctx)
        ctx.formatter.success(f"Completing in {completion_ctx.cwd}")
        return

    ctx.formatter.error(f"Unknown command: /{cmd_name}. Type /help for available commands.")


def _complete_line(ctx: BridgeContext, text: str) -> None:
    """Print the completions for a full line, as if Tab were pressed at its end."""
    try:
        result = ctx.get_service().get_completions(ctx.get_completion_context(), text, 0, 0)
    except RLCompleteError as e:
        ctx.formatter.error(str(e))
        return
    ctx.formatter.completions(result)


def launch_repl(ctx: BridgeContext) -> None:
    """Launch the interactive REPL session."""
    console.print()
    console.print(
        Panel(
            "[bold cyan]rlcomplete[/bold cyan] — shell completion bridge\n"
            "Press Tab to complete with your shell. Type [bold]/help[/bold] for help.",
            border_style="cyan",
        )
    )
    console.print()

    config = ctx.get_config()
    service = ctx.get_service()
    completion_ctx = ctx.get_completion_context()
    sweeper = service.start_sweeper(float(config.get("session", {}).get("sweep_interval", 60.0)))

    session: PromptSession[str] = PromptSession(
        completer=ShellCompleter(service, completion_ctx),
        complete_in_thread=True,
        history=FileHistory(str(get_history_path())),
        enable_history_search=True,
    )

    try:
        while True:
            try:
                text = session.prompt("complete> ")
                if not text.strip():
                    continue

                if text.startswith("/"):
                    _route_slash_command(ctx, text.strip())
                else:
                    _complete_line(ctx, text)

                console.print()  # blank line between outputs

            except (EOFError, KeyboardInterrupt):
                console.print("\n[dim]Goodbye![/dim]")
                break
    finally:
        sweeper.stop()
        ctx.close()


@click.command("repl")
@pass_context
def repl_cmd(ctx: BridgeContext) -> None:
    """Launch the interactive completion REPL."""
    launch_repl(ctx)
