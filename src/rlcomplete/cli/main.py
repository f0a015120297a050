"""Root CLI group — entry point for all rlcomplete commands."""

from __future__ import annotations

import logging
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler

from rlcomplete import __version__
from rlcomplete.core.exceptions import ConfigError
from rlcomplete.output.formatter import OutputFormatter


class BridgeContext:
    """Shared context passed through Click commands."""

    def __init__(self, json_mode: bool = False) -> None:
        self.json_mode = json_mode
        self.formatter = OutputFormatter(json_mode=json_mode)
        self._config: dict[str, Any] | None = None
        self._service = None
        self._completion_ctx = None

    def set_json_mode(self, json_mode: bool) -> None:
        self.json_mode = json_mode
        self.formatter = OutputFormatter(json_mode=json_mode)

    def get_config(self) -> dict[str, Any]:
        """Lazy-load and return the configuration."""
        if self._config is None:
            from rlcomplete.core.config import load_config

            self._config = load_config()
        return self._config

    def get_service(self, timeout: float | None = None):
        """Lazy-build and return the completion service."""
        if self._service is None:
            from rlcomplete.services.completion_service import CompletionService

            self._service = CompletionService.from_config(self.get_config(), timeout=timeout)
        return self._service

    def get_completion_context(self, cwd: str | None = None):
        """Lazy-create and return the completion context for this invocation."""
        if self._completion_ctx is None:
            from rlcomplete.services.context import CompletionContext

            self._completion_ctx = CompletionContext(cwd)
        return self._completion_ctx

    def close(self) -> None:
        """End the completion context, tearing down its engine session."""
        if self._completion_ctx is not None:
            self._completion_ctx.close()
            self._completion_ctx = None


pass_context = click.make_pass_decorator(BridgeContext, ensure=True)


def _set_json(ctx: click.Context, _param: click.Parameter, value: bool) -> bool:
    if value:
        ctx.ensure_object(BridgeContext).set_json_mode(True)
    return value


class JsonGroup(click.Group):
    """Group whose subcommands also accept --json after the subcommand name."""

    def add_command(self, cmd: click.Command, name: str | None = None) -> None:
        if not any(isinstance(p, click.Option) and "--json" in p.opts for p in cmd.params):
            cmd.params.append(
                click.Option(
                    ["--json", "json_flag"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=_set_json,
                    help="Output JSON for agent consumption.",
                )
            )
        super().add_command(cmd, name)


def configure_logging(level: str | int) -> None:
    """Send log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group(cls=JsonGroup, invoke_without_command=True)
@click.option("--json", "json_mode", is_flag=True, help="Output JSON for agent consumption.")
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
@click.version_option(__version__, prog_name="rlcomplete")
@click.pass_context
def cli(ctx: click.Context, json_mode: bool, verbose: int) -> None:
    """rlcomplete — shell tab-completion through a long-lived readline engine.

    Run without a subcommand to launch the interactive REPL.
    """
    ctx.obj = BridgeContext(json_mode=json_mode)
    ctx.call_on_close(ctx.obj.close)

    if verbose:
        configure_logging(logging.DEBUG if verbose > 1 else logging.INFO)
    else:
        try:
            level = ctx.obj.get_config().get("logging", {}).get("level", "WARNING")
        except ConfigError as e:
            ctx.obj.formatter.warning(str(e))
            level = "WARNING"
        configure_logging(str(level).upper())

    if ctx.invoked_subcommand is None:
        # No subcommand → launch interactive REPL
        from rlcomplete.cli.repl import launch_repl
        launch_repl(ctx.obj)


# ── Register subcommands ──────────────────────────────────────────

from rlcomplete.cli.complete_cmd import complete_cmd
cli.add_command(complete_cmd, "complete")

from rlcomplete.cli.config_cmd import config
cli.add_command(config)

from rlcomplete.cli.repl import repl_cmd
cli.add_command(repl_cmd, "repl")
