"""One-shot completion command."""

from __future__ import annotations

import click

from rlcomplete.cli.main import BridgeContext, pass_context
from rlcomplete.core.exceptions import RLCompleteError


@click.command("complete")
@click.argument("text")
@click.option("--point-offset", type=int, default=0, show_default=True,
              help="Characters between the cursor and the end of TEXT.")
@click.option("--input-offset", type=int, default=0, show_default=True,
              help="Position of TEXT's first character in the caller's buffer.")
@click.option("--cwd", type=click.Path(exists=True, file_okay=False), default=None,
              help="Directory to complete in (default: current directory).")
@click.option("--timeout", type=float, default=None,
              help="Seconds to wait for the engine (overrides session.read_timeout).")
@pass_context
def complete_cmd(
    ctx: BridgeContext,
    text: str,
    point_offset: int,
    input_offset: int,
    cwd: str | None,
    timeout: float | None,
) -> None:
    """Complete TEXT with the shell's own completion engine."""
    try:
        service = ctx.get_service(timeout=timeout)
        completion_ctx = ctx.get_completion_context(cwd)
        result = service.get_completions(completion_ctx, text, input_offset, point_offset)
    except RLCompleteError as e:
        if ctx.json_mode:
            ctx.formatter.json_error(str(e))
        else:
            ctx.formatter.error(str(e))
        raise SystemExit(1)
    finally:
        ctx.close()

    ctx.formatter.completions(result)
