"""Configuration commands."""

from __future__ import annotations

import click

from rlcomplete.cli.main import BridgeContext, pass_context
from rlcomplete.core.config import coerce_value, get_config_path, load_config, update_config
from rlcomplete.core.exceptions import ConfigError


@click.group()
@pass_context
def config(ctx: BridgeContext) -> None:
    """Show or change rlcomplete settings."""
    pass


@config.command("show")
@pass_context
def config_show(ctx: BridgeContext) -> None:
    """Show the effective configuration."""
    cfg = load_config()
    if ctx.json_mode:
        ctx.formatter.json(cfg)
        return
    rows = [
        [section, key, repr(value)]
        for section, values in cfg.items()
        if isinstance(values, dict)
        for key, value in values.items()
    ]
    ctx.formatter.table(
        title="Configuration",
        columns=[("Section", "cyan"), ("Key", "bold"), ("Value", "green")],
        rows=rows,
    )


@config.command("path")
@pass_context
def config_path(ctx: BridgeContext) -> None:
    """Print the config file location."""
    path = str(get_config_path())
    if ctx.json_mode:
        ctx.formatter.json({"path": path})
    else:
        ctx.formatter.print(path)


@config.command("set")
@click.argument("key")
@click.argument("value")
@pass_context
def config_set(ctx: BridgeContext, key: str, value: str) -> None:
    """Set SECTION.KEY to VALUE, e.g. `config set session.idle_timeout 120`."""
    section, sep, name = key.partition(".")
    if not sep or not section or not name:
        raise click.BadParameter("expected SECTION.KEY", param_hint="KEY")
    try:
        cfg = update_config(**{section: {name: coerce_value(value)}})
    except ConfigError as e:
        ctx.formatter.error(str(e))
        raise SystemExit(1)
    if ctx.json_mode:
        ctx.formatter.json(cfg.get(section, {}))
    else:
        ctx.formatter.success(f"{section}.{name} = {cfg[section][name]!r}")
