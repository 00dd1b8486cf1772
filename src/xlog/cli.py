"""Root CLI group for xlog with global flags and command registration."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import click

from xlog import __version__
from xlog.commands import register_commands
from xlog.commands._context import AppContext
from xlog.config.settings import XlogSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="xlog")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--no-interact", is_flag=True, help="Non-interactive mode (no prompts).")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding xLog.db (default: ~/xLog).",
)
@click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Act as if today were this date (YYYY-MM-DD).",
)
@click.option("--sync", is_flag=True, help="Force synchronous plugin event dispatch.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    no_interact: bool,
    config_path: str | None,
    data_dir: Path | None,
    today: datetime | None,
    sync: bool,
) -> None:
    """xlog — level up your life: tasks, streaks, XP and ranks."""
    ctx.ensure_object(dict)
    settings = XlogSettings.from_cli(
        config_path=config_path,
        data_dir=data_dir,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        no_interact=no_interact,
        sync=sync,
        today=today.date() if today is not None else None,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
