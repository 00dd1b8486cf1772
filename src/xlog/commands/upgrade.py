"""Command: database schema migration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from xlog.commands._base import XlogCommand

if TYPE_CHECKING:
    from xlog.commands._context import AppContext


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog upgrade
  xlog upgrade --check
  xlog --json upgrade --check""",
)
@click.option(
    "--check", "check_only", is_flag=True, help="Show pending migrations without applying."
)
@click.pass_obj
def upgrade(app: AppContext, check_only: bool) -> None:
    """Run pending database migrations (backs up xLog.db first)."""
    from xlog.services.upgrade import UpgradeService

    svc = UpgradeService(app.open_store(daily=False))
    app.emit(svc.check_pending() if check_only else svc.apply())
