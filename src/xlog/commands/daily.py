"""Commands: the daily snapshot, the overdue sweep, and XP history."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from xlog.commands._base import XlogCommand

if TYPE_CHECKING:
    from xlog.commands._context import AppContext


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog daily
  xlog --today 2025-03-01 daily""",
)
@click.pass_obj
def daily(app: AppContext) -> None:
    """Log today's snapshot (daily login, overdue sweep, XP row) if not yet done."""
    from xlog.services.snapshot import SnapshotService

    app.emit(
        SnapshotService(app.open_store(daily=False)).log_today_if_needed(
            today=app.today,
            login_task=app.settings.daily.login_task,
        )
    )


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog penalties
  xlog --json penalties""",
)
@click.pass_obj
def penalties(app: AppContext) -> None:
    """Apply today's overdue penalties (at most once per task per day)."""
    from xlog.services.penalty import PenaltyService

    app.emit(PenaltyService(app.open_store(daily=False)).sweep_overdue_penalties(today=app.today))


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog history
  xlog history --limit 30""",
)
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Newest N entries.")
@click.pass_obj
def history(app: AppContext, limit: int | None) -> None:
    """Show the daily XP history, newest first."""
    from xlog.services.snapshot import SnapshotService

    app.emit(SnapshotService(app.open_store()).history(limit=limit))
