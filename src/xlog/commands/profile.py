"""Commands: profile overview, domain detail, and the rank curve."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from xlog.commands._base import XlogCommand

if TYPE_CHECKING:
    from xlog.commands._context import AppContext


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog profile
  xlog --json profile""",
)
@click.pass_obj
def profile(app: AppContext) -> None:
    """Show profile XP, rank, domain totals and days left."""
    from xlog.services.profile import ProfileService

    app.emit(
        ProfileService(app.open_store()).profile(
            today=app.today,
            horizon_years=app.settings.profile.horizon_years,
        )
    )


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog info Mind
  xlog -v info Body""",
)
@click.argument("domain")
@click.pass_obj
def info(app: AppContext, domain: str) -> None:
    """Show the elements of DOMAIN ranked by XP."""
    from xlog.services.profile import ProfileService

    app.emit(ProfileService(app.open_store()).domain(domain))


@click.command(
    cls=XlogCommand,
    examples="""\
  xlog rank 2000
  xlog --json rank 109500""",
)
@click.argument("xp", type=float)
@click.pass_obj
def rank(app: AppContext, xp: float) -> None:
    """Place an XP value on the rank curve."""
    from xlog.services.progression import ProgressionService

    app.emit(ProgressionService.compute_rank(xp))
