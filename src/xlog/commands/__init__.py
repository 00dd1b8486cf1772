"""Subcommand modules for xlog.

Provides register_commands() which uses deferred imports to keep
``xlog --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the command group and standalone commands on the root CLI group."""
    # --- Groups ---
    from xlog.commands.task import task

    cli.add_command(task)

    # --- Standalone commands ---
    from xlog.commands.daily import daily, history, penalties
    from xlog.commands.init_cmd import init_cmd
    from xlog.commands.profile import info, profile, rank
    from xlog.commands.progress import done, focus, grant
    from xlog.commands.task import today
    from xlog.commands.upgrade import upgrade

    cli.add_command(init_cmd)
    cli.add_command(today)
    cli.add_command(done)
    cli.add_command(grant)
    cli.add_command(focus)
    cli.add_command(profile)
    cli.add_command(info)
    cli.add_command(rank)
    cli.add_command(daily)
    cli.add_command(penalties)
    cli.add_command(history)
    cli.add_command(upgrade)
