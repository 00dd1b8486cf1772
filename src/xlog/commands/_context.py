"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy Store initialization, the automatic
daily snapshot, and centralized result emission (stdout/stderr routing
and exit codes).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

import click

from xlog.output.formatters import OutputSettings, format_result
from xlog.services._helpers import resolve_today

if TYPE_CHECKING:
    from xlog.config.settings import XlogSettings
    from xlog.infrastructure.store import Store
    from xlog.services.result import ServiceResult

logger = logging.getLogger(__name__)


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The store is created on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: XlogSettings) -> None:
        self.settings = settings
        self._store: Store | None = None
        self._daily_done = False

        from xlog.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )

        if settings.verbose:
            from xlog.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def today(self) -> date:
        """The ``--today`` override, or the local calendar date."""
        return resolve_today(self.settings.today)

    @property
    def store(self) -> Store:
        """The store instance (created lazily on first access)."""
        if self._store is None:
            from xlog.infrastructure.store import Store

            self._store = Store(self.settings.data_dir)
            if self.settings.plugins.enabled:
                self._store.init_event_bus(sync=self.settings.sync)
        return self._store

    def open_store(self, *, daily: bool = True) -> Store:
        """The store, after the automatic daily snapshot when *daily* is set."""
        if daily:
            self.run_daily()
        return self.store

    def run_daily(self) -> None:
        """Log today's snapshot once per invocation when ``daily.auto_log`` is on.

        Skipped before ``xlog init`` and on databases that still need
        ``xlog upgrade``. Output goes to stderr so it never mixes with the
        command's own result.
        """
        if self._daily_done or not self.settings.daily.auto_log:
            return
        self._daily_done = True

        from xlog.services.snapshot import SnapshotService
        from xlog.services.upgrade import UpgradeService

        store = self.store
        if UpgradeService(store).needs_upgrade():
            click.echo("WARNING: database schema is outdated; run 'xlog upgrade'", err=True)
            return
        with store.read() as txn:
            if txn.get_profile() is None:
                return

        result = SnapshotService(store).log_today_if_needed(
            today=self.today,
            login_task=self.settings.daily.login_task,
        )
        if result.ok and result.data.get("logged") and not self.settings.quiet:
            penalties = len(result.data.get("penalties", []))
            click.echo(
                f"Logged {result.data['date']}: profile XP "
                f"{result.data['profile_xp']:.2f}, {penalties} overdue penalties",
                err=True,
            )
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)

    def close(self) -> None:
        """Flush pending plugin events and release the database."""
        if self._store is not None:
            self._store.close()
            self._store = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
