"""UpgradeService — database migration with Alembic.

Pipeline: BACKUP → MIGRATE → VALIDATE → REPORT

Databases written by the first xLog releases have the baseline tables but
neither an ``alembic_version`` table nor the ``tasks.last_penalty_date``
column. They are stamped at the baseline revision and then upgraded.
"""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any

from alembic import command
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect

from xlog.infrastructure.database.migrations import build_config, db_url_for
from xlog.services.base import BaseService
from xlog.services.result import ServiceResult, failure

logger = logging.getLogger(__name__)

BASELINE_REVISION = "001_baseline"


class UpgradeService(BaseService):
    """Handles database schema migrations via Alembic."""

    def _db_url(self) -> str:
        return db_url_for(self._store.data_dir)

    def _task_columns(self) -> set[str]:
        insp = inspect(self._store.engine)
        if "tasks" not in insp.get_table_names():
            return set()
        return {c["name"] for c in insp.get_columns("tasks")}

    def needs_upgrade(self) -> bool:
        """True if the tasks table predates penalty tracking."""
        columns = self._task_columns()
        return bool(columns) and "last_penalty_date" not in columns

    def _backup_db(self) -> Path:
        """Copy the database file into ``{data_dir}/backups/``."""
        backups = self._store.data_dir / "backups"
        backups.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        target = backups / f"xLog-{stamp}.db"
        shutil.copy2(self._store.db_path, target)
        logger.info("Database backed up to %s", target)
        return target

    def check_pending(self) -> ServiceResult:
        """List pending migrations without applying."""
        op = "upgrade"

        try:
            cfg = build_config(self._db_url())
            script = ScriptDirectory.from_config(cfg)
            head = script.get_current_head()

            with self._store.engine.connect() as conn:
                ctx = MigrationContext.configure(conn)
                current = ctx.get_current_revision()

            legacy = current is None and self.needs_upgrade()
            stop_at = BASELINE_REVISION if legacy else current

            # Walk from head down to the current (or assumed baseline) revision
            pending: list[dict[str, Any]] = []
            if current is None and not legacy:
                # Created by create_all but never stamped
                pending = [{"revision": head, "description": "stamp current schema"}]
            elif stop_at != head and head is not None:
                rev_obj = script.get_revision(head)
                while rev_obj is not None and rev_obj.revision != stop_at:
                    pending.append(
                        {
                            "revision": rev_obj.revision,
                            "description": (rev_obj.doc or "").strip(),
                        }
                    )
                    down = rev_obj.down_revision
                    if down is None:
                        break
                    rev_obj = script.get_revision(str(down))

            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "pending_count": len(pending),
                    "pending": pending,
                    "current": current,
                    "head": head,
                    "legacy": legacy,
                },
            )
        except Exception as exc:
            return failure(op, "CHECK_FAILED", f"Failed to check migrations: {exc}")

    def apply(self) -> ServiceResult:
        """BACKUP → MIGRATE → VALIDATE → REPORT pipeline."""
        op = "upgrade"
        warnings: list[str] = []

        check_result = self.check_pending()
        if not check_result.ok:
            return check_result

        pending_count = check_result.data["pending_count"]
        if pending_count == 0:
            return ServiceResult(
                ok=True,
                op=op,
                data={
                    "applied_count": 0,
                    "current": check_result.data["head"],
                    "message": "Database is already up to date",
                },
            )

        # BACKUP
        try:
            backup_path = self._backup_db()
        except Exception as exc:
            return failure(op, "BACKUP_FAILED", f"Backup failed: {exc}")

        # MIGRATE (legacy databases are stamped at the baseline first)
        try:
            cfg = build_config(self._db_url())
            if check_result.data["legacy"]:
                command.stamp(cfg, BASELINE_REVISION)
                command.upgrade(cfg, "head")
            elif check_result.data["current"] is None:
                command.stamp(cfg, "head")
            else:
                command.upgrade(cfg, "head")
        except Exception as exc:
            return failure(
                op,
                "MIGRATION_FAILED",
                f"Migration failed: {exc}. Backup at: {backup_path}",
                detail={"backup_path": str(backup_path)},
            )

        # VALIDATE
        if self.needs_upgrade():
            warnings.append("tasks.last_penalty_date is still missing after the upgrade")

        logger.info("Database upgraded to %s", check_result.data["head"])
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "applied_count": pending_count,
                "current": check_result.data["head"],
                "backup_path": str(backup_path),
            },
            warnings=warnings,
        )
