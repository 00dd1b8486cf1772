"""SnapshotService — the once-per-day XP history row.

Snapshot pipeline (one write transaction):

    EXISTS? → DAILY LOGIN → SWEEP → AGGREGATE → INSERT → EVENTS

The existence check, the daily-login award, the overdue sweep and the
history insert share one ``BEGIN IMMEDIATE`` transaction, so two processes
starting on the same day cannot both log. The insert itself is an
``ON CONFLICT DO NOTHING`` statement as a second guard.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from xlog.domain.models import XpHistoryEntry
from xlog.domain.profile import pad_domain_sums, profile_xp
from xlog.services._helpers import resolve_today
from xlog.services.base import BaseService, require_profile
from xlog.services.contracts import SnapshotData, dump_validated
from xlog.services.penalty import penalty_payload, sweep
from xlog.services.progression import apply_completion
from xlog.services.result import ServiceResult
from xlog.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from xlog.services.contracts import PenaltyItem
    from xlog.services.progression import Completion

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_TASK = "daily_login"


class SnapshotService(BaseService):
    """Writes and reads the daily XP history."""

    @traced
    def log_today_if_needed(
        self,
        *,
        today: date | None = None,
        login_task: str | None = DEFAULT_LOGIN_TASK,
    ) -> ServiceResult:
        """Record today's snapshot unless one already exists.

        Before the row is written the daily-login task (when *login_task*
        names an existing task, paused or not) is completed and the overdue
        sweep runs, so the snapshot reflects both. Fails with NOT_INITIALIZED
        before setup has run.
        """
        op = "log_today"
        day = resolve_today(today)

        login: Completion | None = None
        penalties: list[PenaltyItem] = []
        with self._store.transaction() as txn:
            missing = require_profile(txn, op)
            if missing is not None:
                return missing
            if txn.xp_history_exists(day):
                logger.debug("Snapshot already logged for %s", day)
                return ServiceResult(
                    ok=True,
                    op=op,
                    data=dump_validated(SnapshotData, {"date": day.isoformat(), "logged": False}),
                )

            if login_task:
                task = txn.get_task_by_name(login_task)
                if task is not None:
                    login = apply_completion(txn, task, day)

            with trace_span("sweep"):
                penalties = sweep(txn, day)

            with trace_span("aggregate"):
                sums = txn.domain_xp_sums()
                padded = pad_domain_sums([total for _, total in sums])
                aggregate = profile_xp(padded)

            entry = XpHistoryEntry(date=day, profile_xp=aggregate, domain_xp=tuple(padded))
            logged = txn.insert_xp_history(entry)

        logger.info(
            "Snapshot %s: profile_xp=%.2f, penalties=%d",
            day,
            aggregate,
            len(penalties),
        )

        warnings: list[str] = []
        if login is not None:
            self._dispatch_event("post_complete", login.event_payload(), warnings)
        for item in penalties:
            self._dispatch_event("post_penalty", penalty_payload(item), warnings)
        if logged:
            self._dispatch_event(
                "post_snapshot",
                {
                    "date": day.isoformat(),
                    "profile_xp": aggregate,
                    "domain_xp": list(padded),
                },
                warnings,
            )

        payload: dict[str, Any] = {
            "date": day.isoformat(),
            "logged": logged,
            "profile_xp": aggregate,
            "domain_xp": {d.name: total for d, total in sums},
            "daily_login": login.as_data() if login is not None else None,
            "penalties": penalties,
        }
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(SnapshotData, payload),
            warnings=warnings,
        )

    @traced
    def history(self, *, limit: int | None = None) -> ServiceResult:
        """Logged snapshots, newest first."""
        op = "history"
        with self._store.read() as txn:
            entries = txn.list_xp_history(limit=limit)
            names = [d.name for d in txn.list_domains()[:4]]

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "domains": names,
                "count": len(entries),
                "items": [e.model_dump(mode="json") for e in entries],
            },
        )
