"""PenaltyService — the once-per-day overdue sweep.

Every active recurring task whose due date has passed loses the
late-completion amount of its award from both of its elements. The task's
``last_done`` and ``streak`` are left alone; only ``last_penalty_date``
moves, and it moves through a conditional UPDATE so the deduction happens
at most once per task per calendar day.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from xlog.domain.progression import compute_penalty
from xlog.services._helpers import resolve_today
from xlog.services.base import BaseService
from xlog.services.contracts import PenaltyItem, SweepData, dump_validated
from xlog.services.result import ServiceResult
from xlog.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from xlog.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)


def sweep(txn: StoreTransaction, today: date) -> list[PenaltyItem]:
    """Penalize every overdue, not-yet-penalized task inside *txn*.

    Must run inside a write transaction. The daily snapshot calls this
    within its own transaction so the sweep and the snapshot row commit
    together.
    """
    applied: list[PenaltyItem] = []
    for task in txn.list_active_overdue_unpenalized_tasks(today):
        if not txn.claim_penalty(task.id, today):
            logger.debug("Penalty already claimed: %s on %s", task.name, today)
            continue

        major = txn.get_element(task.major_element_id)
        focus = major is not None and major.is_focus
        penalty = compute_penalty(task.type, focus=focus, streak=task.streak)
        txn.update_element_xp(task.major_element_id, penalty.major)
        txn.update_element_xp(task.minor_element_id, penalty.minor)

        due = task.due_date()
        logger.info(
            "Overdue penalty: %s (%d major, %d minor, due %s)",
            task.name,
            penalty.major,
            penalty.minor,
            due,
        )
        applied.append(
            PenaltyItem(
                task_id=task.id,
                task=task.name,
                major_element_id=task.major_element_id,
                minor_element_id=task.minor_element_id,
                major_xp=penalty.major,
                minor_xp=penalty.minor,
                due=due.isoformat() if due is not None else None,
            )
        )
    return applied


def penalty_payload(item: PenaltyItem) -> dict[str, Any]:
    """Keyword arguments for the ``post_penalty`` hook."""
    return {
        "task_id": item.task_id,
        "task_name": item.task,
        "major_xp": item.major_xp,
        "minor_xp": item.minor_xp,
    }


class PenaltyService(BaseService):
    """Applies overdue penalties for one calendar day."""

    @traced
    def sweep_overdue_penalties(self, *, today: date | None = None) -> ServiceResult:
        """Run the overdue sweep for *today* (defaults to the local date).

        A second call on the same day finds nothing left to penalize.
        """
        op = "sweep_penalties"
        day = resolve_today(today)

        with trace_span("sweep"), self._store.transaction() as txn:
            applied = sweep(txn, day)

        warnings: list[str] = []
        for item in applied:
            self._dispatch_event("post_penalty", penalty_payload(item), warnings)

        data = dump_validated(
            SweepData,
            {"date": day.isoformat(), "count": len(applied), "penalties": applied},
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)
