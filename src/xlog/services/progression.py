"""ProgressionService — task completion awards, focus, grants, and ranks.

Completion pipeline: LOOKUP → AWARD → APPLY → EVENT → RESPOND

The XP writes and the ``last_done``/``streak`` writes of one completion
share a single store transaction: either all four fields change or none.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any

from xlog.domain.progression import Award, compute_award, compute_grant
from xlog.domain.ranks import compute_rank
from xlog.domain.types import TaskType, parse_task_type
from xlog.services._helpers import resolve_today
from xlog.services.base import BaseService, resolve_element
from xlog.services.contracts import CompletionData, dump_validated
from xlog.services.result import ServiceResult, failure
from xlog.services.telemetry import traced

if TYPE_CHECKING:
    from xlog.domain.models import Element, Task
    from xlog.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Completion:
    """What one completion did to a task and its two elements."""

    task: Task
    award: Award
    focus: bool
    late: bool
    streak: int
    day: date

    def as_data(self) -> dict[str, Any]:
        return dump_validated(
            CompletionData,
            {
                "task_id": self.task.id,
                "task": self.task.name,
                "type": self.task.type.value,
                "major_element_id": self.task.major_element_id,
                "minor_element_id": self.task.minor_element_id,
                "major_xp": self.award.major,
                "minor_xp": self.award.minor,
                "focus": self.focus,
                "late": self.late,
                "streak": self.streak,
                "last_done": self.day.isoformat(),
            },
        )

    def event_payload(self) -> dict[str, Any]:
        return {
            "task_id": self.task.id,
            "task_name": self.task.name,
            "major_xp": self.award.major,
            "minor_xp": self.award.minor,
            "streak": self.streak,
            "late": self.late,
        }


def apply_completion(txn: StoreTransaction, task: Task, today: date) -> Completion:
    """Award XP for one completion of *task* and advance its streak.

    Must run inside a write transaction. Also used by the daily snapshot
    for the daily-login task, inside the snapshot's own transaction.
    """
    major = txn.get_element(task.major_element_id)
    focus = major is not None and major.is_focus
    late = task.is_overdue(today)
    award = compute_award(task.type, focus=focus, streak=task.streak, late=late)

    txn.update_element_xp(task.major_element_id, award.major)
    txn.update_element_xp(task.minor_element_id, award.minor)
    new_streak = task.streak + 1
    txn.update_task(task.id, last_done=today, streak=new_streak)

    logger.info(
        "Task completed: %s (+%d major, +%d minor, streak %d%s)",
        task.name,
        award.major,
        award.minor,
        new_streak,
        ", late" if late else "",
    )
    return Completion(task=task, award=award, focus=focus, late=late, streak=new_streak, day=today)


class ProgressionService(BaseService):
    """Applies task completions, ad-hoc grants, and focus changes."""

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    @traced
    def complete_task(self, task_id: int, *, today: date | None = None) -> ServiceResult:
        """Complete a task by id.

        No same-day dedupe: two calls award twice and add two to the streak.
        """
        op = "complete_task"
        day = resolve_today(today)

        with self._store.transaction() as txn:
            task = txn.get_task(task_id)
            if task is None:
                return failure(op, "NOT_FOUND", f"No task found with ID: {task_id}")
            completion = apply_completion(txn, task, day)

        return self._respond(op, completion)

    @traced
    def complete_task_by_name(self, name: str, *, today: date | None = None) -> ServiceResult:
        """Complete a task by its unique name."""
        op = "complete_task"
        day = resolve_today(today)

        with self._store.transaction() as txn:
            task = txn.get_task_by_name(name)
            if task is None:
                return failure(op, "NOT_FOUND", f"Task not found: {name}", detail={"name": name})
            completion = apply_completion(txn, task, day)

        return self._respond(op, completion)

    def _respond(self, op: str, completion: Completion) -> ServiceResult:
        warnings: list[str] = []
        self._dispatch_event("post_complete", completion.event_payload(), warnings)
        return ServiceResult(ok=True, op=op, data=completion.as_data(), warnings=warnings)

    # ------------------------------------------------------------------
    # Ad-hoc grant (no task involved)
    # ------------------------------------------------------------------

    @traced
    def grant_xp(self, task_type: str | TaskType, major: str, minor: str) -> ServiceResult:
        """Award a task type's base amounts to two elements.

        A focused major element adds a whole tenth to both amounts. No
        streak and no lateness apply; no task state changes.
        """
        op = "grant_xp"
        try:
            ttype = task_type if isinstance(task_type, TaskType) else parse_task_type(task_type)
        except ValueError as exc:
            return failure(op, "VALIDATION_FAILED", str(exc))

        with self._store.transaction() as txn:
            major_el = resolve_element(txn, major, op, role="Major element")
            if isinstance(major_el, ServiceResult):
                return major_el
            minor_el = resolve_element(txn, minor, op, role="Minor element")
            if isinstance(minor_el, ServiceResult):
                return minor_el

            award = compute_grant(ttype, focus=major_el.is_focus)
            txn.update_element_xp(major_el.id, award.major)
            txn.update_element_xp(minor_el.id, award.minor)

        logger.info("Granted %s XP: %s +%d, %s +%d", ttype, major, award.major, minor, award.minor)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "type": ttype.value,
                "major_element_id": major_el.id,
                "minor_element_id": minor_el.id,
                "major_xp": award.major,
                "minor_xp": award.minor,
                "focus": major_el.is_focus,
            },
        )

    # ------------------------------------------------------------------
    # Focus
    # ------------------------------------------------------------------

    @traced
    def set_focus(self, element_id: int) -> ServiceResult:
        """Make an element the only focus element of its domain."""
        op = "set_focus"
        with self._store.transaction() as txn:
            element = txn.get_element(element_id)
            if element is None:
                return failure(op, "NOT_FOUND", f"No element found with ID: {element_id}")
            data = _apply_focus(txn, element)
        return self._respond_focus(op, data)

    @traced
    def set_focus_by_name(self, name: str) -> ServiceResult:
        """Resolve an element name (``Element`` or ``Domain/Element``) and focus it."""
        op = "set_focus"
        with self._store.transaction() as txn:
            element = resolve_element(txn, name, op)
            if isinstance(element, ServiceResult):
                return element
            data = _apply_focus(txn, element)
        return self._respond_focus(op, data)

    def _respond_focus(self, op: str, data: dict[str, Any]) -> ServiceResult:
        warnings: list[str] = []
        self._dispatch_event(
            "post_focus",
            {"element_id": data["element_id"], "domain_id": data["domain_id"]},
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # Rank
    # ------------------------------------------------------------------

    @staticmethod
    def compute_rank(xp: float) -> ServiceResult:
        """Place an XP value on the rank curve (pure; no store access)."""
        return ServiceResult(ok=True, op="compute_rank", data=compute_rank(xp).model_dump())


def _apply_focus(txn: StoreTransaction, element: Element) -> dict[str, Any]:
    """Clear every sibling's focus flag and set it on *element*."""
    cleared = [
        e.id for e in txn.list_elements(element.domain_id) if e.is_focus and e.id != element.id
    ]
    txn.set_focus_element(element.domain_id, element.id)
    logger.info("Focus set: %s (domain %d)", element.name, element.domain_id)
    return {
        "element_id": element.id,
        "element": element.name,
        "domain_id": element.domain_id,
        "cleared": cleared,
    }
