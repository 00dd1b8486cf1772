"""TaskService — create, edit, pause and list tasks.

Element references are resolved and validated before anything is written:
a task can never point at a missing element, and a failed create or edit
leaves the store untouched.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from xlog.domain.types import TaskType, parse_task_type
from xlog.services._helpers import resolve_today
from xlog.services.base import BaseService, require_profile, resolve_element
from xlog.services.result import ServiceResult, failure
from xlog.services.telemetry import traced

if TYPE_CHECKING:
    from xlog.domain.models import Element, Task
    from xlog.infrastructure.store import StoreTransaction

logger = logging.getLogger(__name__)

TaskRef = int | str


def _find_task(txn: StoreTransaction, ref: TaskRef) -> Task | None:
    if isinstance(ref, int):
        return txn.get_task(ref)
    return txn.get_task_by_name(ref)


def _not_found(op: str, ref: TaskRef) -> ServiceResult:
    if isinstance(ref, int):
        return failure(op, "NOT_FOUND", f"No task found with ID: {ref}", detail={"id": ref})
    return failure(op, "NOT_FOUND", f"Task not found: {ref}", detail={"name": ref})


def _resolve_reference(
    txn: StoreTransaction, ref: int | str, op: str, role: str
) -> Element | ServiceResult:
    if isinstance(ref, int):
        element = txn.get_element(ref)
        if element is None:
            return failure(
                op,
                "INVALID_REFERENCE",
                f"{role} element does not exist: {ref}",
                detail={"id": ref},
            )
        return element
    return resolve_element(txn, ref, op, code="INVALID_REFERENCE", role=f"{role} element")


def _validate_fields(
    op: str, name: str | None, frequency_days: int | None
) -> ServiceResult | None:
    if name is not None and not name.strip():
        return failure(op, "VALIDATION_FAILED", "Task name must not be empty")
    if frequency_days is not None and frequency_days < 0:
        return failure(
            op,
            "VALIDATION_FAILED",
            f"Frequency must be >= 0 days, got {frequency_days}",
            detail={"frequency_days": frequency_days},
        )
    return None


def _coerce_type(op: str, task_type: str | TaskType) -> TaskType | ServiceResult:
    if isinstance(task_type, TaskType):
        return task_type
    try:
        return parse_task_type(task_type)
    except ValueError as exc:
        return failure(op, "VALIDATION_FAILED", str(exc), detail={"type": task_type})


def task_item(task: Task, names: dict[int, str], today: date | None = None) -> dict[str, Any]:
    """Serialize a task for list and detail payloads."""
    due = task.due_date()
    item: dict[str, Any] = {
        "id": task.id,
        "name": task.name,
        "type": task.type.value,
        "frequency_days": task.frequency_days,
        "major_element_id": task.major_element_id,
        "minor_element_id": task.minor_element_id,
        "major": names.get(task.major_element_id, ""),
        "minor": names.get(task.minor_element_id, ""),
        "last_done": task.last_done.isoformat() if task.last_done else None,
        "streak": task.streak,
        "active": task.active,
        "due": due.isoformat() if due else None,
    }
    if today is not None:
        item["overdue"] = task.is_overdue(today)
    return item


class TaskService(BaseService):
    """CRUD over tasks plus the list of tasks due today."""

    @traced
    def create_task(
        self,
        name: str,
        task_type: str | TaskType,
        frequency_days: int,
        major: int | str,
        minor: int | str,
    ) -> ServiceResult:
        """Create a task pointing at two existing elements.

        *major* and *minor* are element ids or element names
        (``Element`` or ``Domain/Element``).
        """
        op = "create_task"
        name = name.strip()
        invalid = _validate_fields(op, name, frequency_days)
        if invalid is not None:
            return invalid
        ttype = _coerce_type(op, task_type)
        if isinstance(ttype, ServiceResult):
            return ttype

        with self._store.transaction() as txn:
            missing = require_profile(txn, op)
            if missing is not None:
                return missing
            if txn.get_task_by_name(name) is not None:
                return failure(
                    op, "DUPLICATE_NAME", f"Task already exists: {name}", detail={"name": name}
                )
            major_el = _resolve_reference(txn, major, op, "Major")
            if isinstance(major_el, ServiceResult):
                return major_el
            minor_el = _resolve_reference(txn, minor, op, "Minor")
            if isinstance(minor_el, ServiceResult):
                return minor_el

            task_id = txn.insert_task(name, ttype, frequency_days, major_el.id, minor_el.id)
            task = txn.get_task(task_id)
            assert task is not None

        logger.info("Task created: %s (%s, every %d days)", name, ttype, frequency_days)
        return ServiceResult(
            ok=True,
            op=op,
            data=task_item(task, {major_el.id: major_el.name, minor_el.id: minor_el.name}),
        )

    @traced
    def edit_task(
        self,
        ref: TaskRef,
        *,
        name: str | None = None,
        task_type: str | TaskType | None = None,
        frequency_days: int | None = None,
        major: int | str | None = None,
        minor: int | str | None = None,
    ) -> ServiceResult:
        """Apply a partial change to a task; unspecified fields are kept."""
        op = "edit_task"
        if name is not None:
            name = name.strip()
        invalid = _validate_fields(op, name, frequency_days)
        if invalid is not None:
            return invalid

        changes: dict[str, Any] = {}
        if task_type is not None:
            ttype = _coerce_type(op, task_type)
            if isinstance(ttype, ServiceResult):
                return ttype
            changes["type"] = ttype
        if frequency_days is not None:
            changes["frequency_days"] = frequency_days

        with self._store.transaction() as txn:
            task = _find_task(txn, ref)
            if task is None:
                return _not_found(op, ref)

            if name is not None and name != task.name:
                if txn.get_task_by_name(name) is not None:
                    return failure(
                        op,
                        "DUPLICATE_NAME",
                        f"Task already exists: {name}",
                        detail={"name": name},
                    )
                changes["name"] = name
            if major is not None:
                major_el = _resolve_reference(txn, major, op, "Major")
                if isinstance(major_el, ServiceResult):
                    return major_el
                changes["major_element_id"] = major_el.id
            if minor is not None:
                minor_el = _resolve_reference(txn, minor, op, "Minor")
                if isinstance(minor_el, ServiceResult):
                    return minor_el
                changes["minor_element_id"] = minor_el.id

            if changes:
                txn.update_task(task.id, **changes)
            updated = txn.get_task(task.id)
            assert updated is not None
            names = {e.id: e.name for e in txn.list_elements()}

        logger.info("Task edited: %s (%s)", updated.name, ", ".join(sorted(changes)) or "none")
        data = task_item(updated, names)
        data["changed"] = sorted(changes)
        return ServiceResult(ok=True, op=op, data=data)

    @traced
    def delete_task(self, ref: TaskRef) -> ServiceResult:
        op = "delete_task"
        with self._store.transaction() as txn:
            task = _find_task(txn, ref)
            if task is None:
                return _not_found(op, ref)
            txn.delete_task(task.id)

        logger.info("Task deleted: %s", task.name)
        return ServiceResult(ok=True, op=op, data={"id": task.id, "name": task.name})

    @traced
    def set_active(self, ref: TaskRef, active: bool) -> ServiceResult:
        """Enable or pause a task. Paused tasks are never due or penalized."""
        op = "set_active"
        with self._store.transaction() as txn:
            task = _find_task(txn, ref)
            if task is None:
                return _not_found(op, ref)
            if task.active != active:
                txn.update_task(task.id, active=active)

        logger.info("Task %s: %s", "enabled" if active else "paused", task.name)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": task.id,
                "name": task.name,
                "active": active,
                "changed": task.active != active,
            },
        )

    @traced
    def list_tasks(self, *, include_inactive: bool = True) -> ServiceResult:
        op = "list_tasks"
        with self._store.read() as txn:
            tasks = txn.list_tasks(active_only=not include_inactive)
            names = {e.id: e.name for e in txn.list_elements()}

        items = [task_item(t, names) for t in tasks]
        return ServiceResult(ok=True, op=op, data={"count": len(items), "items": items})

    @traced
    def due_tasks(self, *, today: date | None = None) -> ServiceResult:
        """Active tasks due on *today*: never done, or recurring and past due."""
        op = "due_tasks"
        day = resolve_today(today)
        with self._store.read() as txn:
            tasks = [t for t in txn.list_tasks(active_only=True) if t.is_due(day)]
            names = {e.id: e.name for e in txn.list_elements()}

        items = [task_item(t, names, day) for t in tasks]
        return ServiceResult(
            ok=True,
            op=op,
            data={"date": day.isoformat(), "count": len(items), "items": items},
        )
