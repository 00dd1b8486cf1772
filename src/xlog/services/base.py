"""BaseService — foundation for all xlog services.

Every service receives a :class:`Store` at construction time. The Store
provides the persistence gateway and the unit-of-work boundary; services
own their transactions via ``self._store.transaction()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from xlog.services.result import ServiceResult, failure

if TYPE_CHECKING:
    from xlog.domain.models import Element
    from xlog.infrastructure.store import Store, StoreTransaction

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class ProgressionService(BaseService):
            def complete_task(self, task_id: int) -> ServiceResult:
                with self._store.transaction() as txn:
                    ...
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle event. No-op if the event bus is not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._store.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")


def require_profile(txn: StoreTransaction, op: str) -> ServiceResult | None:
    """Return a NOT_INITIALIZED failure if setup has not run, else None."""
    if txn.get_profile() is None:
        return failure(op, "NOT_INITIALIZED", "No profile found. Run 'xlog init' first.")
    return None


def resolve_element(
    txn: StoreTransaction,
    name: str,
    op: str,
    *,
    code: str = "NOT_FOUND",
    role: str = "Element",
) -> Element | ServiceResult:
    """Resolve an element name to exactly one element, or a failure result.

    *code* lets callers report a missing element as ``INVALID_REFERENCE``
    when it is being referenced by a task.
    """
    matches = txn.find_elements_by_name(name)
    if not matches:
        return failure(op, code, f"{role} not found: {name}", detail={"name": name})
    if len(matches) > 1:
        return failure(
            op,
            "AMBIGUOUS_NAME",
            f"{role} name {name!r} exists in several domains; use 'Domain/{name}'",
            detail={"name": name, "element_ids": [e.id for e in matches]},
        )
    return matches[0]
