"""SetupService — first-run creation of the profile and its taxonomy.

Pipeline: VALIDATE → PROFILE → DOMAINS → ELEMENTS → LOGIN TASK → STAMP

A profile has exactly four domains, each with at least one element. When
an element carries the configured login-element name, the daily-login task
is created against it so the daily snapshot can award it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from xlog.domain.profile import DOMAIN_COUNT
from xlog.domain.types import TaskType
from xlog.infrastructure.database.migrations import stamp_head
from xlog.services._helpers import resolve_today
from xlog.services.base import BaseService
from xlog.services.result import ServiceResult, failure
from xlog.services.telemetry import traced

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_TASK = "daily_login"
DEFAULT_LOGIN_ELEMENT = "Discipline"


def _validate_taxonomy(
    op: str, user_name: str, domains: Mapping[str, Sequence[str]]
) -> ServiceResult | None:
    if not user_name.strip():
        return failure(op, "VALIDATION_FAILED", "User name must not be empty")
    if len(domains) != DOMAIN_COUNT:
        return failure(
            op,
            "VALIDATION_FAILED",
            f"Exactly {DOMAIN_COUNT} domains are required, got {len(domains)}",
            detail={"domains": list(domains)},
        )
    seen_domains: set[str] = set()
    for domain_name, element_names in domains.items():
        domain_key = domain_name.strip()
        if not domain_key:
            return failure(op, "VALIDATION_FAILED", "Domain names must not be empty")
        if domain_key in seen_domains:
            return failure(
                op,
                "VALIDATION_FAILED",
                f"Duplicate domain name: {domain_key}",
                detail={"domain": domain_key},
            )
        seen_domains.add(domain_key)

        cleaned = [e.strip() for e in element_names]
        if not cleaned:
            return failure(
                op,
                "VALIDATION_FAILED",
                f"Domain {domain_key!r} needs at least one element",
                detail={"domain": domain_key},
            )
        if any(not e for e in cleaned):
            return failure(
                op,
                "VALIDATION_FAILED",
                f"Element names in {domain_key!r} must not be empty",
                detail={"domain": domain_key},
            )
        if len(set(cleaned)) != len(cleaned):
            return failure(
                op,
                "VALIDATION_FAILED",
                f"Element names must be unique within domain {domain_key!r}",
                detail={"domain": domain_key, "elements": cleaned},
            )
    return None


class SetupService(BaseService):
    """Creates the singleton profile, its four domains and their elements."""

    @traced
    def initialize(
        self,
        user_name: str,
        domains: Mapping[str, Sequence[str]],
        *,
        today: date | None = None,
        login_task: str | None = DEFAULT_LOGIN_TASK,
        login_element: str = DEFAULT_LOGIN_ELEMENT,
    ) -> ServiceResult:
        """Create the profile and its domains, in the order *domains* lists them.

        The domain order is significant: it fixes which ``domainN_xp``
        history column each domain is logged under.
        """
        op = "init"
        invalid = _validate_taxonomy(op, user_name, domains)
        if invalid is not None:
            return invalid
        day = resolve_today(today)
        warnings: list[str] = []

        created: list[dict[str, Any]] = []
        login: dict[str, Any] | None = None
        with self._store.transaction() as txn:
            if txn.get_profile() is not None:
                return failure(
                    op,
                    "ALREADY_INITIALIZED",
                    f"A profile already exists in {self._store.data_dir}",
                    detail={"data_dir": str(self._store.data_dir)},
                )
            txn.insert_profile(user_name.strip(), day)

            login_element_id: int | None = None
            for domain_name, element_names in domains.items():
                domain_id = txn.insert_domain(domain_name.strip())
                element_ids: list[dict[str, Any]] = []
                for element_name in element_names:
                    element_id = txn.insert_element(domain_id, element_name.strip())
                    element_ids.append({"id": element_id, "name": element_name.strip()})
                    if login_element_id is None and element_name.strip() == login_element:
                        login_element_id = element_id
                created.append(
                    {"id": domain_id, "name": domain_name.strip(), "elements": element_ids}
                )

            if login_task and login_element_id is not None:
                task_id = txn.insert_task(
                    login_task, TaskType.QUICK, 1, login_element_id, login_element_id
                )
                login = {"id": task_id, "name": login_task, "element_id": login_element_id}
            elif login_task:
                warnings.append(
                    f"No element named {login_element!r}; daily login task not created"
                )

        try:
            stamp_head(self._store.data_dir)
        except Exception as exc:
            logger.debug("Stamping the new database failed", exc_info=True)
            warnings.append(f"Could not stamp schema version: {exc}")

        logger.info("Profile created for %s with %d domains", user_name, len(created))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "user_name": user_name.strip(),
                "created_at": day.isoformat(),
                "data_dir": str(self._store.data_dir),
                "domains": created,
                "login_task": login,
            },
            warnings=warnings,
        )
