"""ProfileService — read-only views of the profile and its domains."""

from __future__ import annotations

from datetime import date
from typing import Any

from xlog.domain.profile import days_elapsed, days_remaining, pad_domain_sums, profile_xp
from xlog.domain.ranks import compute_rank
from xlog.services._helpers import resolve_today
from xlog.services.base import BaseService, require_profile
from xlog.services.result import ServiceResult, failure
from xlog.services.telemetry import traced

DEFAULT_HORIZON_YEARS = 4


class ProfileService(BaseService):
    """Live aggregates over the current element XP totals."""

    @traced
    def profile(
        self,
        *,
        today: date | None = None,
        horizon_years: int = DEFAULT_HORIZON_YEARS,
    ) -> ServiceResult:
        """User, live profile XP and rank, per-domain totals, horizon countdown."""
        op = "profile"
        day = resolve_today(today)

        with self._store.read() as txn:
            missing = require_profile(txn, op)
            if missing is not None:
                return missing
            profile = txn.get_profile()
            assert profile is not None
            sums = txn.domain_xp_sums()
            focus = {e.domain_id: e.name for e in txn.list_elements() if e.is_focus}

        aggregate = profile_xp(pad_domain_sums([total for _, total in sums]))
        domains: list[dict[str, Any]] = [
            {
                "id": d.id,
                "name": d.name,
                "xp": total,
                "rank": compute_rank(total).name,
                "focus": focus.get(d.id),
            }
            for d, total in sums
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "user_name": profile.user_name,
                "created_at": profile.created_at.isoformat(),
                "date": day.isoformat(),
                "profile_xp": aggregate,
                "rank": compute_rank(aggregate).model_dump(),
                "domains": domains,
                "horizon_years": horizon_years,
                "days_elapsed": days_elapsed(profile.created_at, day),
                "days_left": days_remaining(profile.created_at, day, horizon_years),
            },
        )

    @traced
    def domain(self, name: str) -> ServiceResult:
        """Elements of one domain, highest XP first, with the domain's rank."""
        op = "domain"
        with self._store.read() as txn:
            domain = txn.get_domain_by_name(name)
            if domain is None:
                known = [d.name for d in txn.list_domains()]
                return failure(
                    op,
                    "NOT_FOUND",
                    f"Domain not found: {name}",
                    detail={"name": name, "domains": known},
                )
            elements = txn.list_elements(domain.id)

        ordered = sorted(elements, key=lambda e: (-e.xp, e.id))
        total = float(sum(e.xp for e in elements))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": domain.id,
                "name": domain.name,
                "xp": total,
                "rank": compute_rank(total).model_dump(),
                "elements": [
                    {"id": e.id, "name": e.name, "xp": e.xp, "is_focus": e.is_focus}
                    for e in ordered
                ],
            },
        )
