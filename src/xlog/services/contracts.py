"""Typed payload contracts for the progression services.

These models validate payload shapes before they leave the service layer
so key regressions (for example ``major_xp`` vs ``major``) fail fast in
tests and during development.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a JSON-ready payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="json")


class CompletionData(BaseModel):
    """Payload for ``ProgressionService.complete_task``."""

    model_config = ConfigDict(extra="allow")

    task_id: int
    task: str
    type: str
    major_element_id: int
    minor_element_id: int
    major_xp: int
    minor_xp: int
    focus: bool
    late: bool
    streak: int
    last_done: str


class PenaltyItem(BaseModel):
    """One task penalized by the overdue sweep."""

    task_id: int
    task: str
    major_element_id: int
    minor_element_id: int
    major_xp: int
    minor_xp: int
    due: str | None


class SweepData(BaseModel):
    """Payload for ``PenaltyService.sweep_overdue_penalties``."""

    date: str
    count: int
    penalties: list[PenaltyItem]


class SnapshotData(BaseModel):
    """Payload for ``SnapshotService.log_today_if_needed``."""

    model_config = ConfigDict(extra="allow")

    date: str
    logged: bool
    profile_xp: float | None = None
    domain_xp: dict[str, float] | None = None
    daily_login: CompletionData | None = None
    penalties: list[PenaltyItem] = []

