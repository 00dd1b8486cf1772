"""Frozen pydantic records for the engine's data model.

Rows are read from the store into these models; mutations always go back
through the store, never through the model instances.
"""

from __future__ import annotations

import datetime
from datetime import date

from pydantic import BaseModel, Field

from xlog.domain.progression import due_date, is_due, is_overdue
from xlog.domain.types import TaskType


class Profile(BaseModel):
    """Singleton owner of the progression data."""

    model_config = {"frozen": True}

    user_name: str
    created_at: date


class Domain(BaseModel):
    """One of the four top-level life categories."""

    model_config = {"frozen": True}

    id: int
    name: str


class Element(BaseModel):
    """A sub-skill within a domain that accumulates XP."""

    model_config = {"frozen": True}

    id: int
    domain_id: int
    name: str
    is_focus: bool = False
    xp: int = 0


class Task(BaseModel):
    """A recurring (``frequency_days > 0``) or one-time user task."""

    model_config = {"frozen": True}

    id: int
    name: str
    type: TaskType
    frequency_days: int = Field(ge=0)
    major_element_id: int
    minor_element_id: int
    last_done: date | None = None
    streak: int = Field(default=0, ge=0)
    active: bool = True
    last_penalty_date: date | None = None

    @property
    def recurring(self) -> bool:
        return self.frequency_days > 0

    def due_date(self) -> date | None:
        return due_date(self.last_done, self.frequency_days)

    def is_overdue(self, today: date) -> bool:
        return is_overdue(self.last_done, self.frequency_days, today)

    def is_due(self, today: date) -> bool:
        return is_due(self.last_done, self.frequency_days, today)


class XpHistoryEntry(BaseModel):
    """One immutable daily snapshot of profile and domain XP."""

    model_config = {"frozen": True}

    date: datetime.date
    profile_xp: float
    domain_xp: tuple[float, float, float, float]
