"""XP award pipeline and per-task due-date rules.

Award pipeline (applied to both the major and the minor amount):

    base -> focus (x1.10) -> streak (x(1 + min(streak, 20)/100)) -> late (x0.6)

followed by a single round-half-away-from-zero per amount. The overdue
sweep reuses the same pipeline with the late multiplier always applied,
then negates the rounded amounts.

All date logic is in whole calendar days.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta

from xlog.domain.types import TaskType

FOCUS_MULTIPLIER = 1.10
STREAK_BONUS_CAP = 20  # percent
OVERDUE_MULTIPLIER = 0.6


@dataclass(frozen=True)
class Award:
    """Rounded XP deltas for the major and minor element of a task."""

    major: int
    minor: int

    def negated(self) -> Award:
        return Award(major=-self.major, minor=-self.minor)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero.

    Examples:
        >>> round_half_away(59.5)
        60
        >>> round_half_away(-2.5)
        -3
    """
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def streak_multiplier(streak: int) -> float:
    """Bonus factor for a streak, capped at +20%."""
    pct = min(max(streak, 0), STREAK_BONUS_CAP)
    return 1 + pct / 100


def raw_award(
    task_type: TaskType,
    *,
    focus: bool,
    streak: int,
    late: bool,
) -> tuple[float, float]:
    """Unrounded ``(major, minor)`` amounts after every multiplier."""
    base_major, base_minor = task_type.base_award
    major = float(base_major)
    minor = float(base_minor)
    if focus:
        major *= FOCUS_MULTIPLIER
        minor *= FOCUS_MULTIPLIER
    bonus = streak_multiplier(streak)
    major *= bonus
    minor *= bonus
    if late:
        major *= OVERDUE_MULTIPLIER
        minor *= OVERDUE_MULTIPLIER
    return major, minor


def compute_award(
    task_type: TaskType,
    *,
    focus: bool = False,
    streak: int = 0,
    late: bool = False,
) -> Award:
    """Compute the rounded completion award for one task."""
    major, minor = raw_award(task_type, focus=focus, streak=streak, late=late)
    return Award(major=round_half_away(major), minor=round_half_away(minor))


def compute_penalty(task_type: TaskType, *, focus: bool = False, streak: int = 0) -> Award:
    """Compute the (negative) overdue-sweep adjustment for one task.

    The streak is the task's current streak; the sweep never increments it.
    """
    return compute_award(task_type, focus=focus, streak=streak, late=True).negated()


def compute_grant(task_type: TaskType, *, focus: bool = False) -> Award:
    """Amounts for an ad-hoc grant outside any task.

    The focus bonus is a whole tenth of each base amount (``10 -> 11``,
    ``5 -> 5``), not the x1.10 multiplier of the completion pipeline.
    """
    major, minor = task_type.base_award
    if focus:
        major += major // 10
        minor += minor // 10
    return Award(major=major, minor=minor)


def due_date(last_done: date | None, frequency_days: int) -> date | None:
    """Next due date of a recurring task, or None if it has no due date.

    One-time tasks (``frequency_days == 0``) and never-completed tasks
    have no due date.
    """
    if last_done is None or frequency_days <= 0:
        return None
    return last_done + timedelta(days=frequency_days)


def is_overdue(last_done: date | None, frequency_days: int, today: date) -> bool:
    """True if *today* is strictly after the task's due date."""
    due = due_date(last_done, frequency_days)
    return due is not None and today > due


def is_due(last_done: date | None, frequency_days: int, today: date) -> bool:
    """True if the task belongs on today's list.

    Never-completed tasks are always due; recurring tasks are due from
    their due date onwards; completed one-time tasks are never due again.
    """
    if last_done is None:
        return True
    due = due_date(last_done, frequency_days)
    return due is not None and today >= due
