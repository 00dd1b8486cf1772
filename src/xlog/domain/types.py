"""Task types and their fixed base award table.

A task's type decides how much XP one completion is worth before any
focus, streak, or lateness adjustment. The table is fixed by design.
"""

from __future__ import annotations

from enum import StrEnum


class TaskType(StrEnum):
    """Effort class of a task."""

    QUICK = "quick"
    SESSION = "session"
    GRIND = "grind"

    @property
    def base_award(self) -> tuple[int, int]:
        """Return ``(major, minor)`` base XP for one completion."""
        return BASE_AWARDS[self]


BASE_AWARDS: dict[TaskType, tuple[int, int]] = {
    TaskType.QUICK: (10, 5),
    TaskType.SESSION: (60, 30),
    TaskType.GRIND: (125, 75),
}


def parse_task_type(value: str) -> TaskType:
    """Parse a case-insensitive task type name.

    Raises:
        ValueError: If *value* is not one of quick, session, grind.
    """
    try:
        return TaskType(value.strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in TaskType)
        msg = f"Unknown task type {value!r} (expected one of: {allowed})"
        raise ValueError(msg) from None
