"""Pluggy hook specifications for xlog progression events.

Four events fire after the write transaction that caused them commits:
a task completion, an overdue penalty, a daily snapshot, a focus change.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "xlog"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class XlogHookSpec:
    """Hook specifications for the xlog plugin system."""

    @hookspec
    def post_complete(
        self,
        task_id: int,
        task_name: str,
        major_xp: int,
        minor_xp: int,
        streak: int,
        late: bool,
    ) -> None:
        """Called after a task completion is committed (including the daily login)."""

    @hookspec
    def post_penalty(
        self,
        task_id: int,
        task_name: str,
        major_xp: int,
        minor_xp: int,
    ) -> None:
        """Called once per task penalized by the overdue sweep. Amounts are negative."""

    @hookspec
    def post_snapshot(
        self,
        date: str,
        profile_xp: float,
        domain_xp: list[float],
    ) -> None:
        """Called after the daily history row is written."""

    @hookspec
    def post_focus(self, element_id: int, domain_id: int) -> None:
        """Called after the focus element of a domain changes."""
