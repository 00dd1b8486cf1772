"""Tests for the once-per-day overdue sweep."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from typing import Any

from tests.conftest import TODAY

from xlog.infrastructure.store import Store
from xlog.services.penalty import PenaltyService
from xlog.services.progression import ProgressionService
from xlog.services.tasks import TaskService


def _set_history(store: Store, task_id: int, *, days_ago: int, streak: int = 0) -> None:
    with store.transaction() as txn:
        txn.update_task(task_id, last_done=TODAY - timedelta(days=days_ago), streak=streak)


def _xp(store: Store, element_id: int) -> int:
    with store.read() as txn:
        element = txn.get_element(element_id)
    assert element is not None
    return element.xp


class TestSweep:
    def test_overdue_task_is_penalized(
        self,
        profile_store: Store,
        make_task: Callable[..., dict[str, Any]],
        element_id: Callable[[str], int],
    ) -> None:
        task = make_task("Laundry", task_type="session", frequency_days=7)
        _set_history(profile_store, task["id"], days_ago=9, streak=4)

        result = PenaltyService(profile_store).sweep_overdue_penalties(today=TODAY)

        assert result.ok
        assert result.op == "sweep_penalties"
        assert result.data["count"] == 1
        item = result.data["penalties"][0]
        # 60 * 1.04 * 0.6 = 37.44 ; 30 * 1.04 * 0.6 = 18.72
        assert (item["major_xp"], item["minor_xp"]) == (-37, -19)
        assert item["due"] == (TODAY - timedelta(days=2)).isoformat()
        assert _xp(profile_store, element_id("Body/Strength")) == -37
        assert _xp(profile_store, element_id("Mind/Discipline")) == -19

    def test_second_sweep_same_day_is_noop(
        self,
        profile_store: Store,
        make_task: Callable[..., dict[str, Any]],
        element_id: Callable[[str], int],
    ) -> None:
        task = make_task("Laundry", frequency_days=3)
        _set_history(profile_store, task["id"], days_ago=5)
        svc = PenaltyService(profile_store)

        first = svc.sweep_overdue_penalties(today=TODAY)
        second = svc.sweep_overdue_penalties(today=TODAY)

        assert first.data["count"] == 1
        assert second.data["count"] == 0
        assert _xp(profile_store, element_id("Body/Strength")) == -6

    def test_next_day_penalizes_again(
        self, profile_store: Store, make_task: Callable[..., dict[str, Any]]
    ) -> None:
        task = make_task("Laundry", frequency_days=3)
        _set_history(profile_store, task["id"], days_ago=5)
        svc = PenaltyService(profile_store)

        svc.sweep_overdue_penalties(today=TODAY)
        later = svc.sweep_overdue_penalties(today=TODAY + timedelta(days=1))

        assert later.data["count"] == 1

    def test_streak_and_last_done_untouched(
        self, profile_store: Store, make_task: Callable[..., dict[str, Any]]
    ) -> None:
        task = make_task("Laundry", frequency_days=3)
        _set_history(profile_store, task["id"], days_ago=5, streak=6)

        PenaltyService(profile_store).sweep_overdue_penalties(today=TODAY)

        with profile_store.read() as txn:
            stored = txn.get_task(task["id"])
        assert stored is not None
        assert stored.streak == 6
        assert stored.last_done == TODAY - timedelta(days=5)
        assert stored.last_penalty_date == TODAY

    def test_focus_applies_to_penalty(
        self, profile_store: Store, make_task: Callable[..., dict[str, Any]]
    ) -> None:
        task = make_task("Deep work", task_type="grind", frequency_days=7)
        _set_history(profile_store, task["id"], days_ago=10, streak=20)
        ProgressionService(profile_store).set_focus_by_name("Body/Strength")

        result = PenaltyService(profile_store).sweep_overdue_penalties(today=TODAY)

        item = result.data["penalties"][0]
        assert (item["major_xp"], item["minor_xp"]) == (-99, -59)

    def test_skips_paused_one_time_and_current_tasks(
        self, profile_store: Store, make_task: Callable[..., dict[str, Any]]
    ) -> None:
        paused = make_task("Paused", frequency_days=1)
        once = make_task("Once", frequency_days=0)
        current = make_task("Current", frequency_days=7)
        make_task("Never done", frequency_days=1)
        _set_history(profile_store, paused["id"], days_ago=5)
        _set_history(profile_store, once["id"], days_ago=50)
        _set_history(profile_store, current["id"], days_ago=7)
        TaskService(profile_store).set_active("Paused", False)

        result = PenaltyService(profile_store).sweep_overdue_penalties(today=TODAY)

        assert result.data["count"] == 0
        assert result.data["penalties"] == []

    def test_completing_late_after_penalty(
        self, profile_store: Store, make_task: Callable[..., dict[str, Any]]
    ) -> None:
        task = make_task("Laundry", frequency_days=3)
        _set_history(profile_store, task["id"], days_ago=5)
        PenaltyService(profile_store).sweep_overdue_penalties(today=TODAY)

        result = ProgressionService(profile_store).complete_task(task["id"], today=TODAY)

        assert result.data["late"] is True
        assert (result.data["major_xp"], result.data["minor_xp"]) == (6, 3)
