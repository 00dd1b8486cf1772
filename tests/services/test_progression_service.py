"""Tests for ProgressionService: completions, grants, focus, rank."""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from typing import Any

import pytest
from tests.conftest import TODAY

from xlog.infrastructure.store import Store
from xlog.services.progression import ProgressionService


def _xp(store: Store, element_id: int) -> int:
    with store.read() as txn:
        element = txn.get_element(element_id)
    assert element is not None
    return element.xp


class TestCompleteTask:
    def test_quick_task_awards_base_amounts(
        self,
        profile_store: Store,
        make_task: Callable[..., dict[str, Any]],
        element_id: Callable[[str], int],
    ) -> None:
        task = make_task("Pushups")
        result = ProgressionService(profile_store).complete_task(task["id"], today=TODAY)

        assert result.ok
        assert result.op == "complete_task"
        assert result.data["major_xp"] == 10
        assert result.data["minor_xp"] == 5
        assert result.data["streak"] == 1
        assert result.data["late"] is False
        assert result.data["last_done"] == TODAY.isoformat()
        assert _xp(profile_store, element_id("Body/Strength")) == 10
        assert _xp(profile_store, element_id("Mind/Discipline")) == 5

    def test_grind_with_focus_long_streak_and_late(
        self,
        profile_store: Store,
        make_task: Callable[..., dict[str, Any]],
        element_id: Callable[[str], int],
    ) -> None:
        task = make_task("Marathon", task_type="grind", frequency_days=7)
        with profile_store.transaction() as txn:
            txn.update_task(task["id"], streak=20, last_done=TODAY - timedelta(days=10))
        svc = ProgressionService(profile_store)
        assert svc.set_focus_by_name("Body/Strength").ok

        result = svc.complete_task(task["id"], today=TODAY)

        assert result.ok
        assert result.data["focus"] is True
        assert result.data["late"] is True
        assert (result.data["major_xp"], result.data["minor_xp"]) == (99, 59)
        assert result.data["streak"] == 21
        assert _xp(profile_store, element_id("Body/Strength")) == 99
        assert _xp(profile_store, element_id("Mind/Discipline")) == 59

    def test_same_day_completions_both_count(
        self, profile_store: Store, make_task: Callable[..., dict[str, Any]]
    ) -> None:
        task = make_task("Water")
        svc = ProgressionService(profile_store)
        svc.complete_task(task["id"], today=TODAY)
        result = svc.complete_task(task["id"], today=TODAY)
        assert result.data["streak"] == 2

    def test_streak_bonus_grows(
        self, profile_store: Store, make_task: Callable[..., dict[str, Any]]
    ) -> None:
        task = make_task("Study", task_type="session", frequency_days=1)
        with profile_store.transaction() as txn:
            txn.update_task(task["id"], streak=10, last_done=TODAY - timedelta(days=1))

        result = ProgressionService(profile_store).complete_task(task["id"], today=TODAY)

        # 60 * 1.10 = 66, 30 * 1.10 = 33
        assert (result.data["major_xp"], result.data["minor_xp"]) == (66, 33)
        assert result.data["late"] is False

    def test_by_name(self, profile_store: Store, make_task: Callable[..., dict[str, Any]]) -> None:
        make_task("Stretch")
        result = ProgressionService(profile_store).complete_task_by_name("Stretch", today=TODAY)
        assert result.ok
        assert result.data["task"] == "Stretch"

    def test_unknown_task_changes_nothing(
        self, profile_store: Store, element_id: Callable[[str], int]
    ) -> None:
        svc = ProgressionService(profile_store)
        result = svc.complete_task(999, today=TODAY)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

        by_name = svc.complete_task_by_name("Nope", today=TODAY)
        assert not by_name.ok
        assert by_name.error is not None
        assert by_name.error.code == "NOT_FOUND"
        assert _xp(profile_store, element_id("Body/Strength")) == 0


class TestGrantXp:
    def test_grant_base_amounts(
        self, profile_store: Store, element_id: Callable[[str], int]
    ) -> None:
        result = ProgressionService(profile_store).grant_xp("session", "Coding", "Friends")
        assert result.ok
        assert (result.data["major_xp"], result.data["minor_xp"]) == (60, 30)
        assert _xp(profile_store, element_id("Craft/Coding")) == 60
        assert _xp(profile_store, element_id("Social/Friends")) == 30

    def test_grant_with_focus(self, profile_store: Store) -> None:
        svc = ProgressionService(profile_store)
        svc.set_focus_by_name("Coding")
        result = svc.grant_xp("grind", "Coding", "Friends")
        # 125 + 125 // 10 = 137 ; 75 + 75 // 10 = 82
        assert (result.data["major_xp"], result.data["minor_xp"]) == (137, 82)
        assert result.data["focus"] is True

    def test_grant_does_not_touch_tasks(
        self, profile_store: Store, make_task: Callable[..., dict[str, Any]]
    ) -> None:
        task = make_task("Lift")
        ProgressionService(profile_store).grant_xp("quick", "Body/Strength", "Mind/Discipline")
        with profile_store.read() as txn:
            stored = txn.get_task(task["id"])
        assert stored is not None
        assert stored.streak == 0
        assert stored.last_done is None

    def test_unknown_element(self, profile_store: Store) -> None:
        result = ProgressionService(profile_store).grant_xp("quick", "Juggling", "Friends")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"

    def test_ambiguous_element(self, profile_store: Store) -> None:
        result = ProgressionService(profile_store).grant_xp("quick", "Reading", "Friends")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "AMBIGUOUS_NAME"

    def test_invalid_type(self, profile_store: Store) -> None:
        result = ProgressionService(profile_store).grant_xp("epic", "Coding", "Friends")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "VALIDATION_FAILED"


class TestFocus:
    def test_focus_moves_within_domain(
        self, profile_store: Store, element_id: Callable[[str], int]
    ) -> None:
        svc = ProgressionService(profile_store)
        first = svc.set_focus(element_id("Body/Strength"))
        second = svc.set_focus_by_name("Endurance")

        assert first.ok
        assert second.data["cleared"] == [element_id("Body/Strength")]
        with profile_store.read() as txn:
            focused = [e.name for e in txn.list_elements() if e.is_focus]
        assert focused == ["Endurance"]

    def test_focus_in_other_domain_is_independent(self, profile_store: Store) -> None:
        svc = ProgressionService(profile_store)
        svc.set_focus_by_name("Strength")
        svc.set_focus_by_name("Coding")
        with profile_store.read() as txn:
            focused = sorted(e.name for e in txn.list_elements() if e.is_focus)
        assert focused == ["Coding", "Strength"]

    def test_unknown_element_id(self, profile_store: Store) -> None:
        result = ProgressionService(profile_store).set_focus(999)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "NOT_FOUND"


class TestComputeRank:
    @pytest.mark.parametrize(
        ("xp", "level", "name"),
        [(0, 0, "Rookie"), (2000, 1, "Explorer"), (109500, 8, "Legend")],
    )
    def test_rank(self, xp: float, level: int, name: str) -> None:
        result = ProgressionService.compute_rank(xp)
        assert result.ok
        assert result.op == "compute_rank"
        assert result.data["level"] == level
        assert result.data["name"] == name
