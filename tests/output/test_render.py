"""Tests for the per-operation Rich renderers."""

from __future__ import annotations

from xlog.domain.ranks import compute_rank
from xlog.output.renderers import render_result
from xlog.services.result import ServiceResult, failure


class TestProgressionRenderers:
    def test_completion(self) -> None:
        result = ServiceResult(
            ok=True,
            op="complete_task",
            data={
                "task": "Marathon",
                "major_xp": 99,
                "minor_xp": 59,
                "streak": 21,
                "focus": True,
                "late": True,
            },
        )
        out = render_result(result)
        assert "OK" in out
        assert "Marathon" in out
        assert "+99 major" in out
        assert "+59 minor" in out
        assert "streak 21" in out
        assert "focus" in out
        assert "late" in out

    def test_sweep_with_penalties(self) -> None:
        result = ServiceResult(
            ok=True,
            op="sweep_penalties",
            data={
                "date": "2025-03-10",
                "count": 1,
                "penalties": [
                    {"task": "Laundry", "due": "2025-03-08", "major_xp": -37, "minor_xp": -19}
                ],
            },
        )
        out = render_result(result)
        assert "Laundry" in out
        assert "-37" in out
        assert "1 penalties" in out

    def test_empty_sweep(self) -> None:
        result = ServiceResult(
            ok=True,
            op="sweep_penalties",
            data={"date": "2025-03-10", "count": 0, "penalties": []},
        )
        assert "No overdue tasks." in render_result(result)

    def test_rank(self) -> None:
        result = ServiceResult(ok=True, op="compute_rank", data=compute_rank(2000).model_dump())
        out = render_result(result)
        assert "Explorer (level 1)" in out
        assert "XP to next" in out

    def test_max_rank(self) -> None:
        result = ServiceResult(ok=True, op="compute_rank", data=compute_rank(200000).model_dump())
        assert "max rank" in render_result(result)


class TestProfileRenderers:
    def test_profile(self) -> None:
        result = ServiceResult(
            ok=True,
            op="profile",
            data={
                "user_name": "Sam",
                "profile_xp": 42.5,
                "rank": compute_rank(42.5).model_dump(),
                "domains": [
                    {"name": "Body", "xp": 60.0, "rank": "Rookie", "focus": "Strength"},
                    {"name": "Mind", "xp": 30.0, "rank": "Rookie", "focus": None},
                ],
                "horizon_years": 4,
                "days_left": 1393,
            },
        )
        out = render_result(result)
        assert "Sam" in out
        assert "42.50" in out
        assert "Strength" in out
        assert "1393 days left of 4 years" in out

    def test_horizon_passed(self) -> None:
        result = ServiceResult(
            ok=True,
            op="profile",
            data={
                "user_name": "Sam",
                "profile_xp": 0.0,
                "rank": compute_rank(0).model_dump(),
                "domains": [],
                "horizon_years": 4,
                "days_left": -3,
            },
        )
        assert "Horizon passed 3 days ago" in render_result(result)

    def test_history(self) -> None:
        result = ServiceResult(
            ok=True,
            op="history",
            data={
                "domains": ["Body", "Mind", "Craft", "Social"],
                "count": 1,
                "items": [
                    {"date": "2025-03-10", "profile_xp": 42.43, "domain_xp": [60, 30, 60, 30]}
                ],
            },
        )
        out = render_result(result)
        assert "Social" in out
        assert "2025-03-10" in out
        assert "42.43" in out
        assert "1 entries" in out


class TestErrorsAndFallback:
    def test_error_includes_code(self) -> None:
        result = failure("create_task", "DUPLICATE_NAME", "Task already exists: Run")
        out = render_result(result)
        assert "ERROR" in out
        assert "[DUPLICATE_NAME]" in out
        assert "Task already exists: Run" in out

    def test_error_detail_in_verbose(self) -> None:
        result = failure("domain", "NOT_FOUND", "Domain not found: X", detail={"name": "X"})
        assert "name: X" in render_result(result, verbose=True)

    def test_unknown_op_uses_generic(self) -> None:
        result = ServiceResult(ok=True, op="something_new", data={"answer": 42})
        out = render_result(result)
        assert "something_new" in out
        assert "answer: 42" in out

    def test_verbose_shows_telemetry(self) -> None:
        result = ServiceResult(
            ok=True,
            op="something_new",
            data={},
            meta={"telemetry": {"name": "Svc.op", "duration_ms": 1.5, "children": []}},
        )
        assert "Svc.op" in render_result(result, verbose=True)
