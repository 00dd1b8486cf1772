"""End-to-end command flows: init, tasks, completion, daily cycle."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from tests.conftest import INIT_ARGS

from xlog.cli import cli

TODAY = "2025-03-10"


def _json(result: Any) -> dict[str, Any]:
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


@pytest.fixture
def initialized(cli_runner: CliRunner, isolated_cli: Path) -> CliRunner:
    result = cli_runner.invoke(cli, ["--today", "2025-01-01", *INIT_ARGS])
    assert result.exit_code == 0, result.output
    return cli_runner


class TestInit:
    def test_init_output(self, cli_runner: CliRunner, isolated_cli: Path) -> None:
        result = cli_runner.invoke(cli, INIT_ARGS)
        assert result.exit_code == 0, result.output
        assert "login_task: daily_login" in result.stdout
        assert "Body: Strength, Endurance" in result.stdout
        assert (isolated_cli / "xLog.db").is_file()

    def test_init_twice_fails(self, initialized: CliRunner) -> None:
        result = initialized.invoke(cli, INIT_ARGS)
        assert result.exit_code == 1
        assert "ALREADY_INITIALIZED" in result.output

    def test_name_required_without_prompts(
        self, cli_runner: CliRunner, isolated_cli: Path
    ) -> None:
        result = cli_runner.invoke(cli, ["--no-interact", "init", "--domain", "Body:Strength"])
        assert result.exit_code == 2
        assert "--name is required" in result.output

    def test_wrong_domain_count(self, cli_runner: CliRunner, isolated_cli: Path) -> None:
        result = cli_runner.invoke(
            cli, ["--no-interact", "init", "--name", "Sam", "--domain", "Body:Strength"]
        )
        assert result.exit_code == 1
        assert "VALIDATION_FAILED" in result.output

    def test_malformed_domain_spec(self, cli_runner: CliRunner, isolated_cli: Path) -> None:
        result = cli_runner.invoke(
            cli, ["--no-interact", "init", "--name", "Sam", "--domain", "Body"]
        )
        assert result.exit_code == 2
        assert "Domain:Element1,Element2" in result.output


class TestCompletion:
    def test_done_awards_xp(self, initialized: CliRunner) -> None:
        _json(
            initialized.invoke(
                cli,
                ["--json", "task", "create", "Laundry", "--type", "session", "--every", "3",
                 "--major", "Strength", "--minor", "Discipline"],
            )
        )
        payload = _json(initialized.invoke(cli, ["--json", "--today", TODAY, "done", "Laundry"]))
        assert payload["op"] == "complete_task"
        assert payload["data"]["major_xp"] == 60
        assert payload["data"]["minor_xp"] == 30
        assert payload["data"]["last_done"] == TODAY

    def test_done_human_output(self, initialized: CliRunner) -> None:
        result = initialized.invoke(cli, ["--today", TODAY, "done", "daily_login"])
        assert result.exit_code == 0, result.output
        assert "+10 major" in result.stdout
        assert "streak 1" in result.stdout

    def test_done_several_with_unknown(self, initialized: CliRunner) -> None:
        result = initialized.invoke(cli, ["--json", "--today", TODAY, "done", "daily_login", "Nap"])
        payload = _json(result)
        assert payload["op"] == "complete_tasks"
        assert payload["data"]["count"] == 1
        assert payload["warnings"] == ["Task not found: Nap"]

    def test_done_unknown_fails(self, initialized: CliRunner) -> None:
        result = initialized.invoke(cli, ["done", "Nap"])
        assert result.exit_code == 1
        assert "[NOT_FOUND]" in result.output
        assert result.stdout == ""

    def test_grant_and_focus(self, initialized: CliRunner) -> None:
        _json(initialized.invoke(cli, ["--json", "focus", "Coding"]))
        payload = _json(initialized.invoke(cli, ["--json", "grant", "grind", "Coding", "Friends"]))
        assert payload["data"]["major_xp"] == 137
        assert payload["data"]["focus"] is True

    def test_focus_ambiguous(self, initialized: CliRunner) -> None:
        result = initialized.invoke(cli, ["focus", "Reading"])
        assert result.exit_code == 1
        assert "AMBIGUOUS_NAME" in result.output
        ok = initialized.invoke(cli, ["focus", "Mind/Reading"])
        assert ok.exit_code == 0, ok.output


class TestDailyCycle:
    def test_daily_before_init_leaves_day_open(
        self, cli_runner: CliRunner, isolated_cli: Path
    ) -> None:
        early = cli_runner.invoke(cli, ["--json", "--today", TODAY, "daily"])
        assert early.exit_code == 1
        assert json.loads(early.stderr)["error"]["code"] == "NOT_INITIALIZED"

        init = cli_runner.invoke(cli, ["--today", TODAY, *INIT_ARGS])
        assert init.exit_code == 0, init.output
        later = _json(cli_runner.invoke(cli, ["--json", "--today", TODAY, "daily"]))
        assert later["data"]["logged"] is True
        assert later["data"]["daily_login"]["task"] == "daily_login"

    def test_daily_then_already_logged(self, initialized: CliRunner) -> None:
        first = _json(initialized.invoke(cli, ["--json", "--today", TODAY, "daily"]))
        assert first["data"]["logged"] is True
        assert first["data"]["daily_login"]["task"] == "daily_login"

        second = initialized.invoke(cli, ["--today", TODAY, "daily"])
        assert second.exit_code == 0
        assert "Already logged today." in second.stdout

    def test_penalties_once_per_day(self, initialized: CliRunner) -> None:
        _json(
            initialized.invoke(
                cli,
                ["--json", "task", "create", "Laundry", "--every", "3",
                 "--major", "Strength", "--minor", "Discipline"],
            )
        )
        _json(initialized.invoke(cli, ["--json", "--today", "2025-03-01", "done", "Laundry"]))

        first = _json(initialized.invoke(cli, ["--json", "--today", TODAY, "penalties"]))
        second = _json(initialized.invoke(cli, ["--json", "--today", TODAY, "penalties"]))

        assert first["data"]["count"] == 1
        assert first["data"]["penalties"][0]["major_xp"] == -6
        assert second["data"]["count"] == 0

    def test_auto_log_on_first_command(
        self, initialized: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("XLOG_DAILY__AUTO_LOG", "true")

        result = initialized.invoke(cli, ["--today", TODAY, "today"])
        assert result.exit_code == 0, result.output
        assert f"Logged {TODAY}" in result.stderr
        assert "Logged" not in result.stdout

        again = initialized.invoke(cli, ["--today", TODAY, "today"])
        assert "Logged" not in again.output

        history = _json(initialized.invoke(cli, ["--json", "history"]))
        assert history["data"]["count"] == 1

    def test_history_limit(self, initialized: CliRunner) -> None:
        for day in ("2025-03-08", "2025-03-09", TODAY):
            _json(initialized.invoke(cli, ["--json", "--today", day, "daily"]))
        payload = _json(initialized.invoke(cli, ["--json", "history", "--limit", "2"]))
        assert [i["date"] for i in payload["data"]["items"]] == [TODAY, "2025-03-09"]


class TestProfileViews:
    def test_profile(self, initialized: CliRunner) -> None:
        payload = _json(initialized.invoke(cli, ["--json", "--today", TODAY, "profile"]))
        assert payload["data"]["user_name"] == "Sam"
        assert payload["data"]["created_at"] == "2025-01-01"
        assert payload["data"]["horizon_years"] == 4

    def test_profile_human(self, initialized: CliRunner) -> None:
        result = initialized.invoke(cli, ["--today", TODAY, "profile"])
        assert result.exit_code == 0, result.output
        assert "Sam" in result.stdout
        assert "days left of 4 years" in result.stdout

    def test_info(self, initialized: CliRunner) -> None:
        initialized.invoke(cli, ["grant", "quick", "Endurance", "Strength"])
        payload = _json(initialized.invoke(cli, ["--json", "info", "Body"]))
        assert [e["name"] for e in payload["data"]["elements"]] == ["Endurance", "Strength"]

    def test_info_unknown(self, initialized: CliRunner) -> None:
        result = initialized.invoke(cli, ["info", "Spirit"])
        assert result.exit_code == 1
        assert "Domain not found: Spirit" in result.output

    def test_rank_human(self, cli_runner: CliRunner, isolated_cli: Path) -> None:
        result = cli_runner.invoke(cli, ["rank", "109500"])
        assert result.exit_code == 0
        assert "Legend (level 8)" in result.stdout


class TestUpgradeCommand:
    def test_check_up_to_date(self, initialized: CliRunner) -> None:
        result = initialized.invoke(cli, ["upgrade", "--check"])
        assert result.exit_code == 0, result.output
        assert "Database is up to date." in result.stdout

    def test_apply_noop(self, initialized: CliRunner) -> None:
        payload = _json(initialized.invoke(cli, ["--json", "upgrade"]))
        assert payload["data"]["applied_count"] == 0
