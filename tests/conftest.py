"""Shared pytest fixtures and test helpers for xlog tests."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from datetime import date
from pathlib import Path
from typing import Any

import pytest
import structlog
from click.testing import CliRunner

from xlog.infrastructure.store import Store

# A fixed "today" so date arithmetic in tests never depends on the clock.
TODAY = date(2025, 3, 10)

TAXONOMY: dict[str, list[str]] = {
    "Body": ["Strength", "Endurance"],
    "Mind": ["Discipline", "Reading"],
    "Craft": ["Coding", "Reading"],
    "Social": ["Family", "Friends"],
}


@pytest.fixture(autouse=True)
def _reset_process_state(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep env vars, telemetry and CLI log handlers from leaking between tests."""
    for var in ("XLOG_CONFIG", "XLOG_DATA_DIR", "XLOG_TODAY"):
        monkeypatch.delenv(var, raising=False)
    yield
    from xlog.services.telemetry import disable_telemetry

    disable_telemetry()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(handler)
    logging.getLogger("xlog").setLevel(logging.NOTSET)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "xLog"


@pytest.fixture
def store(data_dir: Path) -> Iterator[Store]:
    """Empty store (tables created, no profile) on a temp directory."""
    s = Store(data_dir)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def profile_store(store: Store) -> Store:
    """Store with a profile, the four TAXONOMY domains and the daily-login task."""
    from xlog.services.setup import SetupService

    result = SetupService(store).initialize("Sam", TAXONOMY, today=date(2025, 1, 1))
    assert result.ok, result.error
    return store


@pytest.fixture
def element_id(profile_store: Store) -> Callable[[str], int]:
    """Look up an element id by ``Domain/Element``."""

    def _lookup(qualified: str) -> int:
        with profile_store.read() as txn:
            matches = txn.find_elements_by_name(qualified)
        assert len(matches) == 1, qualified
        return matches[0].id

    return _lookup


@pytest.fixture
def make_task(profile_store: Store) -> Callable[..., dict[str, Any]]:
    """Create a task through TaskService, asserting success."""
    from xlog.services.tasks import TaskService

    def _make(
        name: str,
        task_type: str = "quick",
        frequency_days: int = 1,
        major: str = "Body/Strength",
        minor: str = "Mind/Discipline",
    ) -> dict[str, Any]:
        result = TaskService(profile_store).create_task(
            name, task_type, frequency_days, major, minor
        )
        assert result.ok, result.error
        return result.data

    return _make


@pytest.fixture
def isolated_cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a temp data dir with the automatic daily log off.

    Returns the data directory. Command tests turn ``auto_log`` back on
    explicitly where they exercise it.
    """
    target = tmp_path / "cli-data"
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("XLOG_DATA_DIR", str(target))
    monkeypatch.setenv("XLOG_DAILY__AUTO_LOG", "false")
    return target


INIT_ARGS = [
    "--no-interact",
    "init",
    "--name",
    "Sam",
    "--domain",
    "Body:Strength,Endurance",
    "--domain",
    "Mind:Discipline,Reading",
    "--domain",
    "Craft:Coding,Reading",
    "--domain",
    "Social:Family,Friends",
]
