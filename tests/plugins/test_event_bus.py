"""Tests for synchronous and pooled event dispatch."""

from __future__ import annotations

import logging
import threading

import pytest

from xlog.plugins import EventBus, PluginManager, hookimpl


class Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[int, int]] = []
        self.threads: set[str] = set()

    @hookimpl
    def post_focus(self, element_id: int, domain_id: int) -> None:
        self.calls.append((element_id, domain_id))
        self.threads.add(threading.current_thread().name)


class Exploding:
    @hookimpl
    def post_focus(self, element_id: int, domain_id: int) -> None:
        raise RuntimeError("boom")


def _manager(*plugins: object) -> PluginManager:
    pm = PluginManager()
    for plugin in plugins:
        pm.register_plugin(plugin)
    return pm


class TestSyncDispatch:
    def test_calls_inline(self) -> None:
        recorder = Recorder()
        bus = EventBus(_manager(recorder), sync=True)

        bus.dispatch("post_focus", {"element_id": 1, "domain_id": 2})

        assert recorder.calls == [(1, 2)]
        assert recorder.threads == {threading.current_thread().name}

    def test_exceptions_propagate(self) -> None:
        bus = EventBus(_manager(Exploding()), sync=True)
        with pytest.raises(RuntimeError, match="boom"):
            bus.dispatch("post_focus", {"element_id": 1, "domain_id": 2})

    def test_unknown_hook_ignored(self) -> None:
        bus = EventBus(_manager(), sync=True)
        bus.dispatch("post_nothing", {})


class TestPooledDispatch:
    def test_shutdown_waits_for_events(self) -> None:
        recorder = Recorder()
        bus = EventBus(_manager(recorder))
        assert bus.sync is False

        for element_id in range(5):
            bus.dispatch("post_focus", {"element_id": element_id, "domain_id": 1})
        bus.shutdown()

        assert sorted(recorder.calls) == [(i, 1) for i in range(5)]
        assert threading.current_thread().name not in recorder.threads

    def test_failures_are_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING, logger="xlog.plugins.event_bus")
        bus = EventBus(_manager(Exploding()))
        bus.dispatch("post_focus", {"element_id": 1, "domain_id": 2})
        bus.shutdown()

        assert "Plugin hook post_focus failed" in caplog.text

    def test_shutdown_is_idempotent(self) -> None:
        bus = EventBus(_manager())
        bus.shutdown()
        bus.shutdown()
