"""Tests for the console event reporter."""

from __future__ import annotations

from pathlib import Path

import pytest

from webbuild.exceptions import CompileError
from webbuild.output import OutputFormat, OutputManager
from webbuild.plugins.hooks import (
    ConfigurationResolved,
    DependencyResolved,
    HookRunner,
    RebuildFailed,
    ServerStarted,
    StageCompleted,
    StageStarted,
    WatchCompleted,
    WatchStarted,
)
from webbuild.reporter import EventReporter, format_duration


@pytest.fixture
def out() -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True)


class TestFormatDuration:
    @pytest.mark.parametrize(
        "ms, expected", [(0, "0ms"), (412.4, "412ms"), (999, "999ms"), (1520, "1.52s"), (61000, "61.00s")]
    )
    def test_format(self, ms, expected) -> None:
        assert format_duration(ms) == expected


class TestEventReporter:
    def test_stage_completed(self, out, capfd) -> None:
        EventReporter(output=out).on_event(StageCompleted("Completed Production Build", 1520))
        assert "Completed Production Build: 1.52s" in capfd.readouterr().err

    def test_watch_cycle(self, out, capfd) -> None:
        reporter = EventReporter(output=out)
        reporter.on_event(WatchStarted())
        reporter.on_event(WatchCompleted(87))
        err = capfd.readouterr().err
        assert "Found Changes" in err
        assert "Completed build: 87ms" in err

    def test_rebuild_failed(self, out, capfd) -> None:
        EventReporter(output=out).on_event(RebuildFailed(CompileError("Compilation failed", ["x.ts:1: bad"])))
        err = capfd.readouterr().err
        assert "Error: Compilation failed" in err
        assert "x.ts:1: bad" in err
        assert "Waiting for changes..." in err

    def test_server_started(self, out, capfd) -> None:
        EventReporter(output=out).on_event(ServerStarted("http://127.0.0.1:5000"))
        assert "Serving at http://127.0.0.1:5000" in capfd.readouterr().err

    def test_quiet_by_default(self, out, capfd, prod_config) -> None:
        config, _ = prod_config
        reporter = EventReporter(output=out)
        reporter.on_event(ConfigurationResolved(config))
        reporter.on_event(StageStarted("Production Build"))
        reporter.on_event(DependencyResolved("lib-a", Path("/x/lib-a.js")))
        assert capfd.readouterr().err == ""

    def test_verbose_configuration_summary(self, out, capfd, dev_config) -> None:
        config, _ = dev_config
        reporter = EventReporter(verbose=True, output=out)
        reporter.on_event(ConfigurationResolved(config))
        reporter.on_event(StageStarted("Dependencies Bundle"))
        reporter.on_event(DependencyResolved("lib-a", Path("/x/lib-a.js")))
        err = capfd.readouterr().err
        assert "Current Configuration:" in err
        assert "Development Mode - True" in err
        assert "Typescript Mode - True" in err
        assert f"Source Entry Point - {config.entry_point_path}" in err
        assert "Started Dependencies Bundle" in err
        assert "Using lib-a: /x/lib-a.js" in err


class TestHookRunner:
    def test_observer_failure_does_not_stop_others(self) -> None:
        seen = []

        class Broken:
            def on_event(self, event):
                raise RuntimeError("observer bug")

        class Good:
            def on_event(self, event):
                seen.append(event)

        HookRunner([Broken(), Good()]).emit(WatchStarted())
        assert seen == [WatchStarted()]
