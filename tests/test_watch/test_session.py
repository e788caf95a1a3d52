"""End-to-end tests for development mode with fake backends."""

from __future__ import annotations

import threading
import time
import urllib.request
from typing import Callable

import pytest

from conftest import FakeCompiler, FakeTypeChecker
from webbuild.exceptions import PrebundleError
from webbuild.plugins.base import CompileRequest, CompileResult
from webbuild.plugins.hooks import HookRunner, RebuildFailed, ServerStarted, WatchCompleted
from webbuild.watch.orchestrator import LoopState
from webbuild.watch.server import DevServer
from webbuild.watch.session import DevelopmentSession


def _wait_for(predicate: Callable[[], bool], timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.02)


class ToggleCompiler(FakeCompiler):
    """Fails application passes while ``broken`` is set; pre-bundles always work."""

    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    def compile(self, request: CompileRequest) -> CompileResult:
        if self.broken and "bundle" in request.entries:
            self.requests.append(request)
            return CompileResult(errors=["src/main.ts:1:0: ERROR: Unexpected end of file"])
        return super().compile(request)


@pytest.fixture
def running():
    """Start a session on a background thread and stop it afterwards."""
    started: list[tuple[DevelopmentSession, threading.Thread]] = []

    def _start(session: DevelopmentSession) -> DevelopmentSession:
        thread = threading.Thread(target=session.run, daemon=True)
        thread.start()
        started.append((session, thread))
        return session

    yield _start

    for session, thread in started:
        _wait_for(lambda: session.orchestrator is not None or not thread.is_alive())
        session.stop()
        thread.join(timeout=10)


class TestPrepare:
    def test_prebundles_and_returns_path_table(self, dev_config, compiler, type_checker, hooks) -> None:
        config, metadata = dev_config
        session = DevelopmentSession(config, metadata, compiler, type_checker, hooks)
        table = session.prepare()
        assert table == {"lib-a": "./dependencies/lib-a.js", "lib-b": "./dependencies/lib-b.js"}
        assert (config.dependencies_dir / "lib-a.js").is_file()
        assert (config.dependencies_dir / "lib-b.js").is_file()

    def test_prebundle_failure_stops_session(self, dev_config, type_checker, hooks, quiet_output) -> None:
        config, metadata = dev_config
        session = DevelopmentSession(config, metadata, FakeCompiler(errors=["boom"]), type_checker, hooks)
        with pytest.raises(PrebundleError):
            session.run()
        assert not session.server.is_running


class TestDevelopmentSession:
    def test_builds_serves_and_reloads(
        self, dev_config, compiler: FakeCompiler, type_checker: FakeTypeChecker, hooks: HookRunner, recorder, running
    ) -> None:
        config, metadata = dev_config
        server = DevServer(config.serve_dir, host="127.0.0.1", port=0)
        session = running(DevelopmentSession(config, metadata, compiler, type_checker, hooks, server=server))

        _wait_for(lambda: server.is_running)
        bundle = (config.output_dir / "bundle.js").read_text()
        assert 'from "./dependencies/lib-a.js"' in bundle
        assert 'from "./dependencies/lib-b.js"' in bundle
        assert recorder.of_type(ServerStarted) == [ServerStarted(server.url)]

        with urllib.request.urlopen(f"{server.url}/build/bundle.js", timeout=5) as response:
            assert response.read().decode() == bundle

        (config.entry_point_path.parent / "main.ts").write_text('import { a } from "lib-a";\nconsole.log(a, 2);\n')
        _wait_for(lambda: server.build_id >= 1)
        _wait_for(lambda: session.orchestrator.state == LoopState.WATCHING_STABLE)

        assert len(recorder.of_type(WatchCompleted)) >= 2
        # the pre-bundle ran once, before the loop
        prebundles = [r for r in compiler.requests if "bundle" not in r.entries]
        assert len(prebundles) == 1
        assert (config.dependencies_dir / "lib-a.js").is_file()

    def test_server_waits_for_first_success(
        self, dev_config, type_checker: FakeTypeChecker, hooks: HookRunner, recorder, running, quiet_output
    ) -> None:
        config, metadata = dev_config
        compiler = ToggleCompiler()
        compiler.broken = True
        server = DevServer(config.serve_dir, host="127.0.0.1", port=0)
        session = running(DevelopmentSession(config, metadata, compiler, type_checker, hooks, server=server))

        _wait_for(lambda: len(recorder.of_type(RebuildFailed)) == 1)
        assert session.orchestrator.state == LoopState.WATCHING_FAILED
        assert not server.is_running

        compiler.broken = False
        (config.entry_point_path.parent / "main.ts").write_text("console.log('fixed');\n")
        _wait_for(lambda: server.is_running)
        assert (config.output_dir / "bundle.js").is_file()
