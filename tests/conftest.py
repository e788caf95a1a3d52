"""Shared test fixtures for webbuild.

Provides a throwaway application project on disk, fake compiler and type
checker backends that write predictable files instead of shelling out to
Node.js tools, and helpers for managing global output state. These
fixtures are automatically discovered by pytest and available to all test
modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from webbuild.config import resolve_build_config
from webbuild.models import BuildConfiguration, ProjectMetadata
from webbuild.output import OutputFormat, OutputManager, reset_output, set_output
from webbuild.plugins.base import CompileRequest, CompileResult, Compiler, TypeChecker
from webbuild.plugins.hooks import BuildEvent, HookRunner


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep WEBBUILD_* variables from the developer's shell out of tests."""
    for name in ("WEBBUILD_OUTPUT_DIR", "WEBBUILD_HOST", "WEBBUILD_PORT", "WEBBUILD_COMPILER"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Fake backends
# ---------------------------------------------------------------------------


class FakeCompiler(Compiler):
    """Compiler that writes ``<name>.js`` and ``<name>.js.map`` per entry.

    Each output imports every external by its bare name so import
    rewriting can be observed, followed by a comment naming the entry.
    Set ``errors`` to make every pass fail.
    """

    def __init__(self, errors: list[str] | None = None, warnings: list[str] | None = None) -> None:
        self.errors = list(errors or [])
        self.warnings = list(warnings or [])
        self.requests: list[CompileRequest] = []

    @property
    def name(self) -> str:
        return "fake"

    def compile(self, request: CompileRequest) -> CompileResult:
        self.requests.append(request)
        if self.errors:
            return CompileResult(errors=list(self.errors))
        outputs = []
        for out_name, entry in request.entries.items():
            lines = [f'import * as dep{i} from "{ext}";' for i, ext in enumerate(request.externals)]
            lines.append(f"// compiled from {Path(entry).name}")
            if request.minify:
                lines.append("// minified")
            for identifier, value in request.defines.items():
                lines.append(f"// {identifier}={value}")
            target = request.outdir / f"{out_name}.js"
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("\n".join(lines) + "\n")
            outputs.append(target)
            if request.sourcemap:
                source_map = request.outdir / f"{out_name}.js.map"
                source_map.write_text('{"version": 3}')
                outputs.append(source_map)
        return CompileResult(outputs=outputs, warnings=list(self.warnings))


class FakeTypeChecker(TypeChecker):
    """Type checker returning a fixed list of diagnostics."""

    def __init__(self, diagnostics: list[str] | None = None) -> None:
        self.diagnostics = list(diagnostics or [])
        self.calls = 0

    @property
    def name(self) -> str:
        return "fake-tsc"

    def check(self, project_root: Path, tsconfig: Path) -> list[str]:
        self.calls += 1
        return list(self.diagnostics)


class RecordingObserver:
    """Observer that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[BuildEvent] = []

    def on_event(self, event: BuildEvent) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list[Any]:
        return [e for e in self.events if isinstance(e, kind)]


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def type_checker() -> FakeTypeChecker:
    return FakeTypeChecker()


@pytest.fixture
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def hooks(recorder: RecordingObserver) -> HookRunner:
    return HookRunner([recorder])


# ---------------------------------------------------------------------------
# Project on disk
# ---------------------------------------------------------------------------


def write_package(root: Path, name: str, metadata: dict[str, Any], files: dict[str, str]) -> Path:
    """Install a fake dependency under ``root/node_modules/<name>``."""
    pkg = root / "node_modules" / name
    pkg.mkdir(parents=True, exist_ok=True)
    (pkg / "package.json").write_text(json.dumps({"name": name, **metadata}))
    for rel, content in files.items():
        path = pkg / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return pkg


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A typed-dialect application with two installed runtime dependencies.

    Layout::

        package.json        main=src/main.ts, dependencies lib-a, lib-b
        src/main.ts
        public/index.html
        node_modules/lib-a  ECMAScript module package (type=module)
        node_modules/lib-b  CommonJS package with a ``module`` entry
    """
    root = tmp_path / "app"
    (root / "src").mkdir(parents=True)
    (root / "public").mkdir()
    (root / "package.json").write_text(
        json.dumps(
            {
                "name": "app",
                "main": "src/main.ts",
                "dependencies": {"lib-a": "^1.0.0", "lib-b": "^2.0.0"},
                "devDependencies": {"esbuild": "^0.20.0"},
            }
        )
    )
    (root / "src" / "main.ts").write_text('import { a } from "lib-a";\nconsole.log(a);\n')
    (root / "public" / "index.html").write_text("<!doctype html><title>app</title>")

    write_package(root, "lib-a", {"type": "module", "main": "index.js", "module": "esm/index.js"},
                  {"index.js": "export const a = 1;", "esm/index.js": "export const a = 1;"})
    write_package(root, "lib-b", {"main": "lib/index.js", "module": "dist/b.mjs"},
                  {"lib/index.js": "module.exports = 2;", "dist/b.mjs": "export default 2;"})
    return root


@pytest.fixture
def prod_config(project: Path) -> tuple[BuildConfiguration, ProjectMetadata]:
    return resolve_build_config(project)


@pytest.fixture
def dev_config(project: Path) -> tuple[BuildConfiguration, ProjectMetadata]:
    return resolve_build_config(project, dev=True, cli_port=0)


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN-format, colourless OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
