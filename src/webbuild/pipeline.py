"""Production pipeline and incremental application builds.

Two classes compile the application entry point:

* :class:`ProductionPipeline` -- the one-shot production build. Every
  dependency is inlined, ``process.env.NODE_ENV`` becomes
  ``"production"``, and the output is minified. Any failure raises and
  ends the invocation.
* :class:`ApplicationBuilder` -- one incremental pass of the development
  loop. Every declared dependency is externalized and its imports are
  pointed at the pre-bundled files, so only application source is
  recompiled. Failures raise :class:`~webbuild.exceptions.CompileError`,
  which the watch loop recovers from.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from webbuild.artifacts import clear_output_dir, publish, staging_dir
from webbuild.exceptions import CompileError
from webbuild.models import BUNDLE_FILENAME, BuildConfiguration, PathTable
from webbuild.output import warning
from webbuild.paths import rewrite_bundle_file, unbundled_imports
from webbuild.plugins.base import CompileRequest, CompileResult, Compiler, TypeChecker
from webbuild.plugins.hooks import HookRunner, StageCompleted, StageStarted

logger = logging.getLogger(__name__)

BUNDLE_NAME = BUNDLE_FILENAME.removesuffix(".js")


def node_env_define(mode: str) -> dict[str, str]:
    """Return the build-time substitution of ``process.env.NODE_ENV`` for *mode*."""
    return {"process.env.NODE_ENV": f'"{mode}"'}


def run_type_check(config: BuildConfiguration, checker: TypeChecker) -> None:
    """Type check the project when enabled and the entry uses the typed dialect.

    Raises:
        CompileError: With the checker's diagnostics, if any were reported.
    """
    if not (config.use_static_type_check and config.uses_typed_dialect):
        return
    diagnostics = checker.check(config.project_root, config.tsconfig)
    if diagnostics:
        raise CompileError(f"Type check failed ({checker.name})", diagnostics)


def compile_checked(compiler: Compiler, request: CompileRequest) -> CompileResult:
    """Run *request* through *compiler*, raising on reported errors.

    Warnings are shown to the operator and do not fail the pass.

    Raises:
        CompileError: If the backend reported any error.
    """
    result = compiler.compile(request)
    for line in result.warnings:
        warning(line)
    if not result.ok:
        raise CompileError(f"Compilation failed ({compiler.name})", result.errors)
    return result


class ProductionPipeline:
    """Compile the entry point into one optimized, self-contained bundle.

    Stages run strictly in order:

    1. Clear the output directory.
    2. Type check (typed dialect only).
    3. Compile: resolve and inline every module, substitute
       ``process.env.NODE_ENV`` with ``"production"``, minify. The backend
       writes into a staging directory.
    4. Publish ``bundle.js`` and ``bundle.js.map`` into the output directory.

    Args:
        config: The invocation's configuration.
        compiler: Backend performing the compilation.
        type_checker: Backend performing static type checks.
        hooks: Receives timing events.
    """

    label = "Production Build"

    def __init__(
        self,
        config: BuildConfiguration,
        compiler: Compiler,
        type_checker: TypeChecker,
        hooks: HookRunner,
    ) -> None:
        self._config = config
        self._compiler = compiler
        self._type_checker = type_checker
        self._hooks = hooks

    def run(self) -> list[Path]:
        """Execute the pipeline.

        Returns:
            The published files.

        Raises:
            CompileError: If type checking or compilation fails. Nothing
                is published in that case and the output directory stays
                empty.
        """
        config = self._config
        self._hooks.emit(StageStarted(self.label))
        started = time.perf_counter()

        clear_output_dir(config.output_dir)
        run_type_check(config, self._type_checker)

        with staging_dir(config.output_dir) as staging:
            compile_checked(
                self._compiler,
                CompileRequest(
                    entries={BUNDLE_NAME: config.entry_point_path},
                    outdir=staging,
                    working_dir=config.project_root,
                    minify=True,
                    defines=node_env_define("production"),
                ),
            )
            published = publish(staging, config.output_dir)

        duration_ms = (time.perf_counter() - started) * 1000
        self._hooks.emit(StageCompleted(f"Completed {self.label}", duration_ms))
        return published


class ApplicationBuilder:
    """One incremental development pass over application source.

    Third-party dependencies are passed to the backend as externals and
    their import specifiers are rewritten through *path_table*, so the
    compiled ``bundle.js`` loads ``./dependencies/<name>.js`` at runtime.
    The pass replaces ``bundle.js`` and its map in the output directory and
    never touches ``dependencies/``.

    Args:
        config: The invocation's configuration.
        compiler: Backend performing the compilation.
        type_checker: Backend performing static type checks.
        path_table: Dependency name -> served path of its pre-bundle.
    """

    def __init__(
        self,
        config: BuildConfiguration,
        compiler: Compiler,
        type_checker: TypeChecker,
        path_table: PathTable,
    ) -> None:
        self._config = config
        self._compiler = compiler
        self._type_checker = type_checker
        self._path_table = dict(path_table)

    def build(self) -> list[Path]:
        """Run one pass.

        Returns:
            The published files.

        Raises:
            CompileError: If type checking or compilation fails, or the
                bundle imports a dependency subpath that was not
                pre-bundled. The previously published bundle is left in
                place.
        """
        config = self._config
        run_type_check(config, self._type_checker)

        with staging_dir(config.output_dir) as staging:
            result = compile_checked(
                self._compiler,
                CompileRequest(
                    entries={BUNDLE_NAME: config.entry_point_path},
                    outdir=staging,
                    working_dir=config.project_root,
                    defines=node_env_define("development"),
                    externals=list(self._path_table),
                ),
            )
            for path in result.outputs or staging.glob("*.js"):
                if path.suffix == ".js" and path.is_file():
                    rewrite_bundle_file(path, self._path_table)
                    self._check_served(path)
            published = publish(staging, config.output_dir)

        logger.debug("Published %s", ", ".join(p.name for p in published))
        return published

    def _check_served(self, path: Path) -> None:
        missing = unbundled_imports(path.read_text(encoding="utf-8"), self._path_table)
        if missing:
            raise CompileError(
                "Bundle imports dependency modules that were not pre-bundled; "
                "restart the development build to include them",
                [f"{path.name}: {specifier}" for specifier in missing],
            )
