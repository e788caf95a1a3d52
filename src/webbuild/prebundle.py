"""One-shot dependency pre-bundle for development mode.

Third-party dependencies change far less often than application source,
so development mode compiles each of them exactly once per invocation,
before the watch loop starts, into ``<output>/dependencies/<name>.js``.
Incremental rebuilds then treat them as externals.

Any failure here is fatal: the application bundle's imports are rewritten
to point at these files, so the loop cannot start without them.
"""

from __future__ import annotations

import time
from pathlib import Path

from webbuild.artifacts import clear_output_dir, publish, staging_dir
from webbuild.exceptions import CompileError, PrebundleError
from webbuild.manifest import build_manifest
from webbuild.models import BuildConfiguration, DependencyManifest, ProjectMetadata
from webbuild.pipeline import compile_checked, node_env_define
from webbuild.plugins.base import CompileRequest, Compiler
from webbuild.plugins.hooks import DependencyResolved, HookRunner, StageCompleted, StageStarted


class DependencyPrebundler:
    """Compile every declared runtime dependency into its own ES module.

    The pass:

    1. Clears the output directory.
    2. Resolves each dependency's entry file into a
       :data:`~webbuild.models.DependencyManifest`.
    3. Runs one multi-entry compilation, one output per dependency named
       after it, with ``process.env.NODE_ENV`` set to ``"development"``.
       Code splitting is on, so a dependency imported by another one is
       shared instead of duplicated.
    4. Publishes the outputs and their source maps into
       ``<output>/dependencies``.

    Args:
        config: The invocation's configuration.
        compiler: Backend performing the compilation.
        hooks: Receives resolution and timing events.
    """

    label = "Dependencies Bundle"

    def __init__(self, config: BuildConfiguration, compiler: Compiler, hooks: HookRunner) -> None:
        self._config = config
        self._compiler = compiler
        self._hooks = hooks

    def run(self, metadata: ProjectMetadata) -> DependencyManifest:
        """Pre-bundle the dependencies declared in *metadata*.

        Returns:
            The resolved manifest, in declaration order.

        Raises:
            PrebundleError: If a dependency cannot be resolved or the
                compilation fails.
        """
        config = self._config
        self._hooks.emit(StageStarted(self.label))
        started = time.perf_counter()

        clear_output_dir(config.output_dir)
        manifest = build_manifest(config, metadata, on_resolved=self._resolved)

        if manifest:
            with staging_dir(config.output_dir) as staging:
                try:
                    compile_checked(
                        self._compiler,
                        CompileRequest(
                            entries=dict(manifest),
                            outdir=staging,
                            working_dir=config.project_root,
                            defines=node_env_define("development"),
                            splitting=True,
                        ),
                    )
                except CompileError as exc:
                    raise PrebundleError(f"Failed to pre-bundle dependencies: {exc}") from exc
                publish(staging, config.dependencies_dir)
        else:
            config.dependencies_dir.mkdir(parents=True, exist_ok=True)

        duration_ms = (time.perf_counter() - started) * 1000
        self._hooks.emit(StageCompleted(f"Created {self.label}", duration_ms))
        return manifest

    def _resolved(self, name: str, path: Path) -> None:
        self._hooks.emit(DependencyResolved(name, path))
