"""Wire the development mode stages together.

:class:`DevelopmentSession` runs, in order:

1. The one-shot :class:`~webbuild.prebundle.DependencyPrebundler`.
2. :func:`~webbuild.paths.build_path_table` over the resulting manifest.
3. The :class:`~webbuild.watch.orchestrator.WatchOrchestrator` loop, fed by
   a :class:`~webbuild.watch.watcher.SourceWatcher`, with each pass
   performed by an :class:`~webbuild.pipeline.ApplicationBuilder`.

The dev server starts with the first successful application build. If the
first build fails nothing is served until a later build succeeds.
"""

from __future__ import annotations

import logging
from typing import Optional

from webbuild.models import BuildConfiguration, PathTable, ProjectMetadata
from webbuild.paths import build_path_table
from webbuild.pipeline import ApplicationBuilder
from webbuild.plugins.base import Compiler, TypeChecker
from webbuild.plugins.hooks import HookRunner, ServerStarted
from webbuild.prebundle import DependencyPrebundler
from webbuild.watch.orchestrator import WatchOrchestrator
from webbuild.watch.server import DevServer
from webbuild.watch.watcher import SourceWatcher

logger = logging.getLogger(__name__)


class DevelopmentSession:
    """Pre-bundle dependencies, then rebuild, serve and reload until stopped."""

    def __init__(
        self,
        config: BuildConfiguration,
        metadata: ProjectMetadata,
        compiler: Compiler,
        type_checker: TypeChecker,
        hooks: HookRunner,
        server: Optional[DevServer] = None,
    ) -> None:
        self._config = config
        self._metadata = metadata
        self._compiler = compiler
        self._type_checker = type_checker
        self._hooks = hooks
        self._server = server or DevServer(
            config.serve_dir, host=config.host, port=config.port, fallback=config.fallback
        )
        self._orchestrator: Optional[WatchOrchestrator] = None

    @property
    def server(self) -> DevServer:
        return self._server

    @property
    def orchestrator(self) -> Optional[WatchOrchestrator]:
        return self._orchestrator

    def prepare(self) -> PathTable:
        """Pre-bundle every dependency and return the served-path table.

        Raises:
            PrebundleError: If pre-bundling fails. The session cannot start.
        """
        prebundler = DependencyPrebundler(self._config, self._compiler, self._hooks)
        manifest = prebundler.run(self._metadata)
        return build_path_table(manifest)

    def run(self) -> None:
        """Run the whole session, blocking until :meth:`stop` is called."""
        table = self.prepare()
        builder = ApplicationBuilder(self._config, self._compiler, self._type_checker, table)
        orchestrator = WatchOrchestrator(builder.build, self._hooks, on_success=self._built)
        self._orchestrator = orchestrator

        watcher = SourceWatcher(self._config, orchestrator.post)
        watcher.start()
        try:
            orchestrator.run()
        finally:
            watcher.stop()
            self._server.stop()

    def stop(self) -> None:
        if self._orchestrator is not None:
            self._orchestrator.stop()

    def _built(self, successes: int) -> None:
        if not self._server.is_running:
            self._server.start()
            self._hooks.emit(ServerStarted(self._server.url))
        else:
            self._server.notify_reload()
