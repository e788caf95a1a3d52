"""Render build lifecycle events to the operator's console.

:class:`EventReporter` is registered as an observer on the
:class:`~webbuild.plugins.hooks.HookRunner`. It keeps no state and nothing
reads what it prints, so it can be replaced or removed without changing
how a build behaves.
"""

from __future__ import annotations

from webbuild.models import BuildConfiguration
from webbuild.output import OutputManager, get_output
from webbuild.plugins.hooks import (
    BuildEvent,
    ConfigurationResolved,
    DependencyResolved,
    RebuildFailed,
    ServerStarted,
    StageCompleted,
    StageStarted,
    WatchCompleted,
    WatchStarted,
)


def format_duration(duration_ms: float) -> str:
    """Format a duration the way build timings are shown (``"412ms"``, ``"1.52s"``)."""
    if duration_ms < 1000:
        return f"{duration_ms:.0f}ms"
    return f"{duration_ms / 1000:.2f}s"


class EventReporter:
    """Stateless console sink for build events.

    Args:
        verbose: Show the configuration summary, stage starts and
            dependency resolutions.
        output: Output manager to write to. Defaults to the global one.
    """

    def __init__(self, verbose: bool = False, output: OutputManager | None = None) -> None:
        self._verbose = verbose
        self._output = output

    @property
    def out(self) -> OutputManager:
        return self._output or get_output()

    def on_event(self, event: BuildEvent) -> None:
        if isinstance(event, ConfigurationResolved):
            if self._verbose:
                self.configuration(event.config)
        elif isinstance(event, StageStarted):
            if self._verbose:
                self.out.notice(f"Started {event.label}")
        elif isinstance(event, StageCompleted):
            self.out.success(f"{event.label}: {format_duration(event.duration_ms)}")
        elif isinstance(event, DependencyResolved):
            if self._verbose:
                self.out.info(f"Using {event.name}: {event.path}")
        elif isinstance(event, WatchStarted):
            self.out.notice("\nFound Changes")
        elif isinstance(event, WatchCompleted):
            self.out.success(f"Completed build: {format_duration(event.duration_ms)}")
        elif isinstance(event, RebuildFailed):
            self.out.error(str(event.error))
            self.out.suggest("Waiting for changes...")
        elif isinstance(event, ServerStarted):
            self.out.info(f"Serving at {event.url}")

    def configuration(self, config: BuildConfiguration) -> None:
        """Print the configuration summary shown at the start of a verbose build."""
        self.out.notice("Current Configuration:")
        self.out.info(f"  Development Mode - {config.is_development}")
        self.out.info(f"  Typescript Mode - {config.use_static_type_check}")
        self.out.info(f"  Source Entry Point - {config.entry_point_path}")
        self.out.info(f"  Output Directory - {config.output_dir}")
        if config.is_development:
            self.out.info(f"  Dev Server - http://{config.host}:{config.port}")
