"""Development mode: rebuild loop, file watcher, and dev server.

Key classes:

* :class:`WatchOrchestrator` -- the channel-driven state machine that keeps
  rebuilds strictly sequential.
* :class:`SourceWatcher` -- turns watchdog notifications into
  ``SourceChanged`` messages.
* :class:`DevServer` -- serves the output with SPA fallback and a live
  reload counter.
* :class:`DevelopmentSession` -- wires pre-bundle, path table, loop,
  watcher and server together.
"""

from webbuild.watch.orchestrator import (
    BuildFailed,
    BuildSucceeded,
    LoopState,
    Shutdown,
    SourceChanged,
    StartLoop,
    WatchOrchestrator,
)
from webbuild.watch.server import DevServer
from webbuild.watch.session import DevelopmentSession
from webbuild.watch.watcher import SourceChangeHandler, SourceWatcher

__all__ = [
    "BuildFailed",
    "BuildSucceeded",
    "LoopState",
    "Shutdown",
    "SourceChanged",
    "StartLoop",
    "WatchOrchestrator",
    "DevServer",
    "DevelopmentSession",
    "SourceChangeHandler",
    "SourceWatcher",
]
