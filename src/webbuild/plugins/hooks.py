"""Build lifecycle events and the runner that fans them out to observers.

This module provides two core components:

* Event dataclasses -- immutable records emitted by the pipelines and the
  watch loop (:class:`StageStarted`, :class:`StageCompleted`,
  :class:`WatchStarted`, :class:`WatchCompleted`, ...).
* :class:`HookRunner` -- delivers every event to all registered observers
  in registration order.

Observers are read-only: nothing an observer does can change build state
or control flow. An observer that raises is logged and skipped so the
remaining observers still see the event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Union

from webbuild.models import BuildConfiguration

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigurationResolved:
    """The invocation's configuration is known."""

    config: BuildConfiguration


@dataclass(frozen=True)
class StageStarted:
    """A run-to-completion stage began (pre-bundle, production build)."""

    label: str


@dataclass(frozen=True)
class StageCompleted:
    """A run-to-completion stage finished successfully."""

    label: str
    duration_ms: float


@dataclass(frozen=True)
class DependencyResolved:
    """A dependency's module entry point was resolved."""

    name: str
    path: Path


@dataclass(frozen=True)
class WatchStarted:
    """A source change started an incremental rebuild."""


@dataclass(frozen=True)
class WatchCompleted:
    """An incremental rebuild succeeded."""

    duration_ms: float


@dataclass(frozen=True)
class RebuildFailed:
    """An incremental rebuild failed; the loop keeps running."""

    error: Exception


@dataclass(frozen=True)
class ServerStarted:
    """The development server is accepting requests."""

    url: str


WatchEvent = Union[WatchStarted, WatchCompleted]

BuildEvent = Union[
    ConfigurationResolved,
    StageStarted,
    StageCompleted,
    DependencyResolved,
    WatchStarted,
    WatchCompleted,
    RebuildFailed,
    ServerStarted,
]


class EventObserver(Protocol):
    """Anything with an ``on_event`` method can observe the build."""

    def on_event(self, event: BuildEvent) -> None:
        ...


class HookRunner:
    """Delivers build events to observers in registration order.

    The runner holds a snapshot of the observer list taken at creation
    time; it is safe to call :meth:`emit` from the watch loop thread and
    the build worker thread.
    """

    def __init__(self, observers: list[EventObserver] | None = None) -> None:
        self._observers = list(observers or [])

    def emit(self, event: BuildEvent) -> None:
        """Send *event* to every observer.

        An observer that raises is logged and does not prevent later
        observers from receiving the event.
        """
        for observer in self._observers:
            try:
                observer.on_event(event)
            except Exception:
                logger.exception("Observer %r failed on %s", observer, type(event).__name__)
