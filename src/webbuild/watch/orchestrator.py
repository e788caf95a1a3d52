"""The development rebuild loop as an explicit state machine.

Everything that can happen to the loop arrives as a message on a single
channel (a :class:`queue.Queue`):

* :class:`StartLoop` -- posted once by :meth:`WatchOrchestrator.run`.
* :class:`SourceChanged` -- posted by the file watcher thread.
* :class:`BuildSucceeded` / :class:`BuildFailed` -- posted by the build
  worker when a pass finishes.
* :class:`Shutdown` -- posted when the process is being terminated.

The loop thread consumes messages one at a time and is the only code that
reads or writes the state, so transitions need no locking. Builds run on a
single worker; a change that arrives while a build is in flight only sets
a pending flag, and exactly one more build starts once the in-flight one
reports back. Two builds never overlap and the backlog never grows beyond
one.

State transitions::

    idle            --StartLoop------> building
    building        --BuildSucceeded-> watching-stable   (emit WatchCompleted)
    building        --BuildFailed----> watching-failed   (emit RebuildFailed)
    watching-*      --SourceChanged--> building          (emit WatchStarted)
    building        --SourceChanged--> building          (pending = True)
"""

from __future__ import annotations

import enum
import logging
import queue
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from webbuild.plugins.hooks import HookRunner, RebuildFailed, WatchCompleted, WatchStarted

logger = logging.getLogger(__name__)


class LoopState(str, enum.Enum):
    IDLE = "idle"
    BUILDING = "building"
    WATCHING_STABLE = "watching-stable"
    WATCHING_FAILED = "watching-failed"


# --- Channel messages ---


@dataclass(frozen=True)
class StartLoop:
    pass


@dataclass(frozen=True)
class SourceChanged:
    path: str


@dataclass(frozen=True)
class BuildSucceeded:
    duration_ms: float


@dataclass(frozen=True)
class BuildFailed:
    error: Exception


@dataclass(frozen=True)
class Shutdown:
    pass


LoopMessage = Union[StartLoop, SourceChanged, BuildSucceeded, BuildFailed, Shutdown]

Submit = Callable[[Callable[[], None]], Any]


class WatchOrchestrator:
    """Sequence incremental rebuilds in response to source changes.

    Args:
        build: Runs one incremental pass; raises on failure.
        hooks: Receives :class:`~webbuild.plugins.hooks.WatchStarted`,
            :class:`~webbuild.plugins.hooks.WatchCompleted` and
            :class:`~webbuild.plugins.hooks.RebuildFailed` events.
        on_success: Called on the loop thread after each successful build
            with the running count of successes (``1`` for the first).
        submit: Schedules a build callable. Defaults to a single-worker
            executor created by :meth:`run`.
    """

    def __init__(
        self,
        build: Callable[[], Any],
        hooks: HookRunner,
        on_success: Optional[Callable[[int], None]] = None,
        submit: Optional[Submit] = None,
    ) -> None:
        self._build = build
        self._hooks = hooks
        self._on_success = on_success
        self._submit = submit
        self._channel: queue.Queue[LoopMessage] = queue.Queue()
        self._state = LoopState.IDLE
        self._pending = False
        self._successes = 0

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def pending(self) -> bool:
        """Whether a rebuild is scheduled to follow the one in flight."""
        return self._pending

    def post(self, message: LoopMessage) -> None:
        """Put *message* on the channel. Safe to call from any thread."""
        self._channel.put(message)

    def stop(self) -> None:
        self.post(Shutdown())

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Consume the channel until :class:`Shutdown` arrives.

        Blocks the calling thread. Exceptions raised by ``on_success``
        propagate and end the loop.
        """
        executor: Optional[ThreadPoolExecutor] = None
        if self._submit is None:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="webbuild-build")
            self._submit = executor.submit
        self.post(StartLoop())
        try:
            while True:
                message = self._channel.get()
                if isinstance(message, Shutdown):
                    logger.debug("Watch loop shutting down in state %s", self._state.value)
                    return
                self.handle(message)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

    def handle(self, message: LoopMessage) -> LoopState:
        """Apply one message to the state machine and return the new state."""
        if isinstance(message, StartLoop):
            if self._state == LoopState.IDLE:
                self._start_build()

        elif isinstance(message, SourceChanged):
            if self._state == LoopState.BUILDING:
                self._pending = True
            elif self._state in (LoopState.WATCHING_STABLE, LoopState.WATCHING_FAILED):
                logger.debug("Change detected: %s", message.path)
                self._hooks.emit(WatchStarted())
                self._start_build()

        elif isinstance(message, BuildSucceeded):
            if self._state != LoopState.BUILDING:
                logger.warning("Ignoring build result received in state %s", self._state.value)
                return self._state
            self._state = LoopState.WATCHING_STABLE
            self._successes += 1
            self._hooks.emit(WatchCompleted(message.duration_ms))
            if self._on_success is not None:
                self._on_success(self._successes)
            self._start_pending()

        elif isinstance(message, BuildFailed):
            if self._state != LoopState.BUILDING:
                logger.warning("Ignoring build result received in state %s", self._state.value)
                return self._state
            self._state = LoopState.WATCHING_FAILED
            self._hooks.emit(RebuildFailed(message.error))
            self._start_pending()

        return self._state

    # ------------------------------------------------------------------
    # Builds
    # ------------------------------------------------------------------

    def _start_pending(self) -> None:
        if self._pending:
            self._pending = False
            self._hooks.emit(WatchStarted())
            self._start_build()

    def _start_build(self) -> None:
        if self._submit is None:
            raise RuntimeError("No build worker: call run() or pass submit=")
        self._state = LoopState.BUILDING
        self._submit(self._run_build)

    def _run_build(self) -> None:
        """Worker-side wrapper: run one pass and report its outcome on the channel."""
        started = time.perf_counter()
        try:
            self._build()
        except Exception as exc:
            logger.debug("Build failed", exc_info=True)
            self.post(BuildFailed(exc))
            return
        self.post(BuildSucceeded((time.perf_counter() - started) * 1000))
