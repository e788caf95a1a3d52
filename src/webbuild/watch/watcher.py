"""File-system notifications to :class:`~webbuild.watch.orchestrator.SourceChanged` messages.

A :mod:`watchdog` observer watches the application's source directory on
its own thread. :class:`SourceChangeHandler` filters the raw notifications
down to relevant source changes and posts one message per change; it
never waits for a build.

Not relevant:

* directory events and non-mutating events (opened, closed);
* anything under the output directory or a staging directory;
* ``node_modules``, ``.git``, editor swap and backup files;
* paths matched by the project's ``.gitignore`` or ``watch_ignore``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

import pathspec
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from webbuild.artifacts import STAGING_PREFIX
from webbuild.models import BuildConfiguration
from webbuild.watch.orchestrator import LoopMessage, SourceChanged

logger = logging.getLogger(__name__)

DEFAULT_IGNORE = (
    "node_modules/",
    ".git/",
    "*.swp",
    "*.swx",
    "*~",
    ".#*",
    "4913",
    ".DS_Store",
)

_MUTATING_EVENTS = (EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED)


def _load_gitignore(root: Path) -> list[str]:
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return []
    return gitignore.read_text(encoding="utf-8", errors="replace").splitlines()


class SourceChangeHandler(FileSystemEventHandler):
    """Post a :class:`SourceChanged` message for every relevant change.

    Args:
        post: Puts a message on the rebuild loop's channel.
        project_root: Root that ignore patterns are relative to.
        excluded_dirs: Directories whose contents never count (the output
            directory).
        patterns: Extra gitignore-style patterns.
    """

    def __init__(
        self,
        post: Callable[[LoopMessage], None],
        project_root: Path,
        excluded_dirs: Sequence[Path] = (),
        patterns: Sequence[str] = (),
    ) -> None:
        super().__init__()
        self._post = post
        self._root = project_root.resolve()
        self._excluded = [d.resolve() for d in excluded_dirs]
        self._spec = pathspec.GitIgnoreSpec.from_lines(
            [*DEFAULT_IGNORE, *_load_gitignore(self._root), *patterns]
        )

    def is_relevant(self, path: str) -> bool:
        resolved = Path(path).resolve()
        if any(part.startswith(STAGING_PREFIX) for part in resolved.parts):
            return False
        for excluded in self._excluded:
            if resolved == excluded or excluded in resolved.parents:
                return False
        try:
            relative = resolved.relative_to(self._root)
        except ValueError:
            return True
        return not self._spec.match_file(relative.as_posix())

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _MUTATING_EVENTS:
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        for path in paths:
            path = path.decode() if isinstance(path, bytes) else path
            if self.is_relevant(path):
                self._post(SourceChanged(path))
                return


class SourceWatcher:
    """Run a watchdog observer over the application source directory.

    The watched directory is the entry point's parent, recursively, which
    covers every module the entry point can import from application source.
    """

    def __init__(self, config: BuildConfiguration, post: Callable[[LoopMessage], None]) -> None:
        self._watch_dir = config.entry_point_path.parent
        self._handler = SourceChangeHandler(
            post,
            config.project_root,
            excluded_dirs=[config.output_dir],
            patterns=config.watch_ignore,
        )
        self._observer: Optional[Observer] = None

    @property
    def watch_dir(self) -> Path:
        return self._watch_dir

    def start(self) -> None:
        observer = Observer()
        observer.schedule(self._handler, str(self._watch_dir), recursive=True)
        observer.daemon = True
        observer.start()
        self._observer = observer
        logger.debug("Watching %s", self._watch_dir)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
