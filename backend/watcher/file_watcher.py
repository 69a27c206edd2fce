"""
Snipgen File Watcher.

Cross-platform file system monitoring using watchdog.
Requires Python 3.11+.
"""

import os
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from generate.models import EventKind, FileEvent
from generate.paths import is_ignored, should_include
from utils.config import get_settings
from utils.logger import LoggerMixin

EventSink = Callable[[FileEvent], None]


class Watcher(Protocol):
    """A live stream of file events that can be closed."""

    def start(self) -> None: ...

    def close(self) -> None: ...


WatcherFactory = Callable[[Path, EventSink, list[str]], Watcher]


class SnippetFileHandler(FileSystemEventHandler, LoggerMixin):
    """
    Translates watchdog events into FileEvents.

    Only snippet sources and extracted-text artifacts are forwarded.
    """

    def __init__(
        self,
        root: Path,
        sink: EventSink,
        ignore_patterns: list[str] | None = None,
    ) -> None:
        """
        Initialize the file handler.

        Args:
            root: Watched root, ignore patterns apply below it
            sink: Receives translated events
            ignore_patterns: Glob patterns to ignore
        """
        super().__init__()
        self._root = root
        self._sink = sink
        self._ignore_patterns = ignore_patterns or []

    def _forward(self, raw_path: str | bytes, kind: EventKind) -> None:
        path = Path(os.fsdecode(raw_path))
        if not should_include(path):
            return
        try:
            relative = path.relative_to(self._root)
        except ValueError:
            relative = path
        hidden = any(part.startswith(".") for part in relative.parent.parts)
        if hidden or is_ignored(relative.parent, self._ignore_patterns):
            return
        self.log.debug("file_event", path=str(path), kind=kind.value)
        self._sink(FileEvent(path, kind))

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        """Handle file creation."""
        if isinstance(event, DirCreatedEvent):
            return
        self._forward(event.src_path, EventKind.CREATE)

    def on_modified(self, event: FileModifiedEvent | DirModifiedEvent) -> None:
        """Handle file modification."""
        if isinstance(event, DirModifiedEvent):
            return
        self._forward(event.src_path, EventKind.WRITE)

    def on_deleted(self, event: FileDeletedEvent | DirDeletedEvent) -> None:
        """Handle file deletion."""
        if isinstance(event, DirDeletedEvent):
            return
        self._forward(event.src_path, EventKind.REMOVE)

    def on_moved(self, event: FileMovedEvent | DirMovedEvent) -> None:
        """Handle file move/rename as a removal plus a creation."""
        if isinstance(event, DirMovedEvent):
            return
        self._forward(event.src_path, EventKind.REMOVE)
        self._forward(event.dest_path, EventKind.CREATE)


class FileWatcher(LoggerMixin):
    """
    Watches a directory tree for snippet changes.

    Events are forwarded as they arrive; batching happens downstream
    in the settle coordinator.
    """

    def __init__(
        self,
        root_path: Path,
        sink: EventSink,
        ignore_patterns: list[str] | None = None,
        recursive: bool = True,
    ) -> None:
        """
        Initialize the file watcher.

        Args:
            root_path: Root directory to watch
            sink: Receives FileEvents from the observer thread
            ignore_patterns: Glob patterns to ignore
            recursive: Whether to watch subdirectories
        """
        self._root_path = root_path
        self._recursive = recursive
        self._ignore_patterns = ignore_patterns or []
        self._handler = SnippetFileHandler(root_path, sink, self._ignore_patterns)
        self._observer: Observer | None = None

    def start(self) -> None:
        """
        Start watching for file changes.

        Raises:
            OSError: If the root cannot be watched
        """
        if self._observer is not None:
            return

        observer = Observer()
        observer.schedule(
            self._handler,
            str(self._root_path),
            recursive=self._recursive,
        )
        observer.start()
        self._observer = observer

        self.log.info(
            "file_watcher_started",
            path=str(self._root_path),
            recursive=self._recursive,
        )

    def close(self) -> None:
        """Stop watching for file changes."""
        if self._observer is None:
            return

        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._observer = None
        self.log.info("file_watcher_stopped")

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._observer is not None


def create_file_watcher(
    root: Path, sink: EventSink, ignore_patterns: list[str]
) -> FileWatcher:
    """Default watcher factory used by the run controller."""
    return FileWatcher(
        root,
        sink,
        ignore_patterns=ignore_patterns,
        recursive=get_settings().watcher.recursive,
    )
