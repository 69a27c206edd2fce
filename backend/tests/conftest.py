"""
Snipgen Test Configuration.

Pytest fixtures and configuration.
Requires Python 3.11+.
"""

import os
import threading
import time
from collections.abc import Callable
from pathlib import Path

import pytest
import structlog

from generate.errors import RenderError
from generate.models import EventKind, FileEvent, Settlement
from render.models import RenderResult


class RecordingWriter:
    """Artifact writer that records every write before persisting it."""

    def __init__(self) -> None:
        self.writes: list[tuple[Path, bytes]] = []
        self.failing: set[Path] = set()
        self._lock = threading.Lock()

    def __call__(self, path: Path, contents: bytes) -> None:
        if path in self.failing:
            raise OSError(28, "No space left on device")
        with self._lock:
            self.writes.append((path, contents))
        path.write_bytes(contents)

    def count(self, path: Path) -> int:
        with self._lock:
            return sum(1 for written, _ in self.writes if written == path)


class ScriptedRenderer:
    """Renderer with predictable output and configurable failures."""

    def __init__(self, extracts: bool = True, delay: float = 0.0) -> None:
        self.extracts = extracts
        self.delay = delay
        self.calls: list[Path] = []
        self.failing: set[Path] = set()
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def render(
        self, path: Path, content: bytes, *, extract_text: bool = False
    ) -> RenderResult:
        with self._lock:
            self.calls.append(path)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if path in self.failing:
                raise RenderError(f"cannot render {path.name}")
            if extract_text and self.extracts:
                return RenderResult(b"# generated\nTEXT = load()\n", content.decode())
            return RenderResult(b"# generated\n" + content)
        finally:
            with self._lock:
                self.active -= 1

    def call_count(self, path: Path | None = None) -> int:
        with self._lock:
            if path is None:
                return len(self.calls)
            return sum(1 for called in self.calls if called == path)


class FakeWatcher:
    """In-memory watcher driven by the test."""

    def __init__(self, root: Path, sink: Callable[[FileEvent], None], ignore: list[str]) -> None:
        self.root = root
        self.sink = sink
        self.started = False
        self.closed = False

    def start(self) -> None:
        self.started = True

    def close(self) -> None:
        self.closed = True

    def emit(self, path: Path, kind: EventKind = EventKind.WRITE) -> None:
        self.sink(FileEvent(path, kind))


class SettleRecorder:
    """Collects settlements and lets tests wait for them."""

    def __init__(self) -> None:
        self.settlements: list[Settlement] = []
        self._cond = threading.Condition()

    def __call__(self, settlement: Settlement) -> None:
        with self._cond:
            self.settlements.append(settlement)
            self._cond.notify_all()

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.settlements) >= count, timeout=timeout)


def write_snippet(path: Path, content: str, mtime_ns: int | None = None) -> Path:
    """Write a snippet and optionally pin its modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mtime_ns is not None:
        os.utime(path, ns=(mtime_ns, mtime_ns))
    return path


def bump_mtime(path: Path, seconds: int = 1) -> int:
    """Move a file's modification time forward and return the new value."""
    mtime_ns = path.stat().st_mtime_ns + seconds * 1_000_000_000
    os.utime(path, ns=(mtime_ns, mtime_ns))
    return mtime_ns


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll a predicate until it holds or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by command line tests."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def writer() -> RecordingWriter:
    """Create a recording artifact writer."""
    return RecordingWriter()


@pytest.fixture
def renderer() -> ScriptedRenderer:
    """Create a scripted renderer."""
    return ScriptedRenderer()


@pytest.fixture
def watchers() -> list[FakeWatcher]:
    """Watchers created by `watcher_factory`, in creation order."""
    return []


@pytest.fixture
def watcher_factory(watchers: list[FakeWatcher]) -> Callable[..., FakeWatcher]:
    """Watcher factory recording the fake watchers it creates."""

    def factory(root: Path, sink: Callable[[FileEvent], None], ignore: list[str]) -> FakeWatcher:
        watcher = FakeWatcher(root, sink, ignore)
        watchers.append(watcher)
        return watcher

    return factory


@pytest.fixture
def snippet_tree(tmp_path: Path) -> Path:
    """Create a directory tree with snippets and unrelated files."""
    root = tmp_path / "site"
    write_snippet(root / "hello.code.go", 'package main\n\nfunc main() { println("hi") }\n')
    write_snippet(root / "nested" / "sum.code.py", "def total(xs):\n    return sum(xs)\n")
    write_snippet(root / "README.md", "# not a snippet\n")
    write_snippet(root / ".git" / "ignored.code.go", "package ignored\n")
    write_snippet(root / "node_modules" / "dep.code.js", "module.exports = 1\n")
    return root
