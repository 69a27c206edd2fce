"""
Snipgen Event Handler.

Per-event orchestration: filter, modification time check, render,
hash check, write and error bookkeeping.
Requires Python 3.11+.
"""

import threading
import time
from pathlib import Path

from generate.errors import ArtifactWriteError, FileGenerationError, OutputCollisionError
from generate.models import FileEvent
from generate.paths import (
    colliding_sources,
    is_code_file,
    is_text_file,
    output_path,
    text_path,
)
from generate.writers import ArtifactWriter, file_writer
from render.models import Renderer
from stores import ErrorRegistry, HashStore, ModTimeTracker, hash_bytes
from utils.logger import LoggerMixin


class EventHandler(LoggerMixin):
    """
    Regenerates outputs for snippet sources named by filesystem events.

    An interactive handler (watch mode) asks the renderer to extract
    literal text into a separate artifact and treats existing text
    artifacts as live. A production handler deletes them instead.
    """

    def __init__(
        self,
        root: Path,
        renderer: Renderer,
        *,
        interactive: bool = False,
        writer: ArtifactWriter = file_writer,
        hashes: HashStore | None = None,
        keep_orphaned_files: bool = False,
        lazy: bool = False,
    ) -> None:
        """
        Initialize the handler.

        Args:
            root: Root directory being processed
            renderer: Content renderer
            interactive: Whether running in watch mode
            writer: Artifact writer, defaults to the filesystem
            hashes: Hash store to share with another handler
            keep_orphaned_files: Keep outputs of removed sources
            lazy: Skip sources whose output is not older than the source
        """
        self.root = root
        self.interactive = interactive
        self._renderer = renderer
        self._writer = writer
        self._hashes = hashes if hashes is not None else HashStore()
        self._mod_times = ModTimeTracker()
        self._errors = ErrorRegistry()
        # Sources removed since they were last generated
        self._removed: set[Path] = set()
        self._removed_lock = threading.Lock()
        self._keep_orphaned_files = keep_orphaned_files
        self._lazy = lazy

    @property
    def hashes(self) -> HashStore:
        return self._hashes

    @property
    def errors(self) -> ErrorRegistry:
        return self._errors

    def for_production(self) -> "EventHandler":
        """
        Build a fresh non-interactive handler for the reconciliation walk.

        Modification times and errors start empty so that every source is
        regenerated; the hash store is shared so unchanged outputs are
        not rewritten. Lazy mode is off so no watch-mode output survives.
        """
        return EventHandler(
            self.root,
            self._renderer,
            interactive=False,
            writer=self._writer,
            hashes=self._hashes,
            keep_orphaned_files=self._keep_orphaned_files,
            lazy=False,
        )

    def handle(self, event: FileEvent) -> tuple[bool, bool]:
        """
        Handle one filesystem event.

        Args:
            event: The event to process

        Returns:
            Tuple of (code changed, text changed)

        Raises:
            FileGenerationError: If rendering or writing failed
        """
        path = event.path

        # Extracted text artifacts
        if not event.is_removal and is_text_file(path):
            if self.interactive:
                return False, True
            self.log.debug("deleting_watch_mode_file", file=str(path))
            try:
                path.unlink()
            except OSError as e:
                self.log.warning("failed_to_remove_text_file", file=str(path), error=str(e))
            return False, False

        if not is_code_file(path):
            return False, False

        if event.is_removal:
            with self._removed_lock:
                self._removed.add(path)
            return self._remove_orphans(path), False

        mtime, updated = self._mod_times.upsert_if_newer(path)
        # A source restored with its old mtime, e.g. moved away and back
        restored = mtime is not None and self._take_removed(path)
        if not updated and not restored:
            self.log.debug("skipping_unchanged_file", file=str(path))
            return False, False

        start_time = time.perf_counter()
        try:
            code_changed, text_changed = self._generate(path)
        except Exception as e:
            self.log.error("generate_failed", file=str(path), error=str(e))
            self._errors.set_error(path, True)
            raise FileGenerationError(path, str(e)) from e

        cleared, remaining = self._errors.set_error(path, False)
        if cleared:
            self.log.info("error_cleared", file=str(path), errors=remaining)
        self.log.debug(
            "generated_code",
            file=str(path),
            code_changed=code_changed,
            text_changed=text_changed,
            elapsed_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return code_changed, text_changed

    def _generate(self, path: Path) -> tuple[bool, bool]:
        target = output_path(path)
        others = colliding_sources(path)
        if others:
            raise OutputCollisionError(target, others)
        if self._lazy and self._is_up_to_date(path, target):
            self.log.debug("skipping_up_to_date_file", file=str(path))
            return False, False

        content = path.read_bytes()
        result = self._renderer.render(path, content, extract_text=self.interactive)

        code_changed = self._write_if_changed(target, result.output)
        text_changed = False
        if result.text:
            text_changed = self._write_if_changed(
                text_path(path), result.text.encode("utf-8")
            )
        return code_changed, text_changed

    def _write_if_changed(self, target: Path, contents: bytes) -> bool:
        # The digest stays committed if the write fails; the next
        # identical render is skipped until the content changes.
        with self._hashes.guard(target):
            if not self._hashes.upsert_if_changed(target, hash_bytes(contents)):
                return False
            try:
                self._writer(target, contents)
            except OSError as e:
                raise ArtifactWriteError(target, str(e)) from e
        return True

    def _take_removed(self, path: Path) -> bool:
        with self._removed_lock:
            if path not in self._removed:
                return False
            self._removed.discard(path)
            return True

    def _is_up_to_date(self, source: Path, target: Path) -> bool:
        try:
            return target.stat().st_mtime_ns >= source.stat().st_mtime_ns
        except OSError:
            return False

    def _remove_orphans(self, source: Path) -> bool:
        if self._keep_orphaned_files:
            return False
        others = colliding_sources(source)
        if others:
            # The artifacts still belong to a live source
            self.log.warning(
                "orphan_shares_outputs",
                file=str(source),
                others=[str(other) for other in others],
            )
            return False
        removed = False
        for target in (output_path(source), text_path(source)):
            with self._hashes.guard(target):
                self._hashes.forget(target)
                try:
                    target.unlink()
                except FileNotFoundError:
                    continue
                except OSError as e:
                    self.log.warning("failed_to_remove_orphan", file=str(target), error=str(e))
                    continue
            removed = True
            self.log.info("removed_orphaned_file", file=str(target), source=str(source))
        return removed
