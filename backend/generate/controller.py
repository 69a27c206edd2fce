"""
Snipgen Run Controller.

Wires the walker, watcher, worker pool and settle coordinator into one
supervised run with graceful shutdown and aggregate error reporting.
Requires Python 3.11+.
"""

import os
import queue
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from generate.errors import (
    ConfigurationError,
    FatalError,
    FileGenerationError,
    GenerationFailedError,
)
from generate.event_handler import EventHandler
from generate.models import EventKind, FileEvent, GenerationEvent, Mode, RunReport, Settlement
from generate.sync import WaitGroup
from generate.writers import ArtifactWriter, file_writer
from render.models import Renderer
from utils.config import Settings
from utils.logger import LoggerMixin
from watcher.debouncer import SettleCoordinator
from watcher.file_watcher import WatcherFactory, create_file_watcher
from watcher.walker import walk_files


@dataclass
class GenerateOptions:
    """Options for a single run."""

    path: Path = field(default_factory=lambda: Path("."))
    file_name: Path | None = None
    watch: bool = False
    worker_count: int = 0
    keep_orphaned_files: bool = False
    lazy: bool = False
    debounce_delay_ms: int = 100
    results_buffer: int = 256
    ignore_patterns: list[str] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "GenerateOptions":
        """Build options from settings, with explicit values taking precedence."""
        values: dict[str, Any] = {
            "worker_count": settings.generate.worker_count,
            "keep_orphaned_files": settings.generate.keep_orphaned_files,
            "lazy": settings.generate.lazy,
            "debounce_delay_ms": settings.generate.debounce_delay_ms,
            "results_buffer": settings.generate.results_buffer,
            "ignore_patterns": list(settings.watcher.ignore_patterns),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class _RunState:
    """Mutable state shared by the phases of one run."""

    stop: threading.Event
    handler: EventHandler
    coordinator: SettleCoordinator
    semaphore: threading.BoundedSemaphore
    executor: ThreadPoolExecutor
    events: "queue.Queue[tuple[EventHandler, FileEvent] | None]" = field(
        default_factory=queue.Queue
    )
    in_flight: WaitGroup = field(default_factory=WaitGroup)
    mode: Mode = Mode.PRODUCTION
    walks: int = 0
    fatal: FatalError | None = None
    error_count: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)

    def add_error(self) -> None:
        with self.lock:
            self.error_count += 1

    def reset_errors(self) -> None:
        with self.lock:
            self.error_count = 0


class Generate(LoggerMixin):
    """
    Runs snippet generation over a directory tree.

    Three phases run concurrently: push (walk, then optionally watch),
    handle (bounded worker pool) and settle (debounce coordinator). When a
    watch is cancelled, in-flight work drains and the tree is walked once
    more in production mode so the final outputs match the final sources.
    """

    def __init__(
        self,
        options: GenerateOptions,
        renderer: Renderer,
        writer: ArtifactWriter | None = None,
        watcher_factory: WatcherFactory = create_file_watcher,
        on_settle: Callable[[Settlement], Any] | None = None,
    ) -> None:
        """
        Initialize the run controller.

        Args:
            options: Run options
            renderer: Content renderer
            writer: Artifact writer, defaults to the filesystem
            watcher_factory: Creates the live watcher in watch mode
            on_settle: Called after each debounced burst of changes
        """
        self._options = options
        self._renderer = renderer
        self._writer = writer or file_writer
        self._watcher_factory = watcher_factory
        self._on_settle = on_settle
        self._state: _RunState | None = None

    @property
    def mode(self) -> Mode | None:
        """Current mode of the active run, None before the first run."""
        return self._state.mode if self._state is not None else None

    @property
    def worker_count(self) -> int:
        return self._options.worker_count or os.cpu_count() or 1

    def run(self, stop: threading.Event | None = None) -> RunReport:
        """
        Run generation until done, or until `stop` is set in watch mode.

        Args:
            stop: Cancellation signal ending the watch

        Returns:
            RunReport for a run without errors

        Raises:
            ConfigurationError: If the options are inconsistent
            FatalError: If walking or watcher setup failed
            FileGenerationError: If the single requested file failed
            GenerationFailedError: If any file failed during a tree run
        """
        options = self._options
        if options.watch and options.file_name is not None:
            raise ConfigurationError(
                "cannot watch a single file, remove the file name or the watch option"
            )

        root = options.path.resolve()
        handler = EventHandler(
            root,
            self._renderer,
            interactive=options.watch,
            writer=self._writer,
            keep_orphaned_files=options.keep_orphaned_files,
            lazy=options.lazy,
        )

        # A single file does not need the pipeline.
        if options.file_name is not None:
            return self._run_single(handler, Path(options.file_name))

        return self._run_tree(handler, stop or threading.Event())

    def _run_single(self, handler: EventHandler, file_name: Path) -> RunReport:
        start_time = time.perf_counter()
        code_changed, text_changed = handler.handle(
            FileEvent(file_name.resolve(), EventKind.CREATE)
        )
        return RunReport(
            updates=int(code_changed or text_changed),
            duration=time.perf_counter() - start_time,
        )

    def _run_tree(self, handler: EventHandler, stop: threading.Event) -> RunReport:
        options = self._options
        start_time = time.perf_counter()
        worker_count = self.worker_count

        coordinator = SettleCoordinator(
            delay_ms=options.debounce_delay_ms,
            callback=self._on_settle,
            maxsize=options.results_buffer,
        )
        coordinator.set_interactive(options.watch)
        executor = ThreadPoolExecutor(
            max_workers=worker_count, thread_name_prefix="snipgen-worker"
        )
        state = _RunState(
            stop=stop,
            handler=handler,
            coordinator=coordinator,
            semaphore=threading.BoundedSemaphore(worker_count),
            executor=executor,
            mode=Mode.WATCH if options.watch else Mode.PRODUCTION,
        )
        self._state = state

        phases = [
            threading.Thread(target=self._push, args=(state,), name="snipgen-push"),
            threading.Thread(target=self._dispatch, args=(state,), name="snipgen-dispatch"),
            threading.Thread(target=coordinator.run, name="snipgen-settle"),
        ]
        for phase in phases:
            phase.start()

        self.log.debug("waiting_for_phases", workers=worker_count)
        for phase in phases:
            phase.join()
        executor.shutdown(wait=True)

        report = RunReport(
            error_count=state.error_count,
            files_with_errors=len(state.handler.errors),
            updates=coordinator.updates,
            settles=coordinator.settles,
            walks=state.walks,
            duration=time.perf_counter() - start_time,
        )

        if state.fatal is not None:
            raise state.fatal
        if report.error_count > 0:
            raise GenerationFailedError(report.error_count, report)

        self.log.info(
            "complete",
            updates=report.updates,
            duration_ms=round(report.duration * 1000, 2),
        )
        return report

    def _enqueue(self, state: _RunState, handler: EventHandler, event: FileEvent) -> None:
        state.in_flight.add()
        state.events.put((handler, event))

    def _walk(
        self, state: _RunState, handler: EventHandler, stop: threading.Event | None
    ) -> None:
        state.walks += 1
        walk_files(
            handler.root,
            lambda event: self._enqueue(state, handler, event),
            ignore_patterns=self._options.ignore_patterns,
            stop=stop,
        )

    def _fail(self, state: _RunState, error: FatalError) -> None:
        self.log.error("fatal_error", error=str(error))
        state.fatal = error
        state.stop.set()

    def _push(self, state: _RunState) -> None:
        """Walk the tree, then optionally watch it until cancelled."""
        handler = state.handler
        try:
            self.log.debug("walking_directory", path=str(handler.root), watch=self._options.watch)
            # Cancellation only ends the watch; a plain run walks everything.
            initial_stop = state.stop if self._options.watch else None
            try:
                self._walk(state, handler, stop=initial_stop)
            except OSError as e:
                self._fail(state, FatalError(f"failed to walk files: {e}"))
                return

            if not self._options.watch:
                self.log.debug("watch_not_enabled_finishing_early")
                return

            def watch_sink(event: FileEvent) -> None:
                # Late notifications after the watch ended are dropped
                if state.mode is Mode.WATCH:
                    self._enqueue(state, handler, event)

            watcher = self._watcher_factory(
                handler.root, watch_sink, self._options.ignore_patterns
            )
            try:
                watcher.start()
            except OSError as e:
                self._fail(state, FatalError(f"failed to setup recursive watcher: {e}"))
                return
            self.log.info("watching_files", path=str(handler.root))

            state.stop.wait()
            self.log.debug("stop_requested_closing_watcher")
            try:
                watcher.close()
            except OSError as e:
                self.log.error("failed_to_close_watcher", error=str(e))

            state.mode = Mode.SETTLING
            self.log.debug("waiting_for_events_to_be_processed")
            state.in_flight.wait()
            self.log.debug("waiting_for_pending_settles")
            state.coordinator.wait_idle()
            self.log.debug(
                "running_production_walk",
                error_count=state.error_count,
            )

            # Reset to reprocess all files in production mode.
            production = handler.for_production()
            state.handler = production
            state.reset_errors()
            state.coordinator.set_interactive(False)
            state.mode = Mode.PRODUCTION
            try:
                self._walk(state, production, stop=None)
            except OSError as e:
                self._fail(state, FatalError(f"failed to walk files: {e}"))
        finally:
            state.events.put(None)

    def _dispatch(self, state: _RunState) -> None:
        """Fan events out to the bounded worker pool."""
        self.log.debug("starting_event_handler")
        try:
            while (item := state.events.get()) is not None:
                handler, event = item
                if state.fatal is not None:
                    # No new work is admitted after a fatal error
                    state.in_flight.done()
                    continue
                state.semaphore.acquire()
                state.executor.submit(self._work, state, handler, event)
            state.in_flight.wait()
        finally:
            state.coordinator.close()

    def _work(self, state: _RunState, handler: EventHandler, event: FileEvent) -> None:
        try:
            self.log.debug("processing_file", file=str(event.path))
            code_changed, text_changed = handler.handle(event)
            if code_changed or text_changed:
                state.coordinator.submit(
                    GenerationEvent(
                        source_event=event,
                        code_changed=code_changed,
                        text_changed=text_changed,
                    )
                )
        except FileGenerationError as e:
            self.log.error("event_handler_failed", error=str(e))
            state.add_error()
        except Exception:
            self.log.exception("unexpected_event_handler_error", file=str(event.path))
            state.add_error()
        finally:
            state.semaphore.release()
            state.in_flight.done()
