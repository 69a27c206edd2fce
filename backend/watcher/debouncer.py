"""
Snipgen Settle Coordinator.

Debounces bursts of generation results into settle notifications.
Requires Python 3.11+.
"""

import queue
import threading
from collections.abc import Callable
from typing import Any

from generate.models import GenerationEvent, Settlement
from utils.logger import LoggerMixin


class SettleCoordinator(LoggerMixin):
    """
    Coalesces generation events and fires a callback after a quiet period.

    A single thread runs `run()`, selecting between a new result and the
    timer expiring; the accumulator is never touched by any other thread.
    Workers hand results over with `submit()`, which blocks while the
    results buffer is full.
    """

    def __init__(
        self,
        delay_ms: int = 100,
        callback: Callable[[Settlement], Any] | None = None,
        maxsize: int = 256,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            delay_ms: Quiet period in milliseconds before settling
            callback: Function called with each Settlement
            maxsize: Capacity of the results buffer
        """
        self._delay = delay_ms / 1000.0
        self._callback = callback
        self._results: queue.Queue[GenerationEvent | None] = queue.Queue(maxsize=maxsize)
        self._cond = threading.Condition()
        self._outstanding = 0
        self._interactive = True
        self.settles = 0
        self.updates = 0

    def set_interactive(self, interactive: bool) -> None:
        """Label subsequent settlements as interactive or production."""
        self._interactive = interactive

    def submit(self, event: GenerationEvent) -> None:
        """
        Hand a generation result to the coordinator.

        Args:
            event: Result where at least one output changed
        """
        with self._cond:
            self._outstanding += 1
        self._results.put(event)

    def close(self) -> None:
        """Signal that no more results will be submitted."""
        self._results.put(None)

    def wait_idle(self, timeout: float | None = None) -> bool:
        """
        Block until every submitted result has been settled.

        Returns:
            False if the timeout expired first
        """
        with self._cond:
            return self._cond.wait_for(lambda: self._outstanding == 0, timeout=timeout)

    @property
    def pending_count(self) -> int:
        """Get number of submitted results not yet settled."""
        with self._cond:
            return self._outstanding

    def run(self) -> None:
        """Process results until the coordinator is closed."""
        code_changed = text_changed = False
        batch = 0
        self.log.debug("settle_coordinator_started")
        while True:
            # Parked until a result arrives when nothing is pending
            timeout = self._delay if (code_changed or text_changed) else None
            try:
                event = self._results.get(timeout=timeout)
            except queue.Empty:
                self._settle(code_changed, text_changed, batch)
                code_changed = text_changed = False
                batch = 0
                continue

            if event is None:
                if batch:
                    self._settle(code_changed, text_changed, batch)
                self.log.debug("settle_coordinator_closed", settles=self.settles)
                return

            batch += 1
            code_changed = code_changed or event.code_changed
            text_changed = text_changed or event.text_changed
            if code_changed or text_changed:
                self.updates += 1

    def _settle(self, code_changed: bool, text_changed: bool, batch: int) -> None:
        settlement = Settlement(
            code_changed=code_changed,
            text_changed=text_changed,
            events=batch,
            interactive=self._interactive,
        )
        self.settles += 1
        self.log.debug(
            "generation_settled",
            events=batch,
            code_changed=code_changed,
            text_changed=text_changed,
            interactive=settlement.interactive,
        )
        try:
            if self._callback is not None:
                self._callback(settlement)
        except Exception as e:
            self.log.error("settle_callback_failed", error=str(e))
        finally:
            with self._cond:
                self._outstanding -= batch
                self._cond.notify_all()
