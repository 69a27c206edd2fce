"""
Tests for the Settle Coordinator.

Requires Python 3.11+.
"""

import threading
import time
from collections.abc import Iterator
from pathlib import Path

import pytest

from generate.models import FileEvent, GenerationEvent
from watcher.debouncer import SettleCoordinator

from conftest import SettleRecorder


def result(name: str = "a.code.go", code: bool = True, text: bool = False) -> GenerationEvent:
    return GenerationEvent(FileEvent(Path(name)), code_changed=code, text_changed=text)


class TestSettleCoordinator:
    """Test cases for SettleCoordinator."""

    @pytest.fixture
    def recorder(self) -> SettleRecorder:
        return SettleRecorder()

    @pytest.fixture
    def coordinator(self, recorder: SettleRecorder) -> Iterator[SettleCoordinator]:
        """Run a coordinator on a background thread."""
        coordinator = SettleCoordinator(delay_ms=100, callback=recorder)
        thread = threading.Thread(target=coordinator.run, daemon=True)
        thread.start()
        yield coordinator
        coordinator.close()
        thread.join(timeout=5.0)
        assert not thread.is_alive()

    def test_burst_settles_once(self, coordinator: SettleCoordinator, recorder: SettleRecorder):
        """Test rapid results coalesce into a single settlement."""
        for i in range(10):
            coordinator.submit(result(f"f{i}.code.go", code=i % 2 == 0, text=i % 2 == 1))

        assert recorder.wait_for(1)
        assert coordinator.wait_idle(timeout=5.0)
        time.sleep(0.3)

        assert len(recorder.settlements) == 1
        settlement = recorder.settlements[0]
        assert settlement.events == 10
        assert settlement.code_changed
        assert settlement.text_changed
        assert settlement.interactive
        assert coordinator.updates == 10

    def test_separated_bursts_settle_twice(
        self, coordinator: SettleCoordinator, recorder: SettleRecorder
    ):
        """Test a quiet period between bursts yields two settlements."""
        coordinator.submit(result(code=True))
        assert recorder.wait_for(1)

        coordinator.submit(result(code=False, text=True))
        assert recorder.wait_for(2)

        first, second = recorder.settlements
        assert first.code_changed and not first.text_changed
        assert second.text_changed and not second.code_changed

    def test_wait_idle(self, coordinator: SettleCoordinator):
        """Test wait_idle returns once results are settled."""
        assert coordinator.wait_idle(timeout=1.0)
        coordinator.submit(result())
        assert coordinator.pending_count in (0, 1)
        assert coordinator.wait_idle(timeout=5.0)
        assert coordinator.pending_count == 0

    def test_production_label(self, coordinator: SettleCoordinator, recorder: SettleRecorder):
        """Test settlements after set_interactive(False) are production settles."""
        coordinator.set_interactive(False)
        coordinator.submit(result())
        assert recorder.wait_for(1)
        assert not recorder.settlements[0].interactive

    def test_callback_failure_is_tolerated(self, recorder: SettleRecorder):
        """Test a raising callback does not stop the coordinator."""
        calls: list[int] = []

        def callback(settlement) -> None:
            calls.append(settlement.events)
            if len(calls) == 1:
                raise RuntimeError("reload failed")
            recorder(settlement)

        coordinator = SettleCoordinator(delay_ms=20, callback=callback)
        thread = threading.Thread(target=coordinator.run, daemon=True)
        thread.start()
        try:
            coordinator.submit(result())
            assert coordinator.wait_idle(timeout=5.0)
            coordinator.submit(result())
            assert recorder.wait_for(1)
        finally:
            coordinator.close()
            thread.join(timeout=5.0)
        assert calls == [1, 1]


class TestClose:
    """Test cases for shutdown behavior."""

    def test_close_flushes_pending(self):
        """Test results still accumulating at close are settled."""
        recorder = SettleRecorder()
        coordinator = SettleCoordinator(delay_ms=10_000, callback=recorder)
        thread = threading.Thread(target=coordinator.run, daemon=True)
        thread.start()

        coordinator.submit(result())
        coordinator.submit(result(text=True))
        coordinator.close()
        thread.join(timeout=5.0)

        assert not thread.is_alive()
        assert len(recorder.settlements) == 1
        assert recorder.settlements[0].events == 2
        assert coordinator.pending_count == 0

    def test_close_when_idle(self):
        """Test closing an idle coordinator settles nothing."""
        recorder = SettleRecorder()
        coordinator = SettleCoordinator(delay_ms=10, callback=recorder)
        thread = threading.Thread(target=coordinator.run, daemon=True)
        thread.start()
        coordinator.close()
        thread.join(timeout=5.0)

        assert not thread.is_alive()
        assert recorder.settlements == []
        assert coordinator.settles == 0

    def test_without_callback(self):
        """Test settling without a callback still drains results."""
        coordinator = SettleCoordinator(delay_ms=10)
        thread = threading.Thread(target=coordinator.run, daemon=True)
        thread.start()
        coordinator.submit(result())
        assert coordinator.wait_idle(timeout=5.0)
        coordinator.close()
        thread.join(timeout=5.0)
        assert coordinator.settles == 1
