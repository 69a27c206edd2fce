"""
Snipgen Synchronization Helpers.

Requires Python 3.11+.
"""

import threading


class WaitGroup:
    """
    Counter of outstanding tasks that can be waited on.

    Used at the boundaries between the push, handle and settle phases.
    """

    def __init__(self) -> None:
        self._count = 0
        self._cond = threading.Condition()

    def add(self, delta: int = 1) -> None:
        with self._cond:
            self._count += delta
            if self._count < 0:
                raise ValueError("negative WaitGroup counter")
            if self._count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        self.add(-1)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the counter reaches zero; False on timeout."""
        with self._cond:
            return self._cond.wait_for(lambda: self._count == 0, timeout=timeout)

    @property
    def count(self) -> int:
        with self._cond:
            return self._count
