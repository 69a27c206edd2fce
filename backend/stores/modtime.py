"""
Snipgen Modification Time Tracker.

Requires Python 3.11+.
"""

import os
import threading
from pathlib import Path


class ModTimeTracker:
    """
    Last processed modification time per source file.

    Filesystem notifications are often duplicated or coalesced, so the
    time is read from the file itself rather than from the event. Entries
    only ever move forward and are never removed.
    """

    def __init__(self) -> None:
        self._mod_times: dict[Path, int] = {}
        self._lock = threading.Lock()

    def upsert_if_newer(self, path: Path) -> tuple[int | None, bool]:
        """
        Record the file's current mtime if it is strictly newer.

        Args:
            path: Source file path

        Returns:
            Tuple of (mtime in nanoseconds or None if stat failed, updated)
        """
        try:
            current = os.stat(path).st_mtime_ns
        except OSError:
            # Removed between notification and check.
            return None, False

        with self._lock:
            previous = self._mod_times.get(path)
            if previous is not None and current <= previous:
                return current, False
            self._mod_times[path] = current
            return current, True
