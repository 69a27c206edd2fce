"""
Snipgen Error Registry.

Requires Python 3.11+.
"""

import threading
from pathlib import Path


class ErrorRegistry:
    """Set of source files whose last regeneration failed."""

    def __init__(self) -> None:
        self._failed: set[Path] = set()
        self._lock = threading.Lock()

    def set_error(self, path: Path, has_error: bool) -> tuple[bool, int]:
        """
        Record the outcome of a regeneration attempt.

        Args:
            path: Source file path
            has_error: Whether the attempt failed

        Returns:
            Tuple of (previously had error, number of failing files)
        """
        with self._lock:
            previously_had_error = path in self._failed
            self._failed.discard(path)
            if has_error:
                self._failed.add(path)
            return previously_had_error, len(self._failed)

    def has_error(self, path: Path) -> bool:
        with self._lock:
            return path in self._failed

    def __len__(self) -> int:
        with self._lock:
            return len(self._failed)
