"""
Snipgen Directory Walker.

Produces one synthetic create event per existing snippet file.
Requires Python 3.11+.
"""

import os
import threading
from collections.abc import Callable
from pathlib import Path

from generate.models import EventKind, FileEvent
from generate.paths import is_ignored, should_include
from utils.logger import get_logger

log = get_logger(__name__)


def _raise(error: OSError) -> None:
    raise error


def walk_files(
    root: Path,
    sink: Callable[[FileEvent], None],
    ignore_patterns: list[str] | None = None,
    stop: threading.Event | None = None,
) -> int:
    """
    Walk a directory tree and emit a create event per relevant file.

    Hidden directories and directories matching an ignore pattern are
    not descended into.

    Args:
        root: Directory to walk
        sink: Receives each event
        ignore_patterns: Directory names or glob patterns to skip
        stop: Optional event that ends the walk early when set

    Returns:
        Number of events emitted

    Raises:
        OSError: If the root is not a readable directory
    """
    ignore_patterns = ignore_patterns or []
    if not root.is_dir():
        raise NotADirectoryError(f"not a directory: {root}")

    count = 0
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(
            d for d in dirnames
            if not d.startswith(".") and not is_ignored(d, ignore_patterns)
        )
        for name in sorted(filenames):
            if stop is not None and stop.is_set():
                log.debug("walk_stopped", path=str(root), events=count)
                return count
            if not should_include(name):
                continue
            sink(FileEvent(Path(dirpath) / name, EventKind.CREATE))
            count += 1

    log.debug("walk_complete", path=str(root), events=count)
    return count
