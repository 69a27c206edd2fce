"""
Snipgen File Watcher Package.

Directory walking, file system monitoring and settle debouncing.
Requires Python 3.11+.
"""

from watcher.debouncer import SettleCoordinator
from watcher.file_watcher import FileWatcher, Watcher, WatcherFactory, create_file_watcher
from watcher.walker import walk_files

__all__ = [
    "FileWatcher",
    "SettleCoordinator",
    "Watcher",
    "WatcherFactory",
    "create_file_watcher",
    "walk_files",
]
