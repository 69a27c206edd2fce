"""
Snipgen Stores Package.

Lock-guarded state shared by generation workers.
Requires Python 3.11+.
"""

from stores.error_registry import ErrorRegistry
from stores.hash_store import HashStore, hash_bytes
from stores.modtime import ModTimeTracker

__all__ = [
    "ErrorRegistry",
    "HashStore",
    "ModTimeTracker",
    "hash_bytes",
]
