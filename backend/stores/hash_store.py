"""
Snipgen Hash Store.

SHA-256 content hashes of written artifacts, used to suppress
redundant writes of unchanged output.
Requires Python 3.11+.
"""

import hashlib
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def hash_bytes(data: bytes) -> bytes:
    """
    Compute the SHA-256 digest of artifact content.

    Args:
        data: Content to hash

    Returns:
        32-byte digest
    """
    return hashlib.sha256(data).digest()


class HashStore:
    """
    Last written digest per artifact path.

    An update is accepted only when the digest differs from the stored
    one; the comparison and the store happen in one critical section.
    Callers that persist the artifact hold `guard(key)` across both the
    upsert and the write so two workers never interleave on one key.
    """

    def __init__(self) -> None:
        self._hashes: dict[Path, bytes] = {}
        self._lock = threading.Lock()
        self._key_locks: dict[Path, threading.Lock] = {}

    @contextmanager
    def guard(self, key: Path) -> Iterator[None]:
        """Serialize check-and-write for a single artifact key."""
        with self._lock:
            key_lock = self._key_locks.setdefault(key, threading.Lock())
        with key_lock:
            yield

    def upsert_if_changed(self, key: Path, digest: bytes) -> bool:
        """
        Store the digest if it differs from the last one for this key.

        Args:
            key: Artifact path
            digest: Digest of the new content

        Returns:
            True if the digest changed and was stored
        """
        with self._lock:
            if self._hashes.get(key) == digest:
                return False
            self._hashes[key] = digest
            return True

    def forget(self, key: Path) -> bool:
        """Drop the stored digest for a deleted artifact."""
        with self._lock:
            return self._hashes.pop(key, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)
