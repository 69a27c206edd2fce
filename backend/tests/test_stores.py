"""
Tests for the shared stores.

Requires Python 3.11+.
"""

import os
import threading
from pathlib import Path

import pytest

from stores import ErrorRegistry, HashStore, ModTimeTracker, hash_bytes

from conftest import bump_mtime, write_snippet


class TestHashStore:
    """Test cases for HashStore."""

    @pytest.fixture
    def store(self) -> HashStore:
        """Create an empty hash store."""
        return HashStore()

    def test_hash_bytes(self):
        """Test SHA-256 digests."""
        digest = hash_bytes(b"content")
        assert len(digest) == 32
        assert digest == hash_bytes(b"content")
        assert digest != hash_bytes(b"other")

    def test_upsert_if_changed(self, store: HashStore):
        """Test only differing digests are accepted."""
        key = Path("out_snip.py")
        assert store.upsert_if_changed(key, hash_bytes(b"a"))
        assert not store.upsert_if_changed(key, hash_bytes(b"a"))
        assert store.upsert_if_changed(key, hash_bytes(b"b"))
        # Reverting is a change too
        assert store.upsert_if_changed(key, hash_bytes(b"a"))

    def test_keys_are_independent(self, store: HashStore):
        """Test digests are tracked per artifact."""
        digest = hash_bytes(b"same")
        assert store.upsert_if_changed(Path("a"), digest)
        assert store.upsert_if_changed(Path("b"), digest)
        assert len(store) == 2

    def test_forget(self, store: HashStore):
        """Test a forgotten digest is accepted again."""
        key = Path("out_snip.py")
        store.upsert_if_changed(key, hash_bytes(b"a"))
        assert store.forget(key)
        assert not store.forget(key)
        assert store.upsert_if_changed(key, hash_bytes(b"a"))

    def test_concurrent_upserts_accept_once(self, store: HashStore):
        """Test check-and-set is atomic under contention."""
        key = Path("out_snip.py")
        digest = hash_bytes(b"payload")
        results: list[bool] = []
        lock = threading.Lock()
        barrier = threading.Barrier(16)

        def upsert() -> None:
            barrier.wait()
            with store.guard(key):
                changed = store.upsert_if_changed(key, digest)
            with lock:
                results.append(changed)

        threads = [threading.Thread(target=upsert) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results.count(True) == 1


class TestModTimeTracker:
    """Test cases for ModTimeTracker."""

    def test_first_sighting_is_an_update(self, tmp_path: Path):
        """Test an unseen file is always processed."""
        path = write_snippet(tmp_path / "a.code.go", "x")
        mtime, updated = ModTimeTracker().upsert_if_newer(path)
        assert updated
        assert mtime == path.stat().st_mtime_ns

    def test_same_mtime_is_not_an_update(self, tmp_path: Path):
        """Test duplicate notifications are suppressed."""
        path = write_snippet(tmp_path / "a.code.go", "x")
        tracker = ModTimeTracker()
        tracker.upsert_if_newer(path)
        _, updated = tracker.upsert_if_newer(path)
        assert not updated

    def test_newer_mtime_is_an_update(self, tmp_path: Path):
        """Test a strictly newer mtime is accepted."""
        path = write_snippet(tmp_path / "a.code.go", "x")
        tracker = ModTimeTracker()
        tracker.upsert_if_newer(path)
        newer = bump_mtime(path)
        mtime, updated = tracker.upsert_if_newer(path)
        assert updated
        assert mtime == newer
        _, updated = tracker.upsert_if_newer(path)
        assert not updated

    def test_older_mtime_is_ignored(self, tmp_path: Path):
        """Test the stored time never moves backwards."""
        path = write_snippet(tmp_path / "a.code.go", "x", mtime_ns=2_000_000_000 * 10**9)
        tracker = ModTimeTracker()
        tracker.upsert_if_newer(path)
        os.utime(path, ns=(1_000_000_000 * 10**9, 1_000_000_000 * 10**9))
        _, updated = tracker.upsert_if_newer(path)
        assert not updated
        # The recorded time stays at the newer value
        os.utime(path, ns=(2_000_000_000 * 10**9, 2_000_000_000 * 10**9))
        _, updated = tracker.upsert_if_newer(path)
        assert not updated

    def test_missing_file_is_not_an_error(self, tmp_path: Path):
        """Test stat failures report no update."""
        tracker = ModTimeTracker()
        assert tracker.upsert_if_newer(tmp_path / "gone.code.go") == (None, False)
        # A file appearing later is still a first sighting
        write_snippet(tmp_path / "gone.code.go", "x")
        assert tracker.upsert_if_newer(tmp_path / "gone.code.go")[1]


class TestErrorRegistry:
    """Test cases for ErrorRegistry."""

    def test_transitions(self):
        """Test failure then success reports the cleared transition."""
        registry = ErrorRegistry()
        path = Path("a.code.go")

        assert registry.set_error(path, True) == (False, 1)
        assert registry.has_error(path)
        assert registry.set_error(path, True) == (True, 1)
        assert registry.set_error(path, False) == (True, 0)
        assert not registry.has_error(path)
        assert registry.set_error(path, False) == (False, 0)

    def test_counts_failing_files(self):
        """Test the count covers distinct paths."""
        registry = ErrorRegistry()
        registry.set_error(Path("a"), True)
        registry.set_error(Path("b"), True)
        assert len(registry) == 2
