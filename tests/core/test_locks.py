"""Tests for core/locks.py - the readers/writer lock."""

from __future__ import annotations

import threading
import time

import pytest

from recipebox.core.locks import ReadWriteLock


class TestReadWriteLock:
    """Shared and exclusive holds."""

    def test_readers_share_the_lock(self) -> None:
        """Several readers hold the lock at the same time."""
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=5)

        def reader() -> None:
            with lock.read():
                # All three must be inside together to pass the barrier
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert not any(t.is_alive() for t in threads)
        assert lock.readers == 0

    def test_writer_excludes_readers(self) -> None:
        """A reader waits until the writer releases."""
        lock = ReadWriteLock()
        events: list[str] = []
        lock.acquire_write()

        def reader() -> None:
            with lock.read():
                events.append("read")

        t = threading.Thread(target=reader)
        t.start()
        time.sleep(0.05)
        events.append("write-done")
        lock.release_write()
        t.join(timeout=5)

        assert events == ["write-done", "read"]

    def test_writer_waits_for_readers(self) -> None:
        """A writer waits until every reader released."""
        lock = ReadWriteLock()
        events: list[str] = []
        lock.acquire_read()

        def writer() -> None:
            with lock.write():
                events.append("write")

        t = threading.Thread(target=writer)
        t.start()
        time.sleep(0.05)
        assert not lock.write_locked
        events.append("read-done")
        lock.release_read()
        t.join(timeout=5)

        assert events == ["read-done", "write"]

    def test_waiting_writer_blocks_new_readers(self) -> None:
        """Once a writer waits, new readers queue behind it."""
        lock = ReadWriteLock()
        events: list[str] = []
        lock.acquire_read()

        def writer() -> None:
            with lock.write():
                events.append("write")

        def late_reader() -> None:
            with lock.read():
                events.append("late-read")

        w = threading.Thread(target=writer)
        w.start()
        time.sleep(0.05)
        r = threading.Thread(target=late_reader)
        r.start()
        time.sleep(0.05)
        assert events == []

        lock.release_read()
        w.join(timeout=5)
        r.join(timeout=5)

        assert events == ["write", "late-read"]

    def test_context_manager_releases_on_exception(self) -> None:
        """The write hold is dropped when the block raises."""
        lock = ReadWriteLock()
        with pytest.raises(ValueError), lock.write():
            raise ValueError("boom")
        assert not lock.write_locked
        with lock.read():
            assert lock.readers == 1

    def test_release_without_hold_raises(self) -> None:
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()
