"""Tests for advisory locking and the retry schedule."""

import fcntl
import threading
import time
from pathlib import Path

import pytest

from localstore.errors import StoreError
from localstore.models.model_store import ErrorKind
from localstore.storage.locking import LockBackoff, acquire, advisory_lock, release


@pytest.fixture
def lock_file(temp_dir: Path) -> Path:
    path = temp_dir / "value.json"
    path.write_bytes(b"{}")
    return path


class TestLockBackoff:
    """Tests for LockBackoff schedule."""

    def test_defaults_match_fixed_one_second_policy(self) -> None:
        backoff = LockBackoff()
        assert list(backoff.delays()) == [1.0] * 10
        assert backoff.total_wait == 10.0

    def test_fixed_interval(self) -> None:
        backoff = LockBackoff(retries=3, initial_delay=0.5)
        assert list(backoff.delays()) == [0.5, 0.5, 0.5]

    def test_exponential_with_cap(self) -> None:
        backoff = LockBackoff(retries=4, initial_delay=0.5, backoff_factor=2.0, max_delay=1.5)
        assert list(backoff.delays()) == [0.5, 1.0, 1.5, 1.5]
        assert backoff.total_wait == 4.5

    def test_zero_retries(self) -> None:
        assert list(LockBackoff(retries=0).delays()) == []

    def test_invalid_arguments(self) -> None:
        with pytest.raises(ValueError):
            LockBackoff(retries=-1)
        with pytest.raises(ValueError):
            LockBackoff(backoff_factor=0.5)


class TestAdvisoryLock:
    """Tests for acquire/release on real files."""

    def test_acquire_free_file(self, lock_file: Path, fast_backoff: LockBackoff) -> None:
        with lock_file.open("rb") as handle, advisory_lock(handle, backoff=fast_backoff):
            assert handle.read() == b"{}"

    def test_released_after_block(self, lock_file: Path, fast_backoff: LockBackoff) -> None:
        with lock_file.open("rb") as first:
            with advisory_lock(first, backoff=fast_backoff):
                pass
            # A second handle can now take the exclusive lock without waiting
            with lock_file.open("rb") as second:
                fcntl.flock(second.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                fcntl.flock(second.fileno(), fcntl.LOCK_UN)

    def test_timeout_when_held(self, lock_file: Path, fast_backoff: LockBackoff) -> None:
        with lock_file.open("rb") as holder, lock_file.open("rb") as waiter:
            fcntl.flock(holder.fileno(), fcntl.LOCK_EX)

            start = time.monotonic()
            with pytest.raises(StoreError) as exc_info:
                acquire(waiter, backoff=fast_backoff, key="k1")
            elapsed = time.monotonic() - start

            assert exc_info.value.kind is ErrorKind.LOCK_TIMEOUT
            assert exc_info.value.transient
            assert exc_info.value.key == "k1"
            assert elapsed < 1.0

    def test_shared_locks_coexist(self, lock_file: Path, fast_backoff: LockBackoff) -> None:
        with lock_file.open("rb") as first, lock_file.open("rb") as second:
            acquire(first, shared=True, backoff=fast_backoff)
            acquire(second, shared=True, backoff=fast_backoff)
            release(first)
            release(second)

    def test_shared_blocked_by_exclusive(self, lock_file: Path, fast_backoff: LockBackoff) -> None:
        with lock_file.open("rb") as holder, lock_file.open("rb") as reader:
            fcntl.flock(holder.fileno(), fcntl.LOCK_EX)
            with pytest.raises(StoreError) as exc_info:
                acquire(reader, shared=True, backoff=fast_backoff)
            assert exc_info.value.kind is ErrorKind.LOCK_TIMEOUT

    def test_acquires_after_holder_releases(self, lock_file: Path) -> None:
        backoff = LockBackoff(retries=50, initial_delay=0.02)
        with lock_file.open("rb") as holder, lock_file.open("rb") as waiter:
            fcntl.flock(holder.fileno(), fcntl.LOCK_EX)
            timer = threading.Timer(0.1, fcntl.flock, args=(holder.fileno(), fcntl.LOCK_UN))
            timer.start()
            try:
                acquire(waiter, backoff=backoff)
                release(waiter)
            finally:
                timer.join()

    def test_cancel_interrupts_wait(self, lock_file: Path) -> None:
        backoff = LockBackoff(retries=10, initial_delay=5.0)
        cancel = threading.Event()
        cancel.set()
        with lock_file.open("rb") as holder, lock_file.open("rb") as waiter:
            fcntl.flock(holder.fileno(), fcntl.LOCK_EX)

            start = time.monotonic()
            with pytest.raises(StoreError) as exc_info:
                acquire(waiter, backoff=backoff, cancel=cancel)

            assert exc_info.value.kind is ErrorKind.LOCK_TIMEOUT
            assert "closing" in exc_info.value.message
            assert time.monotonic() - start < 1.0
