"""Pytest configuration and fixtures."""

import tempfile
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from localstore.models.model_store import StoreConfig
from localstore.storage.file_store import FileStoreManager
from localstore.storage.locking import LockBackoff
from localstore.store import LocalStore


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fast_backoff() -> LockBackoff:
    """Lock retry schedule that gives up within a few hundredths of a second."""
    return LockBackoff(retries=3, initial_delay=0.01)


@pytest.fixture
def fast_config(temp_dir: Path) -> StoreConfig:
    """Store configuration with a short sweep period and quick lock timeouts."""
    return StoreConfig(
        path=temp_dir / "store",
        sweep_period=0.1,
        lock_retries=3,
        lock_retry_interval=0.01,
    )


@pytest.fixture
def store(fast_config: StoreConfig) -> Iterator[LocalStore]:
    """Open a LocalStore and close it after the test."""
    local_store = LocalStore(config=fast_config)
    yield local_store
    local_store.close()


@pytest.fixture
def file_store(temp_dir: Path, fast_backoff: LockBackoff) -> FileStoreManager:
    """Create a FileStoreManager with temporary directory."""
    return FileStoreManager(root=temp_dir / "store", backoff=fast_backoff)


@pytest.fixture
def sample_document() -> dict:
    return {"userId": "user1", "region": "chennai", "company": "apple"}


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Poll a predicate until it is true or the timeout elapses."""

    def _wait(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.05) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(interval)
        return predicate()

    return _wait
