"""File-based persistence manager.

Every entry is a directory named after its key holding a single value
file. Access to the value file is coordinated with advisory locks.
"""

import logging
import shutil
import threading
from pathlib import Path

from localstore.consts import DEFAULT_CAPACITY, DEFAULT_STORE_DIR, VALUE_FILE_NAME
from localstore.errors import StoreError, invalid_key, io_failure
from localstore.models.model_store import ErrorKind
from localstore.serialization import Document, decode_document, encode_document
from localstore.storage.base import EntryStorage
from localstore.storage.locking import LockBackoff, advisory_lock

logger = logging.getLogger(__name__)


class FileStoreManager(EntryStorage):
    """Filesystem persistence manager with quota enforcement.

    Directory structure:
        {root}/
        ├── {key}/
        │   └── value.json
        └── {key}/
            └── value.json
    """

    def __init__(
        self,
        root: Path | str | None = None,
        capacity: int = DEFAULT_CAPACITY,
        backoff: LockBackoff | None = None,
        cancel: threading.Event | None = None,
    ):
        """Initialize FileStoreManager.

        Args:
            root: Store root. None or "" uses ~/localDataStore. Created if absent.
            capacity: Quota in bytes checked before each write.
            backoff: Lock retry schedule. Defaults to 10 retries at 1 second.
            cancel: Event that interrupts lock waits when set.

        Raises:
            StoreError: IO_FAILURE if the root cannot be used as a directory.
        """
        self._root = self._setup_root(root)
        self.capacity = capacity
        self.backoff = backoff or LockBackoff()
        self._cancel = cancel

    @staticmethod
    def _setup_root(root: Path | str | None) -> Path:
        path = Path(root).expanduser() if root else DEFAULT_STORE_DIR
        if path.exists() and not path.is_dir():
            raise io_failure(f"Store path is not a directory: {path}")
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise io_failure(f"Unable to create data store at {path}: {e}") from e
        return path.resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _entry_dir(self, key: str) -> Path:
        return self._root / key

    def _value_path(self, key: str) -> Path:
        return self._entry_dir(key) / VALUE_FILE_NAME

    def _check_quota(self) -> None:
        """Fail if the store has already reached its capacity.

        The incoming write is not counted, so a store can end up one entry
        over capacity.
        """
        used = self.size_of_store()
        if used >= self.capacity:
            raise StoreError(
                ErrorKind.QUOTA_EXCEEDED,
                f"Store size {used} bytes has reached its capacity of {self.capacity} bytes",
            )

    def _discard(self, entry_dir: Path) -> None:
        """Remove a half-written entry so it never becomes visible."""
        try:
            shutil.rmtree(entry_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to clean up partial entry {entry_dir}: {e}")

    def _remove_orphan(self, entry_dir: Path, key: str) -> None:
        logger.warning(f"Removing entry key={key} with no value file")
        try:
            shutil.rmtree(entry_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise io_failure(f"Unable to delete key entry: {e}", key) from e

    # === ENTRY OPERATIONS ===

    def write(self, key: str, value: Document) -> Path:
        """Persist a new entry under an exclusive lock.

        Args:
            key: Store key. Its directory must not exist yet.
            value: JSON-serializable document.

        Returns:
            Path of the written value file.

        Raises:
            StoreError: INVALID_KEY if the key exists, QUOTA_EXCEEDED if the
                store is full, LOCK_TIMEOUT or IO_FAILURE on write problems.
        """
        payload = encode_document(value)
        entry_dir = self._entry_dir(key)
        if entry_dir.exists():
            raise invalid_key("Given key already present in datastore", key)

        self._check_quota()

        try:
            entry_dir.mkdir()
        except FileExistsError as e:
            raise invalid_key("Given key already present in datastore", key) from e
        except OSError as e:
            raise io_failure(f"Unable to create key entry in data store: {e}", key) from e

        path = entry_dir / VALUE_FILE_NAME
        try:
            # "xb" refuses to reuse an existing file, so nothing is ever appended
            with path.open("xb") as handle, advisory_lock(
                handle, backoff=self.backoff, cancel=self._cancel, key=key
            ):
                handle.write(payload)
                handle.flush()
        except StoreError:
            self._discard(entry_dir)
            raise
        except OSError as e:
            self._discard(entry_dir)
            raise io_failure(f"Unable to write key entry: {e}", key) from e

        logger.debug(f"Wrote key={key} ({len(payload)} bytes)")
        return path

    def read(self, key: str) -> Document:
        """Load an entry under a shared lock.

        The caller is expected to have checked exists() first.

        Raises:
            StoreError: IO_FAILURE if the value file is missing or corrupt,
                LOCK_TIMEOUT if the lock could not be taken.
        """
        path = self._value_path(key)
        try:
            with path.open("rb") as handle, advisory_lock(
                handle, shared=True, backoff=self.backoff, cancel=self._cancel, key=key
            ):
                # The open handle outlives an unlink done while we waited
                if not path.exists():
                    raise io_failure("Entry was deleted while waiting for its lock", key)
                data = handle.read()
        except FileNotFoundError as e:
            raise io_failure("Value file is missing", key) from e
        except OSError as e:
            raise io_failure(f"Unable to read key entry: {e}", key) from e

        try:
            return decode_document(data)
        except ValueError as e:
            raise io_failure(f"Value file is corrupt: {e}", key) from e

    def delete(self, key: str) -> None:
        """Remove an entry directory while holding its lock.

        An entry directory whose value file is missing has nothing to lock
        and is removed directly.

        Raises:
            StoreError: IO_FAILURE if the entry is missing or cannot be
                removed, LOCK_TIMEOUT if the lock could not be taken.
        """
        entry_dir = self._entry_dir(key)
        path = self._value_path(key)
        try:
            with path.open("rb") as handle, advisory_lock(
                handle, backoff=self.backoff, cancel=self._cancel, key=key
            ):
                shutil.rmtree(entry_dir)
        except FileNotFoundError as e:
            if not entry_dir.is_dir():
                raise io_failure("Entry does not exist", key) from e
            self._remove_orphan(entry_dir, key)
        except OSError as e:
            raise io_failure(f"Unable to delete key entry: {e}", key) from e
        logger.debug(f"Deleted key={key}")

    def exists(self, key: str) -> bool:
        return self._entry_dir(key).exists()

    def created_at(self, key: str) -> float:
        """Get the write time of an entry's value file.

        The value file is written exactly once, so its modification time is
        its creation time.

        Raises:
            StoreError: IO_FAILURE if the entry is missing.
        """
        try:
            return self._value_path(key).stat().st_mtime
        except OSError as e:
            raise io_failure(f"Unable to stat key entry: {e}", key) from e

    # === STORE-WIDE OPERATIONS ===

    def size_of_store(self) -> int:
        """Sum the sizes of all files under the root.

        Full directory scan, O(number of entries).
        """
        total = 0
        for path in self._root.rglob("*"):
            try:
                if path.is_file():
                    total += path.stat().st_size
            except FileNotFoundError:
                # Removed between listing and stat
                continue
        return total

    def keys(self) -> list[str]:
        return sorted(p.name for p in self._root.iterdir() if p.is_dir())
