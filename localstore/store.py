"""Public key-value store facade.

LocalStore validates keys and values, delegates persistence to a
FileStoreManager, and registers TTLs with the eviction sweeper. Client
operations are serialized by a single store-wide lock.

Example:
    with LocalStore("/tmp/my-store") as store:
        store.create("user1", {"userId": "user1", "region": "chennai"}, ttl_seconds=60)
        store.read("user1")
        store.delete("user1")
"""

import logging
import math
import threading
from pathlib import Path
from types import TracebackType

from localstore.errors import StoreError, invalid_key, io_failure
from localstore.eviction.registry import EvictionRegistry
from localstore.eviction.sweeper import EvictionSweeper
from localstore.models.model_store import ErrorKind, StoreConfig, StoreStats
from localstore.serialization import Document, encode_document
from localstore.storage.file_store import FileStoreManager
from localstore.storage.locking import LockBackoff

logger = logging.getLogger(__name__)

_FORBIDDEN_KEY_CHARS = ("/", "\\", "\0")


class LocalStore:
    """Embedded filesystem key-value store with TTL eviction and a storage quota."""

    def __init__(
        self,
        path: Path | str | None = None,
        capacity: int | None = None,
        *,
        config: StoreConfig | None = None,
    ):
        """Open (or create) a store.

        Args:
            path: Store root. None or "" uses ~/localDataStore.
            capacity: Quota in bytes. Defaults to 1 GiB.
            config: Full configuration. path and capacity override its fields.

        Raises:
            StoreError: IO_FAILURE if the root directory cannot be used.
            pydantic.ValidationError: If the configuration is invalid.
        """
        config = config or StoreConfig()
        overrides: dict[str, object] = {}
        if path is not None:
            overrides["path"] = path
        if capacity is not None:
            overrides["capacity"] = capacity
        if overrides:
            config = StoreConfig.model_validate({**config.model_dump(), **overrides})
        self.config = config

        self._lock = threading.Lock()
        # Set on close: stops the sweeper and interrupts pending lock waits
        self._closed = threading.Event()

        self._storage = FileStoreManager(
            root=config.path,
            capacity=config.capacity,
            backoff=LockBackoff(
                retries=config.lock_retries,
                initial_delay=config.lock_retry_interval,
                backoff_factor=config.lock_backoff_factor,
                max_delay=config.lock_max_delay,
            ),
            cancel=self._closed,
        )
        self._registry = EvictionRegistry()
        self._sweeper = EvictionSweeper(
            self._storage,
            self._registry,
            period=config.sweep_period,
            stop_event=self._closed,
        )
        self._sweeper.start()
        logger.info(f"Opened local store at {self._storage.root} (capacity={config.capacity} bytes)")

    @property
    def storage(self) -> FileStoreManager:
        return self._storage

    @property
    def registry(self) -> EvictionRegistry:
        return self._registry

    @property
    def sweeper(self) -> EvictionSweeper:
        return self._sweeper

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    # === VALIDATION ===

    def _ensure_open(self) -> None:
        if self._closed.is_set():
            raise io_failure("Store is closed")

    def _check_key_format(self, key: object) -> None:
        if key is None:
            raise invalid_key("Key cannot be None")
        if not isinstance(key, str):
            raise invalid_key(f"Key must be a string, got {type(key).__name__}")
        if not key:
            raise invalid_key("Key cannot be empty")
        try:
            size = len(key.encode("utf-8"))
        except UnicodeEncodeError as e:
            raise invalid_key("Key is not valid UTF-8 text") from e
        max_len = self.config.max_key_length
        if size > max_len:
            raise invalid_key(f"Key cannot be more than {max_len} bytes", key)
        if key in (".", "..") or any(c in key for c in _FORBIDDEN_KEY_CHARS):
            raise invalid_key("Key must be a single path component", key)

    def _check_new_key(self, key: object) -> None:
        self._check_key_format(key)
        if self._storage.exists(key):
            raise invalid_key("Key already exists in datastore", key)

    def _check_existing_key(self, key: object) -> None:
        self._check_key_format(key)
        if not self._storage.exists(key):
            raise invalid_key("Given key is not present in the datastore", key)

    def _check_value(self, key: str, value: Document) -> None:
        size = len(encode_document(value))
        if size > self.config.max_value_size:
            raise StoreError(
                ErrorKind.PAYLOAD_TOO_LARGE,
                f"Serialized value is {size} bytes, limit is {self.config.max_value_size}",
                key,
            )

    @staticmethod
    def _check_ttl(ttl_seconds: object) -> None:
        # bool is an int subclass but never a meaningful TTL
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, (int, float)):
            raise TypeError(f"ttl_seconds must be a number, got {type(ttl_seconds).__name__}")
        if math.isnan(ttl_seconds):
            raise ValueError("ttl_seconds cannot be NaN")

    # === CLIENT OPERATIONS ===

    def create(self, key: str, value: Document, ttl_seconds: float = 0) -> None:
        """Store a new entry.

        Args:
            key: 1 to 32 bytes, unique within the store.
            value: JSON-serializable document, at most 16384 bytes serialized.
            ttl_seconds: Evict the entry this many seconds after creation.
                Zero or below keeps it until deleted.

        Raises:
            StoreError: INVALID_KEY, PAYLOAD_TOO_LARGE, QUOTA_EXCEEDED,
                LOCK_TIMEOUT or IO_FAILURE.
            TypeError: If value is not JSON-serializable or ttl_seconds is
                not a number.
            ValueError: If ttl_seconds is NaN.
        """
        with self._lock:
            self._ensure_open()
            self._check_new_key(key)
            self._check_value(key, value)
            self._check_ttl(ttl_seconds)
            self._storage.write(key, value)
            if ttl_seconds > 0:
                self._registry.register(key, ttl_seconds)
            elif key in self._registry:
                # Left over from an earlier entry that was deleted by a client
                self._registry.remove([key])
        logger.debug(f"Created key={key} (ttl={ttl_seconds}s)")

    def read(self, key: str) -> Document:
        """Return the document stored under key.

        Raises:
            StoreError: INVALID_KEY if the key is missing, LOCK_TIMEOUT or
                IO_FAILURE from the persistence manager.
        """
        with self._lock:
            self._ensure_open()
            self._check_existing_key(key)
            return self._storage.read(key)

    def delete(self, key: str) -> None:
        """Remove the entry stored under key.

        A pending TTL registration for the key is left for the sweeper to
        prune.

        Raises:
            StoreError: INVALID_KEY if the key is missing, LOCK_TIMEOUT or
                IO_FAILURE from the persistence manager.
        """
        with self._lock:
            self._ensure_open()
            self._check_existing_key(key)
            self._storage.delete(key)
        logger.debug(f"Deleted key={key}")

    def exists(self, key: str) -> bool:
        """Check whether an entry exists. Unusable keys never exist."""
        try:
            self._check_key_format(key)
        except StoreError:
            return False
        return self._storage.exists(key)

    def store_path(self) -> str:
        return str(self._storage.root)

    def stats(self) -> StoreStats:
        """Report current usage of the store."""
        with self._lock:
            self._ensure_open()
            return StoreStats(
                path=str(self._storage.root),
                capacity=self._storage.capacity,
                used_bytes=self._storage.size_of_store(),
                entry_count=len(self._storage.keys()),
                pending_evictions=len(self._registry),
            )

    # === LIFECYCLE ===

    def close(self) -> None:
        """Stop the sweeper. Later operations fail with IO_FAILURE."""
        if self._closed.is_set():
            return
        self._sweeper.stop(timeout=5.0)
        logger.info(f"Closed local store at {self._storage.root}")

    def __enter__(self) -> "LocalStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"LocalStore(path={self.store_path()!r}, capacity={self._storage.capacity}, {state})"
