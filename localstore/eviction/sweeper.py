"""Background sweeper that evicts entries whose TTL has elapsed.

The sweeper runs on its own daemon thread and wakes up every sweep
period. It never takes the store facade's lock; it coordinates with client
operations only through the entries' advisory file locks and the
registry's own lock.
"""

import logging
import threading
import time

from localstore.consts import SWEEP_PERIOD
from localstore.errors import StoreError
from localstore.eviction.registry import EvictionRegistry
from localstore.storage.base import EntryStorage

logger = logging.getLogger(__name__)


class EvictionSweeper:
    """Periodic TTL eviction task with an explicit stop handle."""

    def __init__(
        self,
        storage: EntryStorage,
        registry: EvictionRegistry,
        period: float = SWEEP_PERIOD,
        stop_event: threading.Event | None = None,
    ):
        """Initialize EvictionSweeper.

        Args:
            storage: Persistence manager used to inspect and delete entries.
            registry: Keys awaiting eviction.
            period: Seconds between passes.
            stop_event: Event used to stop the loop. Shared with the storage
                so that pending lock waits are interrupted on shutdown.
        """
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        self.storage = storage
        self.registry = registry
        self.period = period
        self._stop = stop_event or threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sweep loop. The first pass runs immediately."""
        if self.running:
            return
        if self._stop.is_set():
            raise RuntimeError("Sweeper was stopped and cannot be restarted")
        self._thread = threading.Thread(
            target=self._loop, name="localstore-sweeper", daemon=True
        )
        self._thread.start()
        logger.debug(f"Sweeper started (period={self.period}s)")

    def stop(self, timeout: float | None = None) -> None:
        """Stop the loop and wait for a pass in progress to finish."""
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Sweeper thread did not stop within timeout")
        self._thread = None
        logger.debug("Sweeper stopped")

    def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                self.run_once()
            except Exception:
                # A broken pass must not kill the schedule
                logger.exception("Eviction pass failed")
            if self._stop.wait(self.period):
                break

    def _is_expired(self, key: str, ttl: float, now: float) -> bool:
        return now - self.storage.created_at(key) >= ttl

    def run_once(self) -> list[str]:
        """Run a single eviction pass.

        Returns:
            Keys evicted during this pass.
        """
        pending = self.registry.pending()
        if not pending:
            return []

        now = time.time()
        evicted: list[str] = []
        pruned: list[str] = []

        for key, registration in pending.items():
            if self._stop.is_set():
                break
            try:
                if not self.storage.exists(key):
                    # Deleted by a client; nothing left to evict
                    logger.debug(f"Pruning key={key}, entry already absent")
                    pruned.append(key)
                    continue
                if self._is_expired(key, registration.ttl, now):
                    self.storage.delete(key)
                    evicted.append(key)
            except StoreError as e:
                if not self.storage.exists(key):
                    logger.debug(f"Pruning key={key}, entry vanished during eviction")
                    pruned.append(key)
                else:
                    logger.warning(f"Failed to evict key={key}: {e}")

        # Only drop the registrations this pass looked at; a key re-created
        # meanwhile carries a new one
        self.registry.discard({key: pending[key] for key in evicted + pruned})
        if evicted:
            logger.info(f"Evicted {len(evicted)} expired entries: {', '.join(evicted)}")
        return evicted
