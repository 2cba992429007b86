"""Advisory file locking with a bounded retry budget.

Locks are taken with flock(2) in non-blocking mode. A failed attempt waits
according to a LockBackoff schedule and tries again; once the schedule is
exhausted the caller gets a transient LOCK_TIMEOUT error. Locks only
coordinate processes that use the same discipline.
"""

import contextlib
import fcntl
import logging
import threading
from collections.abc import Iterator
from typing import IO

from localstore.consts import LOCK_BACKOFF_FACTOR, LOCK_RETRIES, LOCK_RETRY_INTERVAL
from localstore.errors import StoreError
from localstore.models.model_store import ErrorKind

logger = logging.getLogger(__name__)


class LockBackoff:
    """Retry schedule for lock acquisition: fixed or exponential, always bounded."""

    def __init__(
        self,
        retries: int = LOCK_RETRIES,
        initial_delay: float = LOCK_RETRY_INTERVAL,
        backoff_factor: float = LOCK_BACKOFF_FACTOR,
        max_delay: float | None = None,
    ):
        if retries < 0:
            raise ValueError(f"retries must be >= 0, got {retries}")
        if backoff_factor < 1.0:
            raise ValueError(f"backoff_factor must be >= 1.0, got {backoff_factor}")
        self.retries = retries
        self.initial_delay = initial_delay
        self.backoff_factor = backoff_factor
        self.max_delay = max_delay

    def delays(self) -> Iterator[float]:
        """Yield the wait before each retry."""
        delay = self.initial_delay
        for _ in range(self.retries):
            yield delay if self.max_delay is None else min(delay, self.max_delay)
            delay *= self.backoff_factor

    @property
    def total_wait(self) -> float:
        """Upper bound on time spent waiting before giving up."""
        return sum(self.delays())


def _try_lock(fd: int, operation: int) -> bool:
    try:
        fcntl.flock(fd, operation | fcntl.LOCK_NB)
    except BlockingIOError:
        return False
    return True


def acquire(
    handle: IO,
    *,
    shared: bool = False,
    backoff: LockBackoff | None = None,
    cancel: threading.Event | None = None,
    key: str | None = None,
) -> None:
    """Lock an open file, retrying per the backoff schedule.

    Args:
        handle: Open file object to lock.
        shared: Take a shared lock instead of an exclusive one.
        backoff: Retry schedule. Defaults to 10 retries at 1 second.
        cancel: Event that aborts the wait when set (store shutdown).
        key: Store key, used for error reporting only.

    Raises:
        StoreError: LOCK_TIMEOUT when the lock could not be taken in time.
    """
    backoff = backoff or LockBackoff()
    waiter = cancel or threading.Event()
    operation = fcntl.LOCK_SH if shared else fcntl.LOCK_EX
    fd = handle.fileno()

    if _try_lock(fd, operation):
        return

    for attempt, delay in enumerate(backoff.delays(), start=1):
        logger.debug(f"Lock busy for key={key}, retry {attempt}/{backoff.retries} in {delay:.2f}s")
        if waiter.wait(delay):
            raise StoreError(
                ErrorKind.LOCK_TIMEOUT, "Lock wait interrupted because the store is closing", key
            )
        if _try_lock(fd, operation):
            return

    logger.warning(f"Gave up locking key={key} after {backoff.retries} retries")
    raise StoreError(
        ErrorKind.LOCK_TIMEOUT,
        f"Could not lock entry after {backoff.retries} retries, retry the operation later",
        key,
    )


def release(handle: IO) -> None:
    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


@contextlib.contextmanager
def advisory_lock(
    handle: IO,
    *,
    shared: bool = False,
    backoff: LockBackoff | None = None,
    cancel: threading.Event | None = None,
    key: str | None = None,
) -> Iterator[None]:
    """Hold an advisory lock on handle for the duration of the block."""
    acquire(handle, shared=shared, backoff=backoff, cancel=cancel, key=key)
    try:
        yield
    finally:
        release(handle)
