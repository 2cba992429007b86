"""Thread-safe registry of keys awaiting TTL eviction."""

import itertools
import logging
import threading
from typing import NamedTuple

logger = logging.getLogger(__name__)


class Registration(NamedTuple):
    """A key's TTL plus a token unique to this registration."""

    ttl: float
    token: int


class EvictionRegistry:
    """Maps store keys to their TTL in seconds.

    Written by the store facade on create and read by the sweeper. All
    access goes through an internal lock, so both sides may run on
    different threads.

    Every call to register() issues a fresh token. The sweeper removes keys
    with discard(), which only drops a registration it saw in pending(), so
    a key re-created while a pass is running keeps its new TTL.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Registration] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.Lock()

    def register(self, key: str, ttl_seconds: float) -> None:
        """Record that key expires ttl_seconds after creation.

        Registering a key again replaces its previous TTL.
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        with self._lock:
            self._entries[key] = Registration(ttl_seconds, next(self._tokens))
        logger.debug(f"Registered key={key} for eviction after {ttl_seconds}s")

    def get(self, key: str) -> float | None:
        with self._lock:
            registration = self._entries.get(key)
        return registration.ttl if registration else None

    def snapshot(self) -> dict[str, float]:
        """Copy of the current key → TTL mapping."""
        with self._lock:
            return {key: reg.ttl for key, reg in self._entries.items()}

    def pending(self) -> dict[str, Registration]:
        """Copy of the current registrations, tokens included."""
        with self._lock:
            return dict(self._entries)

    def remove(self, keys: list[str]) -> int:
        """Drop keys from the registry, whatever their registration.

        Returns:
            Number of keys that were actually registered.
        """
        removed = 0
        with self._lock:
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    removed += 1
        return removed

    def discard(self, seen: dict[str, Registration]) -> int:
        """Drop keys whose registration is still the one in seen.

        Keys registered again since seen was taken are kept.

        Returns:
            Number of keys removed.
        """
        removed = 0
        with self._lock:
            for key, registration in seen.items():
                if self._entries.get(key) == registration:
                    del self._entries[key]
                    removed += 1
        return removed

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
