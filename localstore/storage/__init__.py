"""Storage backends for store entries.

This module provides:
- EntryStorage: Abstract base class for persistence managers
- FileStoreManager: Directory-per-key persistence with quota enforcement
- LockBackoff: Bounded retry schedule for advisory locks
"""

from localstore.storage.base import EntryStorage
from localstore.storage.file_store import FileStoreManager
from localstore.storage.locking import LockBackoff

__all__ = [
    "EntryStorage",
    "FileStoreManager",
    "LockBackoff",
]
