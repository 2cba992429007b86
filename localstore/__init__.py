"""localstore - embedded filesystem key-value store with TTL eviction."""

from localstore.errors import StoreError
from localstore.models.model_store import ErrorKind, StoreConfig, StoreStats
from localstore.store import LocalStore

__version__ = "0.1.0"

__all__ = [
    "ErrorKind",
    "LocalStore",
    "StoreConfig",
    "StoreError",
    "StoreStats",
]
