"""Abstract base class for entry storage backends.

An entry storage maps store keys to persisted documents. It knows nothing
about TTLs; expiry is driven from outside through delete().
"""

from abc import ABC, abstractmethod
from pathlib import Path

from localstore.serialization import Document


class EntryStorage(ABC):
    """Abstract base class for persistence managers.

    Implementations raise StoreError for every failure they report.
    """

    @property
    @abstractmethod
    def root(self) -> Path:
        """Root location of the store."""
        ...

    @abstractmethod
    def write(self, key: str, value: Document) -> Path:
        """Persist a new entry.

        Args:
            key: Store key. Must not exist yet.
            value: Document to serialize.

        Returns:
            Path of the written value file.
        """
        ...

    @abstractmethod
    def read(self, key: str) -> Document:
        """Load the document stored under key."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the entry stored under key."""
        ...

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if an entry exists for key."""
        ...

    @abstractmethod
    def created_at(self, key: str) -> float:
        """POSIX timestamp at which the entry was written."""
        ...

    @abstractmethod
    def size_of_store(self) -> int:
        """Aggregate size in bytes of all entries."""
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """List keys currently present, sorted."""
        ...
