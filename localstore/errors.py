"""Error type raised by every store operation."""

from localstore.models.model_store import ErrorKind


class StoreError(Exception):
    """Failure of a store operation, tagged with an ErrorKind."""

    def __init__(self, kind: ErrorKind, message: str, key: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.key = key

    @property
    def transient(self) -> bool:
        """True when retrying the whole operation later may succeed."""
        return self.kind is ErrorKind.LOCK_TIMEOUT

    def __str__(self) -> str:
        if self.key is not None:
            return f"[{self.kind.value}] {self.message} (key={self.key!r})"
        return f"[{self.kind.value}] {self.message}"

    def __repr__(self) -> str:
        return f"StoreError(kind={self.kind.name}, message={self.message!r}, key={self.key!r})"


def invalid_key(message: str, key: str | None = None) -> StoreError:
    return StoreError(ErrorKind.INVALID_KEY, message, key)


def io_failure(message: str, key: str | None = None) -> StoreError:
    return StoreError(ErrorKind.IO_FAILURE, message, key)
