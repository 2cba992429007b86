"""Configuration and reporting models for the local store."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, computed_field, field_validator

from localstore.consts import (
    DEFAULT_CAPACITY,
    LOCK_BACKOFF_FACTOR,
    LOCK_RETRIES,
    LOCK_RETRY_INTERVAL,
    MAX_KEY_LENGTH,
    MAX_VALUE_SIZE,
    SWEEP_PERIOD,
)


class ErrorKind(Enum):
    """Classification of store failures.

    Callers branch on the kind instead of on exception subclasses.
    """

    # Rejected before any I/O
    INVALID_KEY = "invalid_key"
    PAYLOAD_TOO_LARGE = "payload_too_large"

    # Rejected before the write
    QUOTA_EXCEEDED = "quota_exceeded"

    # Transient - retry the whole operation later
    LOCK_TIMEOUT = "lock_timeout"

    # Filesystem failure
    IO_FAILURE = "io_failure"


class StoreConfig(BaseModel):
    """Tunable settings for a LocalStore instance."""

    path: Path | None = Field(default=None, description="Store root. None uses ~/localDataStore")
    capacity: int = Field(default=DEFAULT_CAPACITY, gt=0, description="Quota in bytes")
    sweep_period: float = Field(default=SWEEP_PERIOD, gt=0, description="Seconds between sweeps")
    max_key_length: int = Field(default=MAX_KEY_LENGTH, ge=1, description="Max key size in bytes")
    max_value_size: int = Field(
        default=MAX_VALUE_SIZE, ge=1, description="Max serialized value size in bytes"
    )
    lock_retries: int = Field(default=LOCK_RETRIES, ge=0)
    lock_retry_interval: float = Field(default=LOCK_RETRY_INTERVAL, ge=0.0)
    lock_backoff_factor: float = Field(default=LOCK_BACKOFF_FACTOR, ge=1.0)
    lock_max_delay: float | None = Field(
        default=None, gt=0, description="Cap on a single lock wait. None means uncapped"
    )

    @field_validator("path", mode="before")
    @classmethod
    def empty_path_means_default(cls, value: object) -> object:
        """Treat an empty path string like no path at all."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


class StoreStats(BaseModel):
    """Point-in-time usage report for a store."""

    path: str
    capacity: int = Field(ge=0)
    used_bytes: int = Field(ge=0)
    entry_count: int = Field(ge=0)
    pending_evictions: int = Field(ge=0, description="Keys with a registered TTL")

    @computed_field
    @property
    def usage_percent(self) -> float:
        """Share of the quota in use, rounded to two decimals."""
        if self.capacity == 0:
            return 0.0
        return round(self.used_bytes / self.capacity * 100, 2)
