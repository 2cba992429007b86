"""Pydantic models for localstore."""

from localstore.models.model_store import (
    ErrorKind,
    StoreConfig,
    StoreStats,
)

__all__ = [
    "ErrorKind",
    "StoreConfig",
    "StoreStats",
]
