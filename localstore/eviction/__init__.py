"""TTL eviction: registry of pending keys and the background sweeper."""

from localstore.eviction.registry import EvictionRegistry, Registration
from localstore.eviction.sweeper import EvictionSweeper

__all__ = [
    "EvictionRegistry",
    "EvictionSweeper",
    "Registration",
]
