"""Repository layer - persistence abstractions and implementations."""

from fii_tracker.repositories.protocols import KeyValueStore
from fii_tracker.repositories.memory_store import InMemoryKeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
]
