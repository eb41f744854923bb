"""Repository protocol definitions (interfaces)."""

from fii_tracker.repositories.protocols.store import KeyValueStore

__all__ = [
    "KeyValueStore",
]
