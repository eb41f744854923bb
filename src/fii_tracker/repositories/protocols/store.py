"""Key-value store protocol."""

from typing import Any, Protocol


class KeyValueStore(Protocol):
    """
    Interface for the persistent process-wide store.

    Values are JSON-compatible (dicts, lists, strings, numbers, None).
    Access is synchronous.
    """

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or default when the key is absent."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Store a value, replacing any previous one."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key (no-op when absent)."""
        ...

    def keys(self) -> list[str]:
        ...
