"""Key-value store protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Synchronous byte store. Repositories wrap it as async."""

    def get(self, key: str) -> bytes | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None:
        """Delete the key. Removing an absent key is a no-op."""
        ...
