"""Key-value store backends.

The store has no key-listing operation; repositories keep their own id index.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from vwise.errors import InvalidArgument
from vwise.store.base import KeyValueStore
from vwise.store.file import FileStore
from vwise.store.memory import MemoryStore

if TYPE_CHECKING:
    from vwise.config import StoreConfig

__all__ = ["FileStore", "KeyValueStore", "MemoryStore", "open_store"]


def open_store(config: StoreConfig) -> KeyValueStore:
    """Build the backend named by ``config.backend``."""
    if config.backend == "memory":
        return MemoryStore()
    if config.backend == "file":
        return FileStore(config.path)
    raise InvalidArgument(
        f"Unknown store backend '{config.backend}'. Available: ['file', 'memory']"
    )
